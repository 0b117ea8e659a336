import logging
from typing import Optional
from fastapi.concurrency import run_in_threadpool
from twilio.rest import Client
from twilio.base.exceptions import TwilioException, TwilioRestException
from app.errors import ProviderUnavailable

logger = logging.getLogger(__name__)

PROVIDER = "Twilio Verify"

class TwilioVerifier:
    """One-time code delivery through a Twilio Verify service."""

    def __init__(self, account_sid: str, auth_token: str, service_sid: str, client: Optional[Client] = None):
        self.service_sid = service_sid
        self.client = client
        if self.client is None and account_sid and auth_token:
            self.client = Client(account_sid, auth_token)

    @property
    def configured(self) -> bool:
        return self.client is not None and bool(self.service_sid)

    def _service(self):
        if not self.configured:
            logger.error("Twilio Verify environment variables missing.")
            raise ProviderUnavailable(PROVIDER)
        return self.client.verify.v2.services(self.service_sid)

    async def send_code(self, phone: str) -> str:
        service = self._service()
        try:
            verification = await run_in_threadpool(
                service.verifications.create, to=phone, channel="sms"
            )
        except TwilioException as e:
            logger.error(f"Failed to send verification code to {phone}: {e}")
            raise ProviderUnavailable(PROVIDER) from e
        return verification.sid

    async def check_code(self, phone: str, code: str) -> bool:
        service = self._service()
        try:
            check = await run_in_threadpool(
                service.verification_checks.create, to=phone, code=code
            )
        except TwilioRestException as e:
            # Verify answers 404 once the verification expired or was consumed
            if e.status == 404:
                logger.info(f"No pending verification for {phone}")
                return False
            logger.error(f"Verification check failed for {phone}: {e}")
            raise ProviderUnavailable(PROVIDER) from e
        except TwilioException as e:
            logger.error(f"Verification check failed for {phone}: {e}")
            raise ProviderUnavailable(PROVIDER) from e
        return check.status == "approved"
