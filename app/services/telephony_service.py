import logging
from dataclasses import dataclass
from typing import List, Optional
from fastapi.concurrency import run_in_threadpool
from twilio.rest import Client
from twilio.base.exceptions import TwilioException
from app.errors import NoNumbersAvailable, ProviderUnavailable

logger = logging.getLogger(__name__)

PROVIDER = "Twilio"

@dataclass
class PurchasedNumber:
    number: str
    sid: str

class TwilioTelephony:
    """Proxy number provisioning and outbound SMS."""

    def __init__(self, account_sid: str, auth_token: str, from_number: str, client: Optional[Client] = None):
        self.from_number = from_number
        self.client = client
        if self.client is None and account_sid and auth_token:
            self.client = Client(account_sid, auth_token)

    def _client(self) -> Client:
        if self.client is None:
            logger.error("Twilio credentials missing.")
            raise ProviderUnavailable(PROVIDER)
        return self.client

    async def list_available_numbers(self, country: str, area_code: Optional[str] = None, limit: int = 1) -> List[str]:
        client = self._client()
        filters = {"limit": limit}
        if area_code:
            filters["area_code"] = area_code
        try:
            available = await run_in_threadpool(
                client.available_phone_numbers(country).local.list, **filters
            )
        except TwilioException as e:
            logger.error(f"Listing available numbers in {country} failed: {e}")
            raise ProviderUnavailable(PROVIDER) from e
        return [n.phone_number for n in available]

    async def purchase_number(self, country: str, area_code: Optional[str], voice_url: str) -> PurchasedNumber:
        numbers = await self.list_available_numbers(country, area_code)
        if not numbers:
            raise NoNumbersAvailable()

        client = self._client()
        try:
            incoming = await run_in_threadpool(
                client.incoming_phone_numbers.create,
                phone_number=numbers[0],
                voice_url=voice_url,
                voice_method="POST",
            )
        except TwilioException as e:
            logger.error(f"Purchasing {numbers[0]} failed: {e}")
            raise ProviderUnavailable(PROVIDER) from e

        logger.info(f"Purchased proxy number {incoming.phone_number} ({incoming.sid})")
        return PurchasedNumber(number=incoming.phone_number, sid=incoming.sid)

    async def send_message(self, to: str, body: str) -> str:
        client = self._client()
        if not self.from_number:
            logger.error("TWILIO_PHONE_NUMBER missing.")
            raise ProviderUnavailable(PROVIDER)
        try:
            message = await run_in_threadpool(
                client.messages.create, to=to, from_=self.from_number, body=body
            )
        except TwilioException as e:
            logger.error(f"Sending SMS to {to} failed: {e}")
            raise ProviderUnavailable(PROVIDER) from e
        return message.sid
