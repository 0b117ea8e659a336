import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.config import Settings
from app.errors import CodeRejected, LifecycleError, NotVerified, UserNotFound
from app.models.user import User, Role, Status
from app.schemas.user import LookupResponse
from app.services.forwarding import ForwardDecision, decide_forward
from app.services.payment_service import StripePayments
from app.services.telephony_service import TwilioTelephony
from app.services.user_service import UserService
from app.services.verify_service import TwilioVerifier
from app.utils.validators import require, validate_phone

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class LifecycleService:
    """
    Moves a user record through verification, subscription and proxy
    provisioning. Providers are passed in; nothing here builds a client.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings,
        verifier: TwilioVerifier,
        payments: StripePayments,
        telephony: TwilioTelephony,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings
        self.users = UserService(db)
        self.verifier = verifier
        self.payments = payments
        self.telephony = telephony
        self.clock = clock

    # --- Verification -----------------------------------------------------

    async def start_verification(self, name: Optional[str], phone: Optional[str]) -> Dict[str, str]:
        phone = validate_phone(phone)
        name = name.strip() if name and name.strip() else None

        user = await self.users.upsert_for_verification(phone, name)
        logger.info(f"Verification started for {phone} (attempt {user.verification_attempt})")

        # The upsert stays committed if the provider call fails
        await self.verifier.send_code(phone)
        return {"status": "success", "message": "Verification code sent."}

    async def check_verification(self, phone: Optional[str], code: Optional[str]) -> Dict[str, str]:
        phone = validate_phone(phone)
        code = require(code, "code")

        user = await self.users.get_user_by_phone(phone)
        if not user:
            raise UserNotFound()
        attempt = user.verification_attempt

        approved = await self.verifier.check_code(phone, code)
        if not approved:
            logger.info(f"Code rejected for {phone}")
            raise CodeRejected()

        if not await self.users.mark_verified(phone, attempt, self.clock()):
            logger.warning(f"Verification for {phone} superseded by a newer attempt")
            raise CodeRejected()

        logger.info(f"Phone verified: {phone}")
        return {"status": "approved", "message": "Phone verified."}

    # --- Subscription -----------------------------------------------------

    async def create_checkout_session(self, phone: Optional[str]) -> Dict[str, str]:
        phone = validate_phone(phone)
        user = await self.users.get_user_by_phone(phone)
        if not user:
            raise UserNotFound()
        if not user.verified:
            raise NotVerified()

        url = await self.payments.create_checkout_session(
            self.settings.STRIPE_PRICE_ID, metadata={"phone": phone}
        )
        await self.telephony.send_message(phone, f"Complete your Quinn subscription here: {url}")
        logger.info(f"Checkout link sent to {phone}")
        return {"status": "success", "message": "Checkout link sent.", "url": url}

    async def handle_payment_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Entry point for the Stripe callback. Only a bad signature is an error;
        everything after it is acknowledged so Stripe does not redeliver.
        """
        event = self.payments.verify_event(payload, signature)
        if event is None:
            return {"status": "ok", "event_type": ""}

        event_type = event.get("type") or ""
        logger.info(f"Received Stripe webhook: {event_type} (id={event.get('id')})")

        if event_type == CHECKOUT_COMPLETED:
            data = event.get("data")
            data = data.get("object") if isinstance(data, dict) else None
            if not isinstance(data, dict):
                logger.error(f"Checkout event {event.get('id')} carries no session object; ignoring")
                return {"status": "ok", "event_type": event_type}
            try:
                await self.handle_checkout_completed(data)
            except LifecycleError as e:
                logger.error(f"Checkout completion for session {data.get('id')} not applied: {e}")
            except Exception:
                logger.exception(f"Error processing checkout completion for session {data.get('id')}")
        else:
            logger.debug(f"Unhandled event type: {event_type}")

        return {"status": "ok", "event_type": event_type}

    async def handle_checkout_completed(self, data: Dict[str, Any]) -> Optional[User]:
        metadata = data.get("metadata") or {}
        phone = metadata.get("phone")
        if not phone:
            logger.warning(f"Checkout session {data.get('id')} has no phone metadata; ignoring")
            return None

        user = await self.users.get_user_by_phone(phone)
        if not user:
            logger.error(f"Checkout completed for unknown phone {phone}")
            return None
        if not user.verified:
            logger.error(f"Checkout completed for unverified phone {phone}; not subscribing")
            return None

        subscription_ref = data.get("subscription")
        if user.has_proxy and user.stripe_subscription_id == subscription_ref:
            logger.info(f"Duplicate checkout completion for {phone}; already provisioned")
            return user

        now = self.clock()
        user = await self.users.update_user(
            user,
            role=Role.SUBSCRIBER,
            status=Status.ACTIVE,
            stripe_customer_id=data.get("customer"),
            stripe_subscription_id=subscription_ref,
            subscription_expires_at=now + timedelta(days=self.settings.SUBSCRIPTION_DAYS),
            last_seen_at=now,
        )
        logger.info(f"Subscription recorded for {phone} until {user.subscription_expires_at}")

        if user.has_proxy:
            # Renewal through a new checkout keeps the existing number
            await self._send_confirmation(user)
            return user

        try:
            await self.provision(user)
        except LifecycleError as e:
            # Payment went through; leave a marker for the operator retry
            logger.error(f"Provisioning failed for {phone}, marked pending: {e}")
            await self.users.update_user(user, provisioning_pending=True)
        except Exception:
            logger.exception(f"Unexpected provisioning error for {phone}, marked pending")
            await self.users.update_user(user, provisioning_pending=True)
        return user

    # --- Provisioning -----------------------------------------------------

    async def provision(self, user: User) -> User:
        purchased = await self.telephony.purchase_number(
            self.settings.PROXY_COUNTRY,
            self.settings.PROXY_AREA_CODE,
            self.settings.proxy_voice_url,
        )
        user = await self.users.update_user(
            user,
            proxy_number=purchased.number,
            proxy_sid=purchased.sid,
            forwarding_enabled=True,
            provisioning_pending=False,
        )
        logger.info(f"Proxy {purchased.number} provisioned for {user.phone}")
        await self._send_confirmation(user)
        return user

    async def _send_confirmation(self, user: User):
        expires = user.subscription_expires_at
        body = (
            f"You're subscribed! Your Quinn number is {user.proxy_number}. "
            f"Active until {expires:%Y-%m-%d}."
        )
        try:
            await self.telephony.send_message(user.phone, body)
        except LifecycleError as e:
            logger.error(f"Confirmation SMS to {user.phone} failed: {e}")

    async def retry_provisioning(self, phone: Optional[str]) -> User:
        phone = validate_phone(phone)
        user = await self.users.get_user_by_phone(phone)
        if not user:
            raise UserNotFound()
        if not user.has_subscription:
            raise NotVerified("No subscription on record.")
        if user.has_proxy:
            return user
        return await self.provision(user)

    async def set_forwarding(self, phone: Optional[str], enabled: bool) -> User:
        phone = validate_phone(phone)
        user = await self.users.get_user_by_phone(phone)
        if not user or not user.has_proxy:
            raise UserNotFound()
        user = await self.users.update_user(user, forwarding_enabled=enabled)
        logger.info(f"Forwarding {'enabled' if enabled else 'disabled'} for {user.proxy_number}")
        return user

    # --- Calls and lookups ------------------------------------------------

    async def route_proxy_call(self, to_number: Optional[str]) -> ForwardDecision:
        user = await self.users.get_user_by_proxy_number(to_number) if to_number else None
        decision = decide_forward(user, self.clock())
        logger.info(f"Inbound call to {to_number}: {decision.outcome.value}")
        return decision

    async def lookup(self, raw: Optional[str]) -> LookupResponse:
        phone = validate_phone(raw)
        user = await self.users.get_user_by_phone(phone)
        if not user:
            return LookupResponse(exists=False)
        if user.verified:
            user = await self.users.touch(user, self.clock())
        return LookupResponse(
            exists=True,
            verified=user.verified,
            name=user.name,
            role=user.role,
            status=user.status,
        )

    check_status = lookup
