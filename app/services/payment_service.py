"""
Stripe checkout sessions and webhook authentication.

The webhook signature is an HMAC over the raw request body, so
``verify_event`` must receive the bytes exactly as delivered and only
parses them as JSON once the signature has been accepted.
"""
import json
import logging
from typing import Any, Dict, Optional
from fastapi.concurrency import run_in_threadpool
import stripe
from app.errors import ProviderUnavailable, SignatureInvalid

logger = logging.getLogger(__name__)

PROVIDER = "Stripe"

class StripePayments:
    def __init__(self, api_key: str, webhook_secret: str, success_url: str, cancel_url: str):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.success_url = success_url
        self.cancel_url = cancel_url

    async def create_checkout_session(self, price_id: str, metadata: Dict[str, str]) -> str:
        if not self.api_key or not price_id:
            logger.error("Stripe API key or price ID missing.")
            raise ProviderUnavailable(PROVIDER)
        try:
            session = await run_in_threadpool(
                stripe.checkout.Session.create,
                api_key=self.api_key,
                mode="subscription",
                line_items=[{"price": price_id, "quantity": 1}],
                metadata=metadata,
                subscription_data={"metadata": metadata},
                success_url=self.success_url,
                cancel_url=self.cancel_url,
            )
        except stripe.StripeError as e:
            logger.error(f"Checkout session creation failed: {e}")
            raise ProviderUnavailable(PROVIDER) from e
        logger.info(f"Created checkout session {session.id}")
        return session.url

    def verify_event(self, payload: bytes, signature: str) -> Optional[Dict[str, Any]]:
        if not self.webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET missing; rejecting webhook.")
            raise SignatureInvalid()
        if not signature:
            logger.warning("Webhook received without Stripe-Signature header")
            raise SignatureInvalid()

        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body, signature, self.webhook_secret, stripe.Webhook.DEFAULT_TOLERANCE
            )
        except (UnicodeDecodeError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Invalid Stripe signature: {e}")
            raise SignatureInvalid() from e

        # Authentic but unusable bodies are still acknowledged by the caller
        try:
            event = json.loads(body)
        except ValueError as e:
            logger.error(f"Signed webhook payload is not JSON: {e}")
            return None
        if not isinstance(event, dict):
            logger.error(f"Signed webhook payload is not an object: {type(event).__name__}")
            return None
        return event
