from fastapi import APIRouter, Depends, Header, Request
from app.deps import get_lifecycle
from app.schemas.user import CheckoutResponse, PhoneRequest
from app.services.lifecycle_service import LifecycleService
from typing import Optional

router = APIRouter(tags=["payments"])

@router.post("/create-checkout-session", response_model=CheckoutResponse)
async def create_checkout_session(
    body: PhoneRequest,
    lifecycle: LifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.create_checkout_session(body.phone)

@router.post("/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    lifecycle: LifecycleService = Depends(get_lifecycle),
):
    # Raw bytes: the signature covers the body exactly as sent
    payload = await request.body()
    return await lifecycle.handle_payment_event(payload, stripe_signature)
