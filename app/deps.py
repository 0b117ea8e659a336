from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.config import Settings, get_settings
from app.database import get_db
from app.services.lifecycle_service import LifecycleService
from app.services.payment_service import StripePayments
from app.services.telephony_service import TwilioTelephony
from app.services.verify_service import TwilioVerifier
from typing import Optional
import hmac

# Provider clients are built once in the app lifespan and kept on app.state

def get_verifier(request: Request) -> TwilioVerifier:
    return request.app.state.verifier

def get_payments(request: Request) -> StripePayments:
    return request.app.state.payments

def get_telephony(request: Request) -> TwilioTelephony:
    return request.app.state.telephony

def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    verifier: TwilioVerifier = Depends(get_verifier),
    payments: StripePayments = Depends(get_payments),
    telephony: TwilioTelephony = Depends(get_telephony),
) -> LifecycleService:
    return LifecycleService(db, settings, verifier, payments, telephony)

def require_admin(
    x_admin_secret: Optional[str] = Header(None, alias="X-Admin-Secret"),
    settings: Settings = Depends(get_settings),
):
    if not settings.ADMIN_SECRET:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Admin endpoints not configured")
    if not x_admin_secret or not hmac.compare_digest(x_admin_secret.encode(), settings.ADMIN_SECRET.encode()):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
