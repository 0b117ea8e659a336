from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from app.config import get_settings
from app.database import engine
from app.errors import LifecycleError
from app.routers import admin, payments, verification, voice
from app.services.payment_service import StripePayments
from app.services.telephony_service import TwilioTelephony
from app.services.verify_service import TwilioVerifier
from app.utils.logging import setup_logging

logger = setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.verifier = TwilioVerifier(
        settings.TWILIO_ACCOUNT_SID,
        settings.TWILIO_AUTH_TOKEN,
        settings.TWILIO_VERIFY_SERVICE_SID,
    )
    app.state.telephony = TwilioTelephony(
        settings.TWILIO_ACCOUNT_SID,
        settings.TWILIO_AUTH_TOKEN,
        settings.TWILIO_PHONE_NUMBER,
    )
    app.state.payments = StripePayments(
        settings.STRIPE_API_KEY,
        settings.STRIPE_WEBHOOK_SECRET,
        settings.CHECKOUT_SUCCESS_URL,
        settings.CHECKOUT_CANCEL_URL,
    )
    if not app.state.verifier.configured:
        logger.warning("Twilio Verify not configured; verification requests will fail")
    logger.info(f"Quinn backend starting ({settings.ENVIRONMENT})")
    yield
    await engine.dispose()

app = FastAPI(title="Quinn Backend", lifespan=lifespan)

app.include_router(verification.router)
app.include_router(payments.router)
app.include_router(voice.router)
app.include_router(admin.router)

@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Quinn backend running with Twilio Verify."

@app.get("/health")
async def health():
    return {"status": "ok"}
