from fastapi import APIRouter, Request, Depends, Form, HTTPException, status
from fastapi.responses import Response
from app.config import get_settings
from app.deps import get_lifecycle
from app.services.forwarding import ForwardOutcome
from app.services.lifecycle_service import LifecycleService
from twilio.request_validator import RequestValidator
from twilio.twiml.voice_response import VoiceResponse
import logging

router = APIRouter(prefix="/voice", tags=["voice"])
logger = logging.getLogger(__name__)

async def validate_twilio_request(request: Request):
    settings = get_settings()
    validator = RequestValidator(settings.TWILIO_AUTH_TOKEN)
    form = await request.form()
    # Twilio sends data as form-encoded
    params = dict(form)
    url = str(request.url)

    # Render or proxies might change protocol to http, ensuring https matches Twilio's request
    if settings.ENVIRONMENT == "production":
        url = url.replace("http://", "https://")

    signature = request.headers.get("X-Twilio-Signature", "")

    if not validator.validate(url, params, signature):
        logger.warning(f"Invalid Twilio signature on {request.url.path}")
        if settings.ENVIRONMENT == "production":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid signature")

@router.post("/proxy", dependencies=[Depends(validate_twilio_request)])
async def proxy_call(
    To: str = Form(...),
    From: str = Form(""),
    lifecycle: LifecycleService = Depends(get_lifecycle),
):
    decision = await lifecycle.route_proxy_call(To)

    response = VoiceResponse()
    if decision.outcome == ForwardOutcome.DIAL:
        # Keep the original caller's ID on the forwarded leg
        response.dial(decision.target, caller_id=From or None)
    else:
        response.say(decision.message)
        response.hangup()

    return Response(content=str(response), media_type="application/xml")
