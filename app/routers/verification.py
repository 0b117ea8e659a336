from fastapi import APIRouter, Depends
from app.deps import get_lifecycle
from app.schemas.user import (
    Acknowledgement,
    CheckVerificationRequest,
    LookupResponse,
    PhoneRequest,
    StartVerificationRequest,
)
from app.services.lifecycle_service import LifecycleService
from typing import Optional

router = APIRouter(tags=["verification"])

@router.post("/start-verification", response_model=Acknowledgement)
async def start_verification(
    body: StartVerificationRequest,
    lifecycle: LifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.start_verification(body.name, body.phone)

@router.post("/verify", response_model=Acknowledgement)
async def verify(
    body: CheckVerificationRequest,
    lifecycle: LifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.check_verification(body.phone, body.code)

@router.get("/lookup", response_model=LookupResponse)
async def lookup(
    phone: Optional[str] = None,
    lifecycle: LifecycleService = Depends(get_lifecycle),
):
    # Caller-ID lookup from the voice front end
    return await lifecycle.lookup(phone)

@router.post("/status", response_model=LookupResponse)
async def check_status(
    body: PhoneRequest,
    lifecycle: LifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.check_status(body.phone)
