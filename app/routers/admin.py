from fastapi import APIRouter, Depends
from app.deps import get_lifecycle, require_admin
from app.schemas.user import ForwardingUpdate, PhoneRequest, ProvisioningResponse
from app.services.lifecycle_service import LifecycleService

# Operator endpoints for subscribers the payment webhook could not finish
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

@router.post("/provision", response_model=ProvisioningResponse)
async def retry_provisioning(
    body: PhoneRequest,
    lifecycle: LifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.retry_provisioning(body.phone)

@router.post("/forwarding", response_model=ProvisioningResponse)
async def set_forwarding(
    body: ForwardingUpdate,
    lifecycle: LifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.set_forwarding(body.phone, body.enabled)
