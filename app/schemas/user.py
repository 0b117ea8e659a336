from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional
from app.models.user import Role, Status

# Request bodies keep fields optional so that a missing value is reported
# as MissingRequiredField instead of a generic 422.

class StartVerificationRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None

class CheckVerificationRequest(BaseModel):
    phone: Optional[str] = None
    code: Optional[str] = None

class PhoneRequest(BaseModel):
    phone: Optional[str] = None

class ForwardingUpdate(BaseModel):
    phone: Optional[str] = None
    enabled: bool = True

class Acknowledgement(BaseModel):
    status: str
    message: str

class CheckoutResponse(Acknowledgement):
    url: str

class LookupResponse(BaseModel):
    exists: bool
    verified: bool = False
    name: Optional[str] = None
    role: Optional[Role] = None
    status: Optional[Status] = None

class ProvisioningResponse(BaseModel):
    phone: str
    proxy_number: str
    forwarding_enabled: bool
    subscription_expires_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
