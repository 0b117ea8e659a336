from sqlalchemy import Column, Integer, String, DateTime, Boolean, Enum
from sqlalchemy.sql import func
from app.database import Base
import enum

class Role(str, enum.Enum):
    CALLER = "caller"
    CUSTOMER = "customer"
    SUBSCRIBER = "subscriber"

class Status(str, enum.Enum):
    NEW = "new"
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
    ACTIVE = "active"

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    role = Column(Enum(Role), nullable=False, default=Role.CALLER)
    status = Column(Enum(Status), nullable=False, default=Status.NEW)

    # Verification
    verified = Column(Boolean, nullable=False, default=False)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    # Bumped on every start-verification; an approval only lands if unchanged
    verification_attempt = Column(Integer, nullable=False, default=0)

    # Subscription (set by the checkout webhook)
    stripe_customer_id = Column(String, nullable=True)
    stripe_subscription_id = Column(String, nullable=True)
    subscription_expires_at = Column(DateTime(timezone=True), nullable=True)

    # Proxy forwarding number
    proxy_number = Column(String, unique=True, index=True, nullable=True)
    proxy_sid = Column(String, nullable=True)
    forwarding_enabled = Column(Boolean, nullable=False, default=True)
    provisioning_pending = Column(Boolean, nullable=False, default=False)

    last_seen_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def has_subscription(self) -> bool:
        return self.stripe_subscription_id is not None and self.subscription_expires_at is not None

    @property
    def has_proxy(self) -> bool:
        return self.proxy_number is not None
