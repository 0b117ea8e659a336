from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from app.models.user import User
import enum

class ForwardOutcome(str, enum.Enum):
    NOT_ACTIVE = "not_active"
    FORWARDING_DISABLED = "forwarding_disabled"
    EXPIRED = "expired"
    DIAL = "dial"

MESSAGES = {
    ForwardOutcome.NOT_ACTIVE: "This number is not active.",
    ForwardOutcome.FORWARDING_DISABLED: "Forwarding is disabled for this number.",
    ForwardOutcome.EXPIRED: "This subscription has expired.",
}

@dataclass
class ForwardDecision:
    outcome: ForwardOutcome
    target: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        return MESSAGES.get(self.outcome)

def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

def decide_forward(user: Optional[User], now: datetime) -> ForwardDecision:
    """Checked in order: record exists, forwarding flag, expiry."""
    if user is None or not user.proxy_number:
        return ForwardDecision(ForwardOutcome.NOT_ACTIVE)
    if not user.forwarding_enabled:
        return ForwardDecision(ForwardOutcome.FORWARDING_DISABLED)
    expires_at = user.subscription_expires_at
    if expires_at is None or _as_utc(expires_at) < now:
        return ForwardDecision(ForwardOutcome.EXPIRED)
    return ForwardDecision(ForwardOutcome.DIAL, target=user.phone)
