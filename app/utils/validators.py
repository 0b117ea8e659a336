from typing import Optional
from app.errors import InvalidPhoneFormat, MissingRequiredField
import re

def require(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise MissingRequiredField(field)
    return str(value).strip()

def normalize_phone(phone: str) -> str:
    """
    Canonical form used as the user key:
    - 10 digits            -> +1XXXXXXXXXX (US/CA without country code)
    - 11 digits, leading 1 -> +1XXXXXXXXXX
    - '+' and 11+ digits   -> kept as given (already international)
    Anything else is rejected.
    """
    raw = (phone or "").strip()
    digits = re.sub(r"\D", "", raw)

    if len(digits) == 10:
        return "+1" + digits
    if len(digits) == 11 and digits.startswith("1"):
        return "+" + digits
    if raw.startswith("+") and len(digits) >= 11:
        return raw
    raise InvalidPhoneFormat()

def validate_phone(phone: Optional[str], field: str = "phone") -> str:
    return normalize_phone(require(phone, field))
