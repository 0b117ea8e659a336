"""Failure taxonomy for the user lifecycle.

Each error carries the HTTP status it maps to and the message shown to the
caller; ``app.main`` renders them as JSON.
"""
from typing import Any, Dict


class LifecycleError(Exception):
    status_code = 400
    message = "Request failed."

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class MissingRequiredField(LifecycleError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field.capitalize()} required.")


class InvalidPhoneFormat(LifecycleError):
    message = "Invalid phone number format."


class UserNotFound(LifecycleError):
    status_code = 404
    message = "User not found."


class NotVerified(LifecycleError):
    status_code = 403
    message = "Phone number not verified."


class CodeRejected(LifecycleError):
    message = "Invalid or expired code."

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "pending", "message": self.message}


class SignatureInvalid(LifecycleError):
    message = "Invalid signature."


class ProviderUnavailable(LifecycleError):
    status_code = 503

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"{provider} unavailable.")


class NoNumbersAvailable(LifecycleError):
    status_code = 503
    message = "No proxy numbers available."
