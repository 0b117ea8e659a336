from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    DATABASE_URL: str

    # Twilio: Verify for one-time codes, REST for numbers and SMS
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_VERIFY_SERVICE_SID: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    # Stripe hosted checkout
    STRIPE_API_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_PRICE_ID: str = ""
    CHECKOUT_SUCCESS_URL: str = "https://example.com/success"
    CHECKOUT_CANCEL_URL: str = "https://example.com/cancel"

    # Proxy number provisioning
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    PROXY_COUNTRY: str = "US"
    PROXY_AREA_CODE: Optional[str] = None
    SUBSCRIPTION_DAYS: int = 30

    ADMIN_SECRET: str = ""
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    class Config:
        env_file = ".env"

    @property
    def proxy_voice_url(self) -> str:
        return f"{self.PUBLIC_BASE_URL.rstrip('/')}/voice/proxy"

@lru_cache()
def get_settings():
    return Settings()
