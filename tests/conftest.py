import os

# Set dummy env vars for testing
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["TWILIO_ACCOUNT_SID"] = "AC_TEST"
os.environ["TWILIO_AUTH_TOKEN"] = "AUTH_TEST"
os.environ["TWILIO_VERIFY_SERVICE_SID"] = "VA_TEST"
os.environ["TWILIO_PHONE_NUMBER"] = "+15005550006"
os.environ["STRIPE_API_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["STRIPE_PRICE_ID"] = "price_test"
os.environ["ADMIN_SECRET"] = "admin-test"
os.environ["ENVIRONMENT"] = "development"

import hashlib
import hmac
import json
import time
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import sessionmaker
from app.database import Base, get_db
from app.deps import get_payments, get_telephony, get_verifier
from app.errors import NoNumbersAvailable, ProviderUnavailable
from app.main import app
from app.config import get_settings
# Import models to ensure they are registered with Base.metadata
from app.models.user import User
from app.services.payment_service import StripePayments
from app.services.telephony_service import PurchasedNumber

# Use SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(
    class_=AsyncSession, autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
)

async def override_get_db():
    async with TestingSessionLocal() as session:
        yield session

app.dependency_overrides[get_db] = override_get_db


class FakeVerifier:
    """Twilio Verify stand-in: codes in `approved_codes` pass."""

    def __init__(self):
        self.sent = []
        self.checked = []
        self.approved_codes = {"000000"}
        self.available = True
        self.on_check = None

    async def send_code(self, phone):
        if not self.available:
            raise ProviderUnavailable("Twilio Verify")
        self.sent.append(phone)
        return "VE_TEST"

    async def check_code(self, phone, code):
        if not self.available:
            raise ProviderUnavailable("Twilio Verify")
        self.checked.append((phone, code))
        if self.on_check:
            await self.on_check(phone)
        return code in self.approved_codes


class FakeTelephony:
    def __init__(self):
        self.numbers = ["+15557770001", "+15557770002"]
        self.purchased = []
        self.messages = []
        self.available = True

    async def list_available_numbers(self, country, area_code=None, limit=1):
        return self.numbers[:limit]

    async def purchase_number(self, country, area_code, voice_url):
        if not self.available:
            raise ProviderUnavailable("Twilio")
        if not self.numbers:
            raise NoNumbersAvailable()
        number = self.numbers.pop(0)
        self.purchased.append((number, voice_url))
        return PurchasedNumber(number=number, sid=f"PN{len(self.purchased):04d}")

    async def send_message(self, to, body):
        self.messages.append((to, body))
        return "SM_TEST"


class FakePayments(StripePayments):
    """Real webhook signature checks; checkout creation is recorded instead of sent."""

    def __init__(self, settings):
        super().__init__(
            settings.STRIPE_API_KEY,
            settings.STRIPE_WEBHOOK_SECRET,
            settings.CHECKOUT_SUCCESS_URL,
            settings.CHECKOUT_CANCEL_URL,
        )
        self.sessions = []

    async def create_checkout_session(self, price_id, metadata):
        self.sessions.append((price_id, metadata))
        return f"https://checkout.stripe.test/c/{len(self.sessions)}"


def sign_payload(payload: bytes, secret: str = "whsec_test", timestamp: int = None) -> str:
    ts = timestamp or int(time.time())
    signed = f"{ts}.{payload.decode()}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


def checkout_event(phone=None, customer="cus_test", subscription="sub_test") -> bytes:
    metadata = {"phone": phone} if phone else {}
    event = {
        "id": "evt_test",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": "cs_test",
                "customer": customer,
                "subscription": subscription,
                "metadata": metadata,
            }
        },
    }
    return json.dumps(event).encode()


async def fetch_user(session: AsyncSession, phone: str):
    result = await session.execute(
        select(User).filter(User.phone == phone).execution_options(populate_existing=True)
    )
    return result.scalars().first()


@pytest.fixture
def verifier():
    return FakeVerifier()

@pytest.fixture
def telephony():
    return FakeTelephony()

@pytest.fixture
def payments():
    return FakePayments(get_settings())

@pytest.fixture(autouse=True)
def providers(verifier, telephony, payments):
    app.dependency_overrides[get_verifier] = lambda: verifier
    app.dependency_overrides[get_telephony] = lambda: telephony
    app.dependency_overrides[get_payments] = lambda: payments
    yield
    for dep in (get_verifier, get_telephony, get_payments):
        app.dependency_overrides.pop(dep, None)

@pytest_asyncio.fixture
async def prepare_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

@pytest_asyncio.fixture
async def db_session(prepare_database):
    async with TestingSessionLocal() as session:
        yield session

@pytest_asyncio.fixture
async def client(prepare_database):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
