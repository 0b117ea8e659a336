import asyncio
import sys
from datetime import datetime, timedelta, timezone
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from app.config import get_settings
from app.database import build_engine_url
from app.models.user import Role, Status
from app.services.user_service import UserService
from app.utils.validators import normalize_phone

async def setup_user(phone: str, proxy_number: str):
    """Seed an active subscriber with a proxy number, for trying /voice/proxy by hand."""
    settings = get_settings()
    db_url, connect_args = build_engine_url(settings.DATABASE_URL)
    print(f"Connecting to database: {db_url}")

    engine = create_async_engine(db_url, echo=True, connect_args=connect_args)
    async_session = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    phone = normalize_phone(phone)
    now = datetime.now(timezone.utc)

    async with async_session() as session:
        users = UserService(session)
        user = await users.get_user_by_phone(phone)
        if not user:
            print(f"Creating user {phone}...")
            user = await users.upsert_for_verification(phone, "Test Subscriber")
        else:
            print(f"User {phone} already exists, updating.")

        await users.update_user(
            user,
            role=Role.SUBSCRIBER,
            status=Status.ACTIVE,
            verified=True,
            verified_at=user.verified_at or now,
            stripe_customer_id="cus_manual",
            stripe_subscription_id="sub_manual",
            subscription_expires_at=now + timedelta(days=settings.SUBSCRIPTION_DAYS),
            proxy_number=normalize_phone(proxy_number),
            forwarding_enabled=True,
            provisioning_pending=False,
        )
        print(f"{phone} is active; calls to {proxy_number} forward to it.")

    await engine.dispose()

if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("usage: python -m scripts.setup_user <phone> <proxy_number>")
        sys.exit(1)
    asyncio.run(setup_user(sys.argv[1], sys.argv[2]))
