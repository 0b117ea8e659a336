from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import update
from app.models.user import User, Role, Status
from typing import Optional, Dict, Any
from datetime import datetime

class UserService:
    """Keyed-by-phone record store over the users table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_phone(self, phone: str) -> Optional[User]:
        result = await self.db.execute(select(User).filter(User.phone == phone))
        return result.scalars().first()

    async def get_user_by_proxy_number(self, proxy_number: str) -> Optional[User]:
        result = await self.db.execute(select(User).filter(User.proxy_number == proxy_number))
        return result.scalars().first()

    async def upsert_for_verification(self, phone: str, name: Optional[str] = None) -> User:
        """Insert the record or reset it to pending_verification."""
        user = await self.get_user_by_phone(phone)
        if not user:
            user = User(
                phone=phone,
                name=name,
                role=Role.CALLER,
                status=Status.PENDING_VERIFICATION,
                verified=False,
                verification_attempt=1,
            )
            self.db.add(user)
        else:
            user.name = name
            user.status = Status.PENDING_VERIFICATION
            user.verified = False
            if user.role == Role.SUBSCRIBER:
                user.role = Role.CALLER
            user.verification_attempt = (user.verification_attempt or 0) + 1
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def mark_verified(self, phone: str, attempt: int, now: datetime) -> bool:
        """
        Conditional update: applies only while the attempt token read before the
        provider check is still current. Returns False when a newer
        start-verification reset the record in between.
        """
        user = await self.get_user_by_phone(phone)
        if not user or user.verification_attempt != attempt:
            return False

        values: Dict[str, Any] = {
            "verified": True,
            "last_seen_at": now,
            "verified_at": user.verified_at or now,
        }
        if user.has_subscription:
            values.update(status=Status.ACTIVE, role=Role.SUBSCRIBER)
        else:
            values.update(status=Status.VERIFIED, role=Role.CUSTOMER)

        result = await self.db.execute(
            update(User)
            .where(User.phone == phone, User.verification_attempt == attempt)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount != 1:
            return False
        await self.db.refresh(user)
        return True

    async def touch(self, user: User, now: datetime) -> User:
        user.last_seen_at = now
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def update_user(self, user: User, **kwargs) -> User:
        for key, value in kwargs.items():
            setattr(user, key, value)
        await self.db.commit()
        await self.db.refresh(user)
        return user
