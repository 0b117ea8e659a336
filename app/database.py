from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from app.config import get_settings

settings = get_settings()

ASYNCPG_SCHEME = "postgresql+asyncpg://"

def build_engine_url(raw_url: str):
    """
    Transforms the DATABASE_URL for asyncpg compatibility:
    - Replaces postgres:// and postgresql:// with postgresql+asyncpg://
    - Strips ?sslmode=require from query params and passes it as connect_args instead

    Other schemes (sqlite+aiosqlite:// in tests) pass through untouched.
    """
    if raw_url.startswith("postgres://"):
        raw_url = raw_url.replace("postgres://", ASYNCPG_SCHEME, 1)
    elif raw_url.startswith("postgresql://"):
        raw_url = raw_url.replace("postgresql://", ASYNCPG_SCHEME, 1)

    if not raw_url.startswith(ASYNCPG_SCHEME):
        return raw_url, {}

    url = make_url(raw_url)
    sslmode = url.query.get("sslmode")
    if isinstance(sslmode, tuple):
        sslmode = sslmode[0]
    url = url.difference_update_query(["sslmode"])

    connect_args = {}
    if sslmode == "require":
        connect_args["ssl"] = "require"

    return url.render_as_string(hide_password=False), connect_args

database_url, connect_args = build_engine_url(settings.DATABASE_URL)

engine = create_async_engine(database_url, echo=False, connect_args=connect_args)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

Base = declarative_base()

async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
