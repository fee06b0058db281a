from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ooh_billing.core.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
    future=True,
)

# Reconciliation reads open several short-lived sessions concurrently,
# so every caller gets its own session from this factory.
async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
