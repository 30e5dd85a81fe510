from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bfood.config import settings

engine = create_async_engine(
    settings.database_url,
    pool_pre_ping=True,
    pool_recycle=3600,
    echo=settings.environment == "development",
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
