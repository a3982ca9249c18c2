import logging

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from .config import settings

logger = logging.getLogger(__name__)

# Create Async Engine
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, future=True)

async_session = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def init_db():
    # Import models so every table is registered on the metadata
    from institute_crm import models  # noqa: F401

    async with engine.begin() as conn:
        if settings.RECREATE_TABLES:
            logger.warning("RECREATE_TABLES is set, dropping all tables")
            await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncSession:
    async with async_session() as session:
        yield session
