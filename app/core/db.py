# backend/app/core/db.py
from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.models.tables import Base


def create_engine_and_sessionmaker(
    database_url: str, echo: bool = False
) -> Tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Создает движок и фабрику сессий. Вызывается один раз при старте приложения."""
    engine = create_async_engine(database_url, echo=echo)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    return engine, session_factory


async def init_models(engine: AsyncEngine) -> None:
    """Создает отсутствующие таблицы."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
