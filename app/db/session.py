from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from app.core.config import settings

engine = create_async_engine(settings.db_url, echo=False)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_session():
    """Dependencia FastAPI: una sesión por petición, cerrada siempre al terminar."""
    async with SessionLocal() as s:
        yield s


__all__ = ["engine", "SessionLocal", "get_session", "AsyncSession"]
