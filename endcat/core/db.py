from collections.abc import AsyncGenerator

import anyio
from loguru import logger
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from endcat.core.config import settings

engine = create_async_engine(settings.db_url)


async def get_db() -> AsyncGenerator[AsyncSession]:
    async with AsyncSession(
        engine, autocommit=False, autoflush=False, expire_on_commit=False
    ) as session:
        yield session


def get_session() -> AsyncSession:
    return AsyncSession(engine, expire_on_commit=False)


async def init_db(db_engine: AsyncEngine = engine) -> None:
    """Create the database file's directory and any missing tables."""
    # Register tables on the metadata
    import endcat.models.account
    import endcat.models.gacha_pull  # noqa: F401

    url = make_url(str(db_engine.url))
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        await anyio.Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    async with db_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info(f"Database ready at {url.render_as_string(hide_password=True)}")
