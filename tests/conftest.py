from collections.abc import AsyncGenerator, Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel.ext.asyncio.session import AsyncSession

from endcat.core.db import init_db
from tests.factories import FakeRecordSource


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    db_engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await init_db(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> Callable[[], AsyncSession]:
    return lambda: AsyncSession(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory: Callable[[], AsyncSession]) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as db:
        yield db


@pytest.fixture
def source() -> FakeRecordSource:
    return FakeRecordSource()
