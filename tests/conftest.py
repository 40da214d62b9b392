import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from settleup.main import app
from settleup.db.session import Base, get_db
from settleup.models.user import User
from settleup.models.group import Group
from settleup.models.group_member import GroupMember
from helpers import ALICE, BOB, CAROL, DAVE, TRIP

@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    # Alice, Bob and Carol share a trip; Dave is only Alice's friend
    async with factory() as session:
        session.add_all([
            User(id=ALICE, name="Alice", email="alice@example.com"),
            User(id=BOB, name="Bob", email="bob@example.com"),
            User(id=CAROL, name="Carol", email="carol@example.com"),
            User(id=DAVE, name="Dave", email="dave@example.com"),
        ])
        await session.flush()
        session.add(Group(id=TRIP, name="Trip", created_by=ALICE))
        await session.flush()
        session.add_all([
            GroupMember(group_id=TRIP, user_id=ALICE),
            GroupMember(group_id=TRIP, user_id=BOB),
            GroupMember(group_id=TRIP, user_id=CAROL),
        ])
        await session.commit()

    yield factory
    await engine.dispose()

@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
