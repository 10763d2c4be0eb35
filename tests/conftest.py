"""Test configuration and fixtures."""

import os

# 패키지 import 전에 설정해야 MySQL 드라이버 없이 엔진이 만들어진다
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from decimal import Decimal  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from approval_flow_service.core.db import Base, get_db  # noqa: E402
from approval_flow_service.main import app  # noqa: E402
from approval_flow_service.models import (  # noqa: E402,F401
    approval_step,
    requests,
    system_config,
)
from approval_flow_service.models.directory import Area, Provider, User  # noqa: E402


@pytest.fixture
async def engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    factory = async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
        class_=AsyncSession,
    )
    async with factory() as session:
        yield session


async def seed_org(session: AsyncSession) -> SimpleNamespace:
    """
    Directory used by most tests.

    Areas: RH, Financeiro, Diretoria (the default flow areas) plus A1, B and TI.
    Diretoria has the same person as Director and C-Level.
    The admin is also the Director of TI.
    """
    users = [
        User(id="u-admin", name="Admin", is_admin=True),
        User(id="u-hr", name="HR Director"),
        User(id="u-fin", name="Finance Director"),
        User(id="u-ceo", name="CEO"),
        User(id="u-a1", name="A1 Director"),
        User(id="u-a1-clevel", name="A1 C-Level"),
        User(id="u-b", name="B Director"),
        User(id="u-employee", name="Employee", area_id="area-a1"),
    ]
    session.add_all(users)
    await session.flush()

    session.add_all(
        [
            Area(id="area-rh", name="RH", director_id="u-hr"),
            Area(id="area-fin", name="Financeiro", director_id="u-fin"),
            Area(id="area-board", name="Diretoria", director_id="u-ceo", c_level_id="u-ceo"),
            Area(id="area-a1", name="A1", director_id="u-a1", c_level_id="u-a1-clevel"),
            Area(id="area-b", name="B", director_id="u-b"),
            Area(id="area-ti", name="TI", director_id="u-admin"),
        ]
    )
    await session.flush()

    session.add_all(
        [
            Provider(id="p-a1", name="Ana", area_id="area-a1", salary=Decimal("5000.00")),
            Provider(id="p-b", name="Bruno", area_id="area-b", salary=Decimal("3000.00")),
        ]
    )
    await session.commit()

    return SimpleNamespace(
        admin="u-admin",
        hr="u-hr",
        fin="u-fin",
        ceo="u-ceo",
        a1_director="u-a1",
        a1_clevel="u-a1-clevel",
        b_director="u-b",
        employee="u-employee",
        area_rh="area-rh",
        area_fin="area-fin",
        area_board="area-board",
        area_a1="area-a1",
        area_b="area-b",
        area_ti="area-ti",
        provider_a1="p-a1",
        provider_b="p-b",
    )


@pytest.fixture
async def org(session: AsyncSession) -> SimpleNamespace:
    return await seed_org(session)


@pytest.fixture
async def shared_db(tmp_path):
    """
    File-backed database for tests that need several independent sessions
    (each session gets its own connection, like concurrent HTTP requests).
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'approvals.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
        class_=AsyncSession,
    )
    async with factory() as session:
        org = await seed_org(session)

    yield SimpleNamespace(factory=factory, org=org)
    await engine.dispose()


@pytest.fixture
async def client(session: AsyncSession):
    """HTTP client bound to the app, sharing the test session."""

    async def _get_test_db():
        yield session

    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
