"""MIC Service — Pytest Configuration & Fixtures.

Provides:
1. A throwaway SQLite database per test (schema created from the models).
2. AsyncClient for testing FastAPI endpoints.
3. Factory fixtures for users, machines, alerts and bearer tokens.

Usage:
    async def test_my_endpoint(client, make_user, auth_headers_for):
        admin = await make_user(role=UserRole.ADMIN)
        response = await client.get("/api/machines", headers=auth_headers_for(admin))
        assert response.status_code == 200
"""

import os

# Settings are cached on first use, so the environment must be in place
# before anything imports config.
os.environ.setdefault("SECURITY_JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECURITY_BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECURITY_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import uuid
from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from api_server import app
from database import create_all, get_db
from db.models import Alert, Machine, User
from schemas.alert import AlertPriority, AlertStatus
from schemas.machine import MachineStatus
from schemas.security import Actor, UserRole
from services.auth_service import get_auth_service


# =============================================================================
# Database Engine & Sessions
# =============================================================================

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """A file-backed SQLite database, fresh for every test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'mic_test.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding data and calling services directly."""
    async with session_maker() as session:
        yield session


# =============================================================================
# API Client
# =============================================================================

@pytest_asyncio.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app.

    Each request gets its own session from the test database, committed on
    success and rolled back on error, like the production dependency.
    """

    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_db, None)


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_user(db_session) -> Callable:
    """Insert a user. The password is always ``password123``."""

    async def _make(
        role: UserRole = UserRole.USER,
        name: str | None = None,
        email: str | None = None,
        is_active: bool = True,
    ) -> User:
        suffix = uuid.uuid4().hex[:8]
        user = User(
            name=name or f"{role.value}-{suffix}",
            email=email or f"{role.value}-{suffix}@mic.io",
            hashed_password=await get_auth_service().hash_password("password123"),
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_machine(db_session) -> Callable:
    async def _make(status: MachineStatus = MachineStatus.OPERATIONAL, **fields) -> Machine:
        suffix = uuid.uuid4().hex[:8]
        machine = Machine(
            name=fields.pop("name", f"Lathe {suffix}"),
            model=fields.pop("model", "LX-200"),
            serial_number=fields.pop("serial_number", f"SN-{suffix}"),
            location=fields.pop("location", "Hall A"),
            status=status,
            **fields,
        )
        db_session.add(machine)
        await db_session.commit()
        return machine

    return _make


@pytest.fixture
def make_alert(db_session) -> Callable:
    """Insert an alert directly, bypassing the machine status coupling."""

    async def _make(
        machine: Machine,
        created_by: User,
        priority: AlertPriority = AlertPriority.MEDIUM,
        status: AlertStatus = AlertStatus.OPEN,
        assigned_to: User | None = None,
        title: str = "Spindle vibration",
        description: str = "Unusual vibration at high RPM",
    ) -> Alert:
        alert = Alert(
            title=title,
            description=description,
            machine_id=machine.id,
            priority=priority,
            status=status,
            created_by_id=created_by.id,
            assigned_to_id=assigned_to.id if assigned_to else None,
            photos=[],
        )
        db_session.add(alert)
        await db_session.commit()
        return alert

    return _make


# =============================================================================
# Authentication Helpers
# =============================================================================

@pytest.fixture
def actor_of() -> Callable[[User], Actor]:
    """The service-layer identity for a stored user."""
    return lambda user: Actor(id=user.id, role=user.role, name=user.name)


@pytest.fixture
def auth_headers_for() -> Callable[[User], dict[str, str]]:
    """Build bearer headers for a stored user."""

    def _headers(user: User) -> dict[str, str]:
        token = get_auth_service().create_access_token(
            user_id=str(user.id),
            name=user.name,
            role=user.role,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user(role=UserRole.ADMIN, name="Ada Admin")


@pytest_asyncio.fixture
async def technician(make_user) -> User:
    return await make_user(role=UserRole.TECHNICIAN, name="Tom Tech")


@pytest_asyncio.fixture
async def plain_user(make_user) -> User:
    return await make_user(role=UserRole.USER, name="Uma User")
