import os

os.environ.setdefault("JWT_SECRET", "test-secret")

from decimal import Decimal

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from novahealth.db import get_session
from novahealth.main import app
from novahealth.models import Base, Supplement, User
from novahealth.services.security import create_access_token, hash_password

PASSWORD = "password123"

CATALOG = [
    {
        "name": "Vitamin D3",
        "description": "Supports bone health and immune function, raises low vitamin levels",
        "category": "vitamin",
        "recommended_dosage": "2000 IU",
        "price": Decimal("12.50"),
    },
    {
        "name": "Omega-3 Fish Oil",
        "description": "Helps lower LDL cholesterol and triglycerides",
        "category": "omega",
        "recommended_dosage": "1000 mg",
        "price": Decimal("19.99"),
    },
    {
        "name": "Magnesium Glycinate",
        "description": "Supports muscle and nerve function",
        "category": "mineral",
        "recommended_dosage": "400 mg",
        "price": Decimal("15.00"),
    },
    {
        "name": "Iron Bisglycinate",
        "description": "Gentle iron for low ferritin",
        "category": "mineral",
        "recommended_dosage": "25 mg",
        "price": Decimal("9.00"),
    },
]


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def _session_override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    # 500-ответы проверяем как ответы, а не как исключения
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


async def create_user(session_factory, email: str, role: str = "user") -> User:
    async with session_factory() as session:
        user = User(
            email=email,
            password_hash=hash_password(PASSWORD),
            first_name="Test",
            last_name="User",
            role=role,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id=user.id, role=user.role)}"}


@pytest_asyncio.fixture
async def user(session_factory):
    return await create_user(session_factory, "user@example.com")


@pytest_asyncio.fixture
async def auth_headers(user):
    return bearer(user)


@pytest_asyncio.fixture
async def admin_headers(session_factory):
    admin = await create_user(session_factory, "admin@example.com", role="admin")
    return bearer(admin)


@pytest_asyncio.fixture
async def catalog(session_factory) -> dict[str, Supplement]:
    async with session_factory() as session:
        rows = [Supplement(**item) for item in CATALOG]
        session.add_all(rows)
        await session.commit()
        return {s.name: s for s in rows}
