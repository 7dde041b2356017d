"""
Shared fixtures: a fresh in-memory SQLite database per test, seeded users
and logged-in HTTP clients for each role
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402

from database import Base, engine, AsyncSessionLocal  # noqa: E402
from main import app  # noqa: E402
from app.core.auth import hash_password  # noqa: E402
from app.models import User, City, Collaborator, Patient, ProcedureTemplate, UserRole  # noqa: E402

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # The in-memory database lives on the pooled connection
    await engine.dispose()


@pytest.fixture
async def db_session():
    async with AsyncSessionLocal() as session:
        yield session


async def create_user(username: str, name: str, role: UserRole = UserRole.COLLABORATOR) -> User:
    async with AsyncSessionLocal() as session:
        user = User(username=username, name=name, hashed_password=hash_password(PASSWORD), role=role)
        session.add(user)
        await session.commit()
        return user


async def create_city(name: str = "São Paulo", state: str = "SP", monthly_goal: str = None) -> City:
    async with AsyncSessionLocal() as session:
        city = City(name=name, state=state, monthly_goal=monthly_goal)
        session.add(city)
        await session.commit()
        return city


async def create_collaborator(user: User, city: City, revenue_goal="0", consultation_goal: int = 0) -> Collaborator:
    async with AsyncSessionLocal() as session:
        collaborator = Collaborator(
            user_id=user.id,
            city_id=city.id,
            revenue_goal=Decimal(revenue_goal),
            consultation_goal=consultation_goal,
        )
        session.add(collaborator)
        await session.commit()
        return collaborator


async def create_patient(name: str, collaborator: Collaborator = None, **fields) -> Patient:
    async with AsyncSessionLocal() as session:
        patient = Patient(
            name=name,
            collaborator_id=collaborator.id if collaborator else None,
            **fields,
        )
        session.add(patient)
        await session.commit()
        return patient


async def create_template(name: str = "Botox", price: str = "1500.00", validity_days: int = 180) -> ProcedureTemplate:
    async with AsyncSessionLocal() as session:
        template = ProcedureTemplate(name=name, default_price=Decimal(price), validity_days=validity_days)
        session.add(template)
        await session.commit()
        return template


async def login(username: str) -> AsyncClient:
    """
    Open a client with a session cookie for ``username``.
    The bearer token from the same login is attached as well.
    """
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")
    response = await client.post("/api/auth/login", json={"username": username, "password": PASSWORD})
    assert response.status_code == 200, response.text
    client.headers["Authorization"] = f"Bearer {response.json()['access_token']}"
    return client


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as anonymous:
        yield anonymous


@pytest.fixture
async def city():
    return await create_city()


@pytest.fixture
async def admin_user():
    return await create_user("admin", "Administrador", UserRole.ADMIN)


@pytest.fixture
async def admin_client(admin_user):
    client = await login(admin_user.username)
    yield client
    await client.aclose()


@pytest.fixture
async def collaborator(city):
    user = await create_user("maria", "Maria Souza")
    return await create_collaborator(user, city, revenue_goal="10000.00", consultation_goal=20)


@pytest.fixture
async def collaborator_client(collaborator):
    client = await login("maria")
    yield client
    await client.aclose()


@pytest.fixture
async def other_collaborator(city):
    user = await create_user("pedro", "Pedro Lima")
    return await create_collaborator(user, city)


@pytest.fixture
async def template():
    return await create_template()
