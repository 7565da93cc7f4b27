"""
Root conftest for the pytest test suite.

This file contains the main fixtures that are used across the entire test suite.

This setup uses a manual, async-native approach to database initialization
to ensure that each test runs against a fresh, isolated in-memory database.
Requests go through an ``httpx.AsyncClient`` bound to the ASGI app, so they
run on the test's own event loop and see the test database; the app's
production lifespan is never entered.

Key Fixtures:
- `anyio_backend`: Specifies the asyncio backend.
- `initialize_test_db`: (autouse) Creates a fresh DB schema and two users for each test.
- `client`: Provides a non-authenticated AsyncClient.
- `admin_user` / `customer_user`: The users created for every test.
- `auth_headers`: Bearer headers for the customer user (reports need no role).
- `admin_headers`: Bearer headers for the admin user.
"""

from typing import Any, AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from tortoise import Tortoise

from backoffice.core.config import build_tortoise_config
from backoffice.features.auth.models import User, UserRole
from backoffice.features.auth.security import create_access_token, get_password_hash
from backoffice.main import app

ADMIN_EMAIL = "adminfixture@example.com"
ADMIN_PASSWORD = "adminpassword123"
CUSTOMER_EMAIL = "customerfixture@example.com"
CUSTOMER_PASSWORD = "customerpassword123"


async def add_admin_user() -> User:
    return await User.create(
        full_name="Admin Fixture",
        email=ADMIN_EMAIL,
        hashed_password=get_password_hash(ADMIN_PASSWORD),
        role=UserRole.ADMIN,
    )


async def add_customer_user() -> User:
    return await User.create(
        full_name="Customer Fixture",
        email=CUSTOMER_EMAIL,
        hashed_password=get_password_hash(CUSTOMER_PASSWORD),
        role=UserRole.CUSTOMER,
    )


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """
    Specifies the asyncio backend.
    """
    return "asyncio"


@pytest_asyncio.fixture(scope="function", autouse=True)
async def initialize_test_db() -> AsyncGenerator[None, None]:
    """
    Initializes the database for each test function.

    This async, autouse fixture creates a fresh in-memory database and schema
    for each test and tears it down afterwards.
    """
    await Tortoise.init(config=build_tortoise_config("sqlite://:memory:"))
    await Tortoise.generate_schemas()
    await add_admin_user()
    await add_customer_user()

    yield

    await Tortoise.close_connections()


@pytest_asyncio.fixture(scope="function")
async def client() -> AsyncGenerator[httpx.AsyncClient, Any]:
    """
    Provides a non-authenticated client talking to the app in-process.
    """
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def admin_user() -> User:
    return await User.get(email=ADMIN_EMAIL)


@pytest_asyncio.fixture(scope="function")
async def customer_user() -> User:
    return await User.get(email=CUSTOMER_EMAIL)


@pytest.fixture(scope="function")
def auth_headers() -> dict[str, str]:
    """
    Bearer headers for the customer fixture user.

    The token is minted directly so the fixture users keep a login count of 0.
    """
    token = create_access_token(data={"sub": CUSTOMER_EMAIL})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def admin_headers() -> dict[str, str]:
    token = create_access_token(data={"sub": ADMIN_EMAIL})
    return {"Authorization": f"Bearer {token}"}
