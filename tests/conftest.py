import os

# Settings are read at import time; these must be set before resort_api is imported
os.environ.setdefault("RESORT_JWT_SECRET", "test-signing-key")
os.environ.setdefault("RESORT_BCRYPT_ROUNDS", "4")
os.environ.setdefault("RESORT_GENERATE_SCHEMAS", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from resort_api.core.database import get_tortoise_config
from resort_api.main import create_app
from resort_api.models import User, UserRole
from tests.utils import auth_headers, make_user


@pytest.fixture
async def db():
    """Fresh in-memory database for each test"""
    await Tortoise.init(config=get_tortoise_config("sqlite://:memory:"))
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def app():
    return create_app(use_lifespan=False)


@pytest.fixture
async def client(db, app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
async def regular_user(db) -> User:
    return await make_user(username="guest", email="guest@resort.com", phone="+919800000001")


@pytest.fixture
async def admin_user(db) -> User:
    return await make_user(
        username="manager", email="manager@resort.com", phone="+919800000002", role=UserRole.ADMIN
    )


@pytest.fixture
def user_headers(regular_user):
    return auth_headers(regular_user)


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)
