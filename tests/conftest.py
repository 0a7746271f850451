import os
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

# IMPORTANT:
# Set env vars BEFORE importing app.core.config/app.main (pydantic settings load at import time)
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./friends_test.db")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173")

from app.main import app as fastapi_app  # noqa: E402
from app.db.base_class import Base  # noqa: E402
import app.db.base  # noqa: F401,E402  (register models)
from app.db.session import engine, AsyncSessionLocal  # noqa: E402
from app.api.deps import get_db  # noqa: E402


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db_session():
    # fresh schema per test keeps usernames and friend codes from leaking between tests
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client(db_session):
    """
    Overrides app.api.deps.get_db so routes and the test share one session.
    """

    async def _override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    fastapi_app.dependency_overrides.pop(get_db, None)


def _unique(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


@pytest.fixture
def unique_str():
    return _unique


@pytest.fixture
def user_factory(unique_str):
    async def _create(
        client: AsyncClient,
        *,
        username: str | None = None,
        password: str = "SuperSecret123",
    ):
        username = username or unique_str("user")
        r = await client.post("/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        data = r.json()
        assert data["message"] == "User created successfully"
        user = data["user"]
        user["password"] = password
        return user

    return _create


@pytest.fixture
def friendship_factory():
    async def _befriend(client: AsyncClient, a: dict, b: dict) -> str:
        r = await client.post("/add-friend", json={"senderId": a["id"], "friendCode": b["friend_code"]})
        assert r.status_code == 200, r.text
        request_id = r.json()["request"]["id"]

        r = await client.post(f"/requests/{request_id}/accept")
        assert r.status_code == 200, r.text

        r = await client.get(f"/friends/{a['id']}")
        assert r.status_code == 200, r.text
        friendship_id = next(f["friendship_id"] for f in r.json()["friends"] if f["id"] == b["id"])
        return friendship_id

    return _befriend
