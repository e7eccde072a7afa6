import asyncio
import os
import tempfile

os.environ["APP_ENV"] = "test"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="wasatext-uploads-"))

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from dependencies import enable_sqlite_foreign_keys, get_db
from main import app
from models import Base


def make_engine(path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    enable_sqlite_foreign_keys(engine)
    return engine


async def create_tables(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def client(tmp_path):
    engine = make_engine(tmp_path / "test.db")
    asyncio.run(create_tables(engine))
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = make_engine(tmp_path / "service.db")
    await create_tables(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


def auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer {user_id}"}


def login(client: TestClient, name: str) -> str:
    resp = client.post("/session", json={"name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()["token"]


def create_group(client: TestClient, token: str, name: str = "team") -> int:
    resp = client.post("/conversations", json={"name": name, "isGroup": True}, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["conversationId"]


def send(client: TestClient, token: str, conversation_id: int, text: str) -> int:
    resp = client.post(
        f"/conversations/{conversation_id}/messages", json={"text": text}, headers=auth(token)
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["messageId"]
