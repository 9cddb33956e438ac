import os
import re
import uuid

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"
os.environ.pop("EMAIL_HOST", None)

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from tracker.main import app
from tracker.database import Base, get_db
from tracker.exceptions import EmailDeliveryError, StorageError
from tracker.models.user import User
from tracker.utils import email as mailer
from tracker.utils import storage
from tracker.utils.storage import StoredObject

PASSWORD = "secret123"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ── Fakes for the external collaborators ───────────────

class Outbox:
    """Collects outgoing mail instead of talking to SMTP."""

    def __init__(self):
        self.messages = []
        self.fail = False

    async def send(self, to_email, subject, html):
        if self.fail:
            raise EmailDeliveryError("SMTP connection refused")
        self.messages.append({"to": to_email, "subject": subject, "html": html})

    def last_link_token(self, path: str) -> str:
        match = re.search(rf"/{path}/([0-9a-f]+)", self.messages[-1]["html"])
        assert match, self.messages[-1]["html"]
        return match.group(1)


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.destroyed = []
        self.fail_upload = False
        self.fail_destroy = False

    async def upload(self, content, filename, folder=None):
        if self.fail_upload:
            raise StorageError("File upload failed")
        resource_type = "video" if filename.endswith(".mp4") else "image"
        public_id = f"project_attachments/{uuid.uuid4().hex}"
        self.objects[public_id] = content
        return StoredObject(
            url=f"https://cdn.example.com/{public_id}",
            public_id=public_id,
            resource_type=resource_type,
        )

    async def destroy(self, public_id, resource_type):
        if self.fail_destroy:
            raise StorageError("Failed to delete attachment from storage")
        self.objects.pop(public_id, None)
        self.destroyed.append(public_id)


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    box = Outbox()
    monkeypatch.setattr(mailer, "send_email_async", box.send)
    return box


@pytest.fixture(autouse=True)
def fake_storage(monkeypatch):
    fake = FakeStorage()
    monkeypatch.setattr(storage, "upload_file", fake.upload)
    monkeypatch.setattr(storage, "destroy_file", fake.destroy)
    return fake


# ── Users, projects and helpers ────────────────────────

class Account:
    def __init__(self, id, email, token):
        self.id = id
        self.email = email
        self.token = token
        self.headers = {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    async def _register(name, email, password=PASSWORD):
        response = await client.post(
            "/auth/register", json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return Account(data["id"], email, data["token"])
    return _register


@pytest.fixture
async def alice(register):
    return await register("Alice", "alice@x.com")


@pytest.fixture
async def bob(register):
    return await register("Bob", "bob@x.com")


@pytest.fixture
async def carol(register):
    return await register("Carol", "carol@x.com")


@pytest.fixture
async def dave(register):
    return await register("Dave", "dave@x.com")


@pytest.fixture
def make_admin(session_factory):
    async def _make_admin(account):
        async with session_factory() as db:
            user = await db.get(User, account.id)
            user.role = "admin"
            await db.commit()
    return _make_admin


@pytest.fixture
def create_project(client):
    async def _create(owner, key="DEMO", name="Demo project"):
        response = await client.post(
            "/projects",
            json={"name": name, "description": "A project for tests", "key": key},
            headers=owner.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create


@pytest.fixture
def join(client, outbox):
    """Invite ``account`` into the project and accept on its behalf."""
    async def _join(project, owner, account):
        response = await client.post(
            f"/projects/{project['id']}/invite",
            json={"email": account.email},
            headers=owner.headers,
        )
        assert response.status_code == 200, response.text
        token = outbox.last_link_token("invite")
        response = await client.post(f"/projects/accept-invite/{token}", headers=account.headers)
        assert response.status_code == 200, response.text
        return response.json()["data"]
    return _join


@pytest.fixture
async def project(alice, create_project):
    return await create_project(alice)


@pytest.fixture
def create_issue(client):
    async def _create(project, account, **fields):
        payload = {"title": "Login fails", "description": "Stack trace on submit"}
        payload.update(fields)
        response = await client.post(
            f"/projects/{project['id']}/issues", json=payload, headers=account.headers
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create


@pytest.fixture
def upload(client):
    async def _upload(account, filename="shot.png", content=b"\x89PNG fake", mime="image/png"):
        return await client.post(
            "/attachments",
            files={"file": (filename, content, mime)},
            headers=account.headers,
        )
    return _upload
