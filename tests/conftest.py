# tests/conftest.py
"""
In-memory SQLite app for the API tests.

- SQLALCHEMY_DATABASE_URI is set before any project import so the engine binds to SQLite.
- The generative text service and the object store are replaced through dependency_overrides.
- Every table is emptied after each test.
"""

import asyncio
import os

os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ.setdefault("GEMINI_API_KEY", "")

import pytest
from fastapi.testclient import TestClient

from database.db import Base, SessionLocal, engine, init_models
from main import app
from services.exceptions import AIServiceError
from services.file_store import get_file_store
from services.llm.base import TextGenerator
from services.llm.llm_gemini import get_text_generator

init_models()

SCHOOL_CODE = "ZENKI"
ADMIN_PASSWORD = "admin-1234"


class FakeTextGenerator(TextGenerator):
    def __init__(self):
        self.reply = "تقرير تجريبي"
        self.fail = False
        self.prompts = []

    async def complete(self, prompt, system=None):
        self.prompts.append(prompt)
        if self.fail:
            raise AIServiceError("upstream timeout")
        return self.reply


def _loop_running():
    try:
        asyncio.get_running_loop()
        return True
    except RuntimeError:
        return False


class FakeFileStore:
    def __init__(self):
        self.uploads = []
        self.on_event_loop = []

    def upload(self, school_id, filename, content_type, data):
        self.on_event_loop.append(_loop_running())
        self.uploads.append((school_id, filename, content_type, len(data)))
        return f"http://files.test/{school_id}/{filename}"


@pytest.fixture
def generator():
    return FakeTextGenerator()


@pytest.fixture
def file_store():
    return FakeFileStore()


@pytest.fixture
def client(generator, file_store):
    app.dependency_overrides[get_text_generator] = lambda: generator
    app.dependency_overrides[get_file_store] = lambda: file_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ==========================================================
# Session helpers
# ==========================================================
def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def school(client):
    r = client.post("/v1/auth/schools", json={
        "name": "متوسطة الزنكي", "school_code": SCHOOL_CODE, "admin_password": ADMIN_PASSWORD,
    })
    assert r.status_code == 200, r.text
    return r.json()["data"]


@pytest.fixture
def visitor(client, school):
    r = client.post("/v1/auth/school", json={"school_code": SCHOOL_CODE})
    return auth(r.json()["data"]["token"])


def _visitor_headers(client):
    r = client.post("/v1/auth/school", json={"school_code": SCHOOL_CODE})
    return auth(r.json()["data"]["token"])


@pytest.fixture
def admin(client, school):
    headers = _visitor_headers(client)
    r = client.post("/v1/auth/admin", json={"password": ADMIN_PASSWORD}, headers=headers)
    assert r.status_code == 200, r.text
    return headers


@pytest.fixture
def login_staff(client, school, admin):
    """Creates a staff user through the admin API and returns a logged-in header set."""
    def _login(passcode="1111", name="أ. خالد", assignments=(("الأول متوسط", "1"),), permissions=()):
        r = client.post("/v1/staff", json={
            "name": name,
            "passcode": passcode,
            "assignments": [{"grade": g, "class_name": c} for g, c in assignments],
            "permissions": list(permissions),
        }, headers=admin)
        assert r.status_code == 200, r.text
        headers = _visitor_headers(client)
        r = client.post("/v1/auth/staff", json={"passcode": passcode}, headers=headers)
        assert r.status_code == 200, r.text
        return headers
    return _login


@pytest.fixture
def login_parent(client, school):
    def _login(civil_id="1000000001"):
        headers = _visitor_headers(client)
        r = client.post("/v1/auth/parent", json={"parent_civil_id": civil_id}, headers=headers)
        assert r.status_code == 200, r.text
        return headers
    return _login
