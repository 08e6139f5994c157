import asyncio
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from referly.api.main import create_app
from referly.context import AppContext, build_context
from referly.settings import Settings

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct horse battery staple"


class RecordingTransport:
    """In-memory mail transport that records every delivery.

    - ``raise_for``: recipients whose delivery raises
    - ``reject_for``: recipients the transport refuses (returns False)
    - ``fail_all``: every delivery raises
    - ``delay``: seconds to sleep before answering
    """

    def __init__(self):
        self.sent: list[dict] = []
        self.raise_for: set[str] = set()
        self.reject_for: set[str] = set()
        self.fail_all = False
        self.delay = 0.0

    async def send(self, to_email, subject, html_content, text_content=None):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_all or to_email in self.raise_for:
            raise RuntimeError("smtp connection reset")
        if to_email in self.reject_for:
            return False
        self.sent.append(
            {"to": to_email, "subject": subject, "html": html_content, "text": text_content}
        )
        return True

    def to(self, email: str) -> list[dict]:
        return [message for message in self.sent if message["to"] == email]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings bound to a fresh file-backed SQLite database."""
    return Settings(
        _env_file=None,
        env="test",
        database_url=f"sqlite:///{(tmp_path / 'test.db').as_posix()}",
        jwt_secret_key="test-secret-key-that-is-long-enough-123",
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        admin_name="Mahesh Doe",
        bcrypt_rounds=4,
        mail_timeout_seconds=0.5,
        frontend_url="https://shop.example.com",
    )


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def ctx(settings: Settings, transport: RecordingTransport) -> Iterator[AppContext]:
    """Application context wired to the temp database and the recording transport."""
    context = build_context(settings, transport=transport)
    context.database.create_tables()
    try:
        yield context
    finally:
        context.close()


@pytest.fixture
def client(ctx: AppContext) -> Iterator[TestClient]:
    """Synchronous FastAPI TestClient.

    Background tasks (post-registration emails) run before each call returns.
    """
    app = create_app(context=ctx)
    with TestClient(app) as tc:
        yield tc


@pytest.fixture
def admin_headers(client: TestClient) -> dict[str, str]:
    resp = client.post("/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def register(client: TestClient, email: str, name: str = "Test User", password: str = "pass1234", **extra):
    payload = {"name": name, "email": email, "phone": "", "age": 30, "password": password}
    payload.update(extra)
    return client.post("/register", json=payload)


@pytest.fixture
def register_user(client: TestClient):
    """Register a user over HTTP and return the issued referral code."""

    def _register(email: str, name: str = "Test User", **extra) -> str:
        resp = register(client, email, name=name, **extra)
        assert resp.status_code == 201, resp.text
        return resp.json()["referralCode"]

    return _register
