import os

# Settings are read at import time; make sure they never come from a developer .env
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./voyager-unused.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RESET_TOKEN_SECRET"] = ""
os.environ["REDIS_URL"] = ""
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from voyager.api import deps  # noqa: E402
from voyager.core.security import create_access_token  # noqa: E402
from voyager.core.tokens import TokenService  # noqa: E402
from voyager.db.base import Base  # noqa: E402
from voyager.db import models  # noqa: E402,F401
from voyager.services.directory import UserDirectory  # noqa: E402
from voyager.services.email import EmailSender  # noqa: E402

T0 = 1_700_000_000


class FakeClock:
    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingMailer(EmailSender):
    """EmailSender that records messages instead of talking to SMTP."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages = []
        self.codes = {}

    async def send(self, to, subject, html=None, text=None):
        self.messages.append({"to": to, "subject": subject, "html": html, "text": text})
        if self.fail:
            return False, "relay unavailable"
        return True, None

    async def send_reset_code(self, to, code):
        self.codes[to] = code
        return await super().send_reset_code(to, code)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tokens(clock):
    return TokenService("route-test-secret", clock=clock)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest.fixture
async def app(session_factory, tokens, mailer):
    from voyager.main import app as application

    async def _session():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[deps.get_db_session] = _session
    application.dependency_overrides[deps.get_token_service] = lambda: tokens
    application.dependency_overrides[deps.get_email_sender] = lambda: mailer
    application.dependency_overrides[deps.get_reset_ledger] = lambda: None
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client


@pytest.fixture
def make_user(session_factory):
    async def _make(email, password="correct-horse", role="member", full_name=""):
        async with session_factory() as session:
            return await UserDirectory(session).create_member(email, password, role=role, full_name=full_name)

    return _make


def bearer(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a user without going through /auth/login."""
    return bearer
