"""Pytest configuration shared across the suite."""
import os
import tempfile

# Settings are read at import time, so the environment must be ready before
# anything from kakao_login is imported.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="kakao_login_tests_")
_TEST_ENV_VARS = {
    "DATABASE_URL": f"sqlite+aiosqlite:///{_TEST_DB_DIR}/app.db",
    "ENVIRONMENT": "development",
    "KAKAO_CLIENT_ID": "test-client-id",
    "KAKAO_CLIENT_SECRET": "test-client-secret",
    "KAKAO_REDIRECT_URI": "http://localhost:3000/api/auth/kakao/callback",
    "SESSION_SECRET_KEY": "test-session-secret",
    "SESSION_BACKEND": "memory",
    "SESSION_HTTPS_ONLY": "false",
    "SESSION_SAME_SITE": "lax",
    "SENTRY_DSN": "",
}
for key, value in _TEST_ENV_VARS.items():
    os.environ[key] = value

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from kakao_login.database import create_all  # noqa: E402
from kakao_login.models.profile import UserProfile  # noqa: E402
from kakao_login.services.results import OperationWarning  # noqa: E402
from kakao_login.services.session_store import InMemorySessionStore  # noqa: E402
from kakao_login.services.user_repository import UserRepository  # noqa: E402


class RecordingLogger:
    """Stands in for a structlog logger; keeps (level, event, fields) tuples."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict]] = []

    def info(self, event: str, **kw) -> None:
        self.events.append(("info", event, kw))

    def warning(self, event: str, **kw) -> None:
        self.events.append(("warning", event, kw))

    def error(self, event: str, **kw) -> None:
        self.events.append(("error", event, kw))

    def states(self) -> list[str]:
        return [kw["state"] for _, event, kw in self.events if event == "login_state_changed"]

    def named(self, name: str) -> list[dict]:
        return [kw for _, event, kw in self.events if event == name]


class StubProvider:
    """Kakao client double with call counters and switchable failures."""

    def __init__(self) -> None:
        self.token = "tok-1"
        self.profile = UserProfile(identity=42, display_name="Alice")
        self.exchange_error: Exception | None = None
        self.profile_error: Exception | None = None
        self.revoke_error: Exception | None = None
        self.revoke_warning: OperationWarning | None = None
        self.exchanged_codes: list[str] = []
        self.profile_tokens: list[str] = []
        self.revoked_tokens: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.exchanged_codes) + len(self.profile_tokens) + len(self.revoked_tokens)

    def build_authorization_url(self) -> str:
        return "https://kauth.example.com/oauth/authorize?response_type=code&client_id=test-client-id"

    async def exchange_code_for_token(self, code: str) -> str:
        self.exchanged_codes.append(code)
        if self.exchange_error:
            raise self.exchange_error
        return self.token

    async def fetch_profile(self, access_token: str) -> UserProfile:
        self.profile_tokens.append(access_token)
        if self.profile_error:
            raise self.profile_error
        return self.profile

    async def revoke(self, access_token: str) -> OperationWarning | None:
        self.revoked_tokens.append(access_token)
        if self.revoke_error:
            raise self.revoke_error
        return self.revoke_warning


class FailingUserStore:
    """User repository double whose upsert always raises."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or RuntimeError("database is down")
        self.attempts = 0

    async def upsert(self, profile, login_at=None) -> int:
        self.attempts += 1
        raise self.error


class FailingSessionStore(InMemorySessionStore):
    """In-memory store that can be told to fail create or destroy."""

    def __init__(self, fail_create: bool = False, fail_destroy: bool = False) -> None:
        super().__init__(max_age_seconds=3600)
        self.fail_create = fail_create
        self.fail_destroy = fail_destroy

    async def create(self, record):
        if self.fail_create:
            raise RuntimeError("session backend unavailable")
        return await super().create(record)

    async def destroy(self, session_id):
        if self.fail_destroy:
            raise RuntimeError("session backend unavailable")
        return await super().destroy(session_id)


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def stub_provider() -> StubProvider:
    return StubProvider()


@pytest.fixture
def memory_store() -> InMemorySessionStore:
    return InMemorySessionStore(max_age_seconds=3600)


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_all(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def repository(session_factory) -> UserRepository:
    return UserRepository(session_factory)

