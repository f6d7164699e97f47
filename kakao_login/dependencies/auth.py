"""
Authentication dependencies for FastAPI.

The signed session cookie holds only SESSION_KEY -> opaque session id; the
orchestrator resolves that id against the server-side session store.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request

from kakao_login.config import settings
from kakao_login.database import AsyncSessionLocal
from kakao_login.exceptions import AuthenticationRequired
from kakao_login.models.profile import SessionRecord
from kakao_login.services.kakao_client import KakaoOAuthClient
from kakao_login.services.login_orchestrator import LoginOrchestrator
from kakao_login.services.results import LogoutResult
from kakao_login.services.session_store import DatabaseSessionStore, InMemorySessionStore, SessionStore
from kakao_login.services.user_repository import UserRepository

SESSION_KEY = "sid"


@lru_cache()
def get_session_store() -> SessionStore:
    """Session backend selected by SESSION_BACKEND."""
    if settings.SESSION_BACKEND == "database":
        return DatabaseSessionStore(AsyncSessionLocal, settings.SESSION_MAX_AGE_SECONDS)
    return InMemorySessionStore(settings.SESSION_MAX_AGE_SECONDS)


@lru_cache()
def get_user_repository() -> UserRepository:
    return UserRepository(AsyncSessionLocal)


@lru_cache()
def get_kakao_client() -> KakaoOAuthClient:
    return KakaoOAuthClient(settings)


def get_orchestrator(
    provider: KakaoOAuthClient = Depends(get_kakao_client),
    session_store: SessionStore = Depends(get_session_store),
    user_repository: UserRepository = Depends(get_user_repository),
) -> LoginOrchestrator:
    return LoginOrchestrator(provider, session_store, user_repository)


def get_session_id(request: Request) -> Optional[str]:
    return request.session.get(SESSION_KEY)


async def get_current_session(
    request: Request,
    orchestrator: LoginOrchestrator = Depends(get_orchestrator),
) -> SessionRecord:
    """
    Dependency that requires an active login session.

    Raises AuthenticationRequired (rendered as 401) otherwise.

    Usage:
        @router.get("/protected")
        async def protected_route(record: SessionRecord = Depends(get_current_session)):
            ...
    """
    record = await orchestrator.current_session(get_session_id(request))
    request.state.user_id = record.profile.identity
    return record


async def end_session(request: Request, orchestrator: LoginOrchestrator) -> LogoutResult:
    """
    Log out and drop the cookie session.

    The cookie is cleared even when its session id no longer resolves, so a
    browser holding a dead id stops sending it.
    """
    try:
        result = await orchestrator.logout(get_session_id(request))
    except AuthenticationRequired:
        request.session.clear()
        raise
    request.session.clear()
    return result
