"""
Kakao login orchestrator.

Drives one authorization-code login:

    AWAITING_CODE -> EXCHANGING_TOKEN -> FETCHING_PROFILE
        -> SESSION_ESTABLISHED -> PERSISTENCE_ATTEMPTED -> COMPLETE

with FAILED reachable from every non-terminal state. The browser-facing
outcome depends only on the session being established; the user row upsert
is best-effort and its failure only adds a warning.

Each transition is logged as a `login_state_changed` event on the injected
logger. Access tokens never appear in log events or results.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Protocol

from kakao_login.exceptions import (
    AuthenticationRequired,
    ExchangeError,
    InvalidCallback,
    LoginServiceError,
    ProfileFetchError,
    SessionWriteError,
)
from kakao_login.logging_config import get_logger
from kakao_login.metrics import logins_total, logouts_total, user_persistence_failures_total
from kakao_login.models.profile import SessionRecord, UserProfile
from kakao_login.sentry_config import capture_exception
from kakao_login.services.results import LoginResult, LoginState, LogoutResult, OperationWarning
from kakao_login.services.session_store import SessionStore


class IdentityProvider(Protocol):
    def build_authorization_url(self) -> str: ...

    async def exchange_code_for_token(self, code: str) -> str: ...

    async def fetch_profile(self, access_token: str) -> UserProfile: ...

    async def revoke(self, access_token: str) -> Optional[OperationWarning]: ...


class UserStore(Protocol):
    async def upsert(self, profile: UserProfile, login_at: Optional[datetime] = None) -> int: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoginOrchestrator:
    """Runs the login/logout sequences against injected collaborators."""

    def __init__(
        self,
        provider: IdentityProvider,
        session_store: SessionStore,
        user_store: UserStore,
        logger: Any = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.provider = provider
        self.session_store = session_store
        self.user_store = user_store
        self.log = logger if logger is not None else get_logger(component="login_orchestrator")
        self.clock = clock

    def begin_login(self) -> str:
        """Return the Kakao consent URL the browser should be sent to."""
        url = self.provider.build_authorization_url()
        self.log.info("login_started")
        return url

    async def handle_callback(
        self,
        params: Mapping[str, str],
        previous_session_id: Optional[str] = None,
    ) -> LoginResult:
        """
        Complete a login from the callback query parameters.

        Never raises for the documented failure modes; the returned
        LoginResult carries the error instead.
        """
        warnings: list[OperationWarning] = []
        self._transition(LoginState.AWAITING_CODE)

        provider_error = params.get("error")
        code = (params.get("code") or "").strip()
        if provider_error:
            return self._fail(InvalidCallback(
                f"Kakao returned error={provider_error!r}: {params.get('error_description', '')}"
            ))
        if not code:
            return self._fail(InvalidCallback("Callback did not include an authorization code."))

        self._transition(LoginState.EXCHANGING_TOKEN)
        try:
            access_token = await self.provider.exchange_code_for_token(code)
        except ExchangeError as exc:
            return self._fail(exc)

        self._transition(LoginState.FETCHING_PROFILE)
        try:
            profile = await self.provider.fetch_profile(access_token)
        except ProfileFetchError as exc:
            return self._fail(exc)

        login_at = self.clock()
        record = SessionRecord(profile=profile, access_token=access_token, login_at=login_at)
        try:
            session_id = await self.session_store.create(record)
        except Exception as exc:
            return self._fail(SessionWriteError(f"Session store rejected the record: {exc!r}"))
        self._transition(LoginState.SESSION_ESTABLISHED, identity=profile.identity)

        if previous_session_id:
            warning = await self._discard_previous_session(previous_session_id)
            if warning:
                warnings.append(warning)

        try:
            rows = await self.user_store.upsert(profile, login_at=login_at)
        except Exception as exc:
            user_persistence_failures_total.inc()
            capture_exception(exc)
            self.log.warning(
                "user_persistence_failed",
                identity=profile.identity,
                error=str(exc),
            )
            warnings.append(OperationWarning("persist_user", str(exc)))
            self._transition(LoginState.PERSISTENCE_ATTEMPTED, identity=profile.identity, persisted=False)
        else:
            self._transition(
                LoginState.PERSISTENCE_ATTEMPTED, identity=profile.identity, persisted=True, rows_affected=rows
            )

        self._transition(LoginState.COMPLETE, identity=profile.identity, warnings=len(warnings))
        logins_total.labels(outcome="success").inc()
        return LoginResult(
            state=LoginState.COMPLETE,
            profile=profile,
            session_id=session_id,
            warnings=warnings,
        )

    async def current_session(self, session_id: Optional[str]) -> SessionRecord:
        """Return the live SessionRecord or raise AuthenticationRequired."""
        if not session_id:
            raise AuthenticationRequired("No session cookie.")
        try:
            record = await self.session_store.get(session_id)
        except Exception as exc:
            raise SessionWriteError(f"Session lookup failed: {exc!r}") from exc
        if record is None:
            raise AuthenticationRequired("Session expired or unknown.")
        return record

    async def current_user(self, session_id: Optional[str]) -> UserProfile:
        record = await self.current_session(session_id)
        return record.profile

    async def logout(self, session_id: Optional[str]) -> LogoutResult:
        """
        Revoke at Kakao (best-effort) and destroy the local session.

        Raises AuthenticationRequired without an active session and
        SessionWriteError when the local session cannot be destroyed.
        """
        try:
            record = await self.current_session(session_id)
        except AuthenticationRequired:
            logouts_total.labels(outcome="unauthenticated").inc()
            raise

        warnings: list[OperationWarning] = []
        identity = record.profile.identity
        try:
            warning = await self.provider.revoke(record.access_token)
        except Exception as exc:
            warning = OperationWarning("provider_logout", str(exc))
        if warning:
            self.log.warning("provider_logout_failed", identity=identity, error=warning.message)
            warnings.append(warning)

        try:
            await self.session_store.destroy(session_id)
        except Exception as exc:
            logouts_total.labels(outcome="session_error").inc()
            self.log.error("session_destroy_failed", identity=identity, error=repr(exc))
            raise SessionWriteError(f"Session destroy failed: {exc!r}") from exc

        logouts_total.labels(outcome="success").inc()
        self.log.info("logout_completed", identity=identity, warnings=len(warnings))
        return LogoutResult(identity=identity, warnings=warnings)

    async def _discard_previous_session(self, session_id: str) -> Optional[OperationWarning]:
        try:
            await self.session_store.destroy(session_id)
        except Exception as exc:
            self.log.warning("previous_session_discard_failed", error=repr(exc))
            return OperationWarning("discard_previous_session", str(exc))
        return None

    def _transition(self, state: LoginState, **context: Any) -> None:
        self.log.info("login_state_changed", state=state.value, **context)

    def _fail(self, error: LoginServiceError) -> LoginResult:
        self.log.warning(
            "login_state_changed",
            state=LoginState.FAILED.value,
            reason=error.code,
            detail=error.detail,
        )
        logins_total.labels(outcome=error.code).inc()
        return LoginResult(state=LoginState.FAILED, error=error)


__all__ = ["IdentityProvider", "LoginOrchestrator", "UserStore"]
