"""
Result values returned by the login orchestrator.

Best-effort steps that fail are reported as OperationWarning entries rather
than exceptions, so callers (and tests) can tell "attempted and failed"
apart from "never attempted".
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from kakao_login.exceptions import LoginServiceError
from kakao_login.models.profile import UserProfile


class LoginState(str, enum.Enum):
    """States of one authorization-code login attempt."""
    AWAITING_CODE = "awaiting_code"
    EXCHANGING_TOKEN = "exchanging_token"
    FETCHING_PROFILE = "fetching_profile"
    SESSION_ESTABLISHED = "session_established"
    PERSISTENCE_ATTEMPTED = "persistence_attempted"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class OperationWarning:
    """A best-effort step that was attempted and failed without failing the request."""

    operation: str
    message: str

    def to_dict(self) -> dict:
        return {"operation": self.operation, "message": self.message}


@dataclass
class LoginResult:
    """
    Outcome of handle_callback.

    `session_id` is only for the route layer to put into the cookie session;
    it is not part of the JSON body. The access token is never on this object.
    """

    state: LoginState
    profile: Optional[UserProfile] = None
    session_id: Optional[str] = None
    error: Optional[LoginServiceError] = None
    warnings: list[OperationWarning] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state is LoginState.COMPLETE

    def to_dict(self, include_details: bool = False) -> dict:
        if not self.success:
            return self.error.to_dict(include_details=include_details)
        body = {
            "success": True,
            "message": "Login completed.",
            "user": self.profile.public_dict(),
        }
        if include_details and self.warnings:
            body["warnings"] = [w.to_dict() for w in self.warnings]
        return body


@dataclass
class LogoutResult:
    """Outcome of a logout whose local session was destroyed."""

    identity: int
    warnings: list[OperationWarning] = field(default_factory=list)

    def to_dict(self, include_details: bool = False) -> dict:
        body = {"success": True, "message": "Logged out."}
        if include_details and self.warnings:
            body["warnings"] = [w.to_dict() for w in self.warnings]
        return body


__all__ = ["LoginResult", "LoginState", "LogoutResult", "OperationWarning"]
