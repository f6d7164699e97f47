"""
Error taxonomy for the login flow.

Every error carries the HTTP status the route layer should answer with, a
stable machine-readable code, and a generic message that is safe to show to
the browser. `detail` holds internal context and is only exposed outside
production.
"""
from http import HTTPStatus
from typing import Optional


class LoginServiceError(Exception):
    """Base class for failures surfaced by the login service."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    code: str = "login_service_error"
    public_message: str = "An unexpected error occurred."

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or self.public_message)
        self.detail = detail

    def to_dict(self, include_details: bool = False) -> dict:
        body = {"success": False, "error": self.public_message, "code": self.code}
        if include_details and self.detail:
            body["details"] = self.detail
        return body


class InvalidCallback(LoginServiceError):
    """The provider redirected back with an error or without a code."""

    status_code = HTTPStatus.BAD_REQUEST
    code = "invalid_callback"
    public_message = "Kakao login was cancelled or did not return an authorization code."


class ExchangeError(LoginServiceError):
    """The authorization code could not be exchanged for an access token."""

    status_code = HTTPStatus.BAD_GATEWAY
    code = "token_exchange_failed"
    public_message = "Kakao login failed while requesting an access token."


class ProfileFetchError(LoginServiceError):
    """The user profile could not be fetched with the access token."""

    status_code = HTTPStatus.BAD_GATEWAY
    code = "profile_fetch_failed"
    public_message = "Kakao login failed while fetching the user profile."


class SessionWriteError(LoginServiceError):
    """The session store could not create or destroy a session."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    code = "session_error"
    public_message = "The login session could not be updated."


class PersistenceError(LoginServiceError):
    """The user repository failed."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    code = "persistence_error"
    public_message = "The user store is unavailable."


class AuthenticationRequired(LoginServiceError):
    """No active login session."""

    status_code = HTTPStatus.UNAUTHORIZED
    code = "authentication_required"
    public_message = "Login is required."


class NotFound(LoginServiceError):
    """No persisted user with the requested identity."""

    status_code = HTTPStatus.NOT_FOUND
    code = "not_found"
    public_message = "User not found."


__all__ = [
    "AuthenticationRequired",
    "ExchangeError",
    "InvalidCallback",
    "LoginServiceError",
    "NotFound",
    "PersistenceError",
    "ProfileFetchError",
    "SessionWriteError",
]
