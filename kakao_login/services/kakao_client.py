"""
Kakao OAuth 2.0 client.

Performs the outbound calls of the authorization-code grant: build the
consent URL, exchange the code for an access token, fetch the profile, and
the optional Kakao logout. Each call is a single request with a bounded
timeout. Nothing is retried: an authorization code is single-use, so a second
attempt would fail at the provider anyway.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri
from fastapi import status

from kakao_login.config import Settings
from kakao_login.exceptions import ExchangeError, ProfileFetchError
from kakao_login.logging_config import get_logger
from kakao_login.metrics import provider_requests_total
from kakao_login.models.profile import UserProfile
from kakao_login.services.results import OperationWarning

logger = get_logger(component="kakao_client")


class KakaoOAuthClient:
    """Talks to kauth.kakao.com / kapi.kakao.com on behalf of the login flow."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._settings = settings
        # Injected by tests (httpx.MockTransport); None means real network.
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.PROVIDER_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    def build_authorization_url(self) -> str:
        """Construct the Kakao consent URL for the configured redirect URI."""
        return prepare_grant_uri(
            self._settings.KAKAO_AUTHORIZE_URL,
            self._settings.KAKAO_CLIENT_ID,
            "code",
            redirect_uri=self._settings.KAKAO_REDIRECT_URI,
        )

    async def exchange_code_for_token(self, code: str) -> str:
        """
        Exchange an authorization code for an access token.

        Raises ExchangeError on transport failure, timeout, non-200 status,
        or a body without access_token.
        """
        payload = {
            "grant_type": "authorization_code",
            "client_id": self._settings.KAKAO_CLIENT_ID,
            "redirect_uri": self._settings.KAKAO_REDIRECT_URI,
            "code": code,
        }
        if self._settings.KAKAO_CLIENT_SECRET:
            payload["client_secret"] = self._settings.KAKAO_CLIENT_SECRET

        try:
            async with self._client() as client:
                response = await client.post(self._settings.KAKAO_TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            provider_requests_total.labels(operation="token", outcome="transport_error").inc()
            raise ExchangeError(f"Token request failed: {exc!r}") from exc

        if response.status_code != status.HTTP_200_OK:
            provider_requests_total.labels(operation="token", outcome="rejected").inc()
            raise ExchangeError(f"Token endpoint returned {response.status_code}: {response.text}")

        access_token = _json_body(response).get("access_token")
        if not access_token or not isinstance(access_token, str):
            provider_requests_total.labels(operation="token", outcome="malformed").inc()
            raise ExchangeError("Token endpoint response did not include an access_token.")

        provider_requests_total.labels(operation="token", outcome="ok").inc()
        return access_token

    async def fetch_profile(self, access_token: str) -> UserProfile:
        """Fetch /v2/user/me and map it onto a UserProfile."""
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with self._client() as client:
                response = await client.get(self._settings.KAKAO_PROFILE_URL, headers=headers)
        except httpx.HTTPError as exc:
            provider_requests_total.labels(operation="profile", outcome="transport_error").inc()
            raise ProfileFetchError(f"Profile request failed: {exc!r}") from exc

        if response.status_code != status.HTTP_200_OK:
            provider_requests_total.labels(operation="profile", outcome="rejected").inc()
            raise ProfileFetchError(f"Profile endpoint returned {response.status_code}: {response.text}")

        try:
            profile = parse_kakao_profile(_json_body(response))
        except ValueError as exc:
            provider_requests_total.labels(operation="profile", outcome="malformed").inc()
            raise ProfileFetchError(str(exc)) from exc

        provider_requests_total.labels(operation="profile", outcome="ok").inc()
        return profile

    async def revoke(self, access_token: str) -> Optional[OperationWarning]:
        """
        Log the token out at Kakao.

        Best-effort: failures are logged and returned as a warning, never raised.
        """
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with self._client() as client:
                response = await client.post(self._settings.KAKAO_LOGOUT_URL, headers=headers)
        except httpx.HTTPError as exc:
            provider_requests_total.labels(operation="logout", outcome="transport_error").inc()
            logger.warning("kakao_logout_failed", error=repr(exc))
            return OperationWarning("provider_logout", f"Kakao logout request failed: {exc!r}")

        if response.status_code != status.HTTP_200_OK:
            provider_requests_total.labels(operation="logout", outcome="rejected").inc()
            logger.warning("kakao_logout_failed", status_code=response.status_code)
            return OperationWarning(
                "provider_logout", f"Kakao logout returned {response.status_code}"
            )

        provider_requests_total.labels(operation="logout", outcome="ok").inc()
        return None


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _section(body: dict[str, Any], key: str) -> dict[str, Any]:
    value = body.get(key)
    return value if isinstance(value, dict) else {}


def parse_kakao_profile(body: dict[str, Any]) -> UserProfile:
    """
    Map a Kakao /v2/user/me body to a UserProfile.

    Nickname and image live under `properties` for older apps and under
    `kakao_account.profile` for apps using the newer consent items.
    """
    identity = body.get("id")
    if isinstance(identity, bool) or not isinstance(identity, int):
        raise ValueError("Kakao profile response did not include a numeric id.")

    properties = _section(body, "properties")
    account = _section(body, "kakao_account")
    account_profile = _section(account, "profile")

    return UserProfile(
        identity=identity,
        display_name=properties.get("nickname") or account_profile.get("nickname"),
        email=account.get("email"),
        avatar_url=properties.get("profile_image") or account_profile.get("profile_image_url"),
    )


__all__ = ["KakaoOAuthClient", "parse_kakao_profile"]
