from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from kakao_login.config import Settings
from kakao_login.exceptions import ExchangeError, ProfileFetchError
from kakao_login.services.kakao_client import KakaoOAuthClient, parse_kakao_profile


def make_settings(**overrides) -> Settings:
    values = {
        "KAKAO_CLIENT_ID": "client-123",
        "KAKAO_CLIENT_SECRET": "secret-456",
        "KAKAO_REDIRECT_URI": "http://localhost:3000/api/auth/kakao/callback",
        "PROVIDER_TIMEOUT_SECONDS": 1.0,
    }
    values.update(overrides)
    return Settings(**values)


def make_client(handler, **overrides) -> KakaoOAuthClient:
    return KakaoOAuthClient(make_settings(**overrides), transport=httpx.MockTransport(handler))


def test_authorization_url_carries_client_and_redirect():
    client = KakaoOAuthClient(make_settings())

    url = client.build_authorization_url()

    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://kauth.kakao.com/oauth/authorize"
    query = parse_qs(parts.query)
    assert query["response_type"] == ["code"]
    assert query["client_id"] == ["client-123"]
    assert query["redirect_uri"] == ["http://localhost:3000/api/auth/kakao/callback"]


async def test_exchange_posts_form_and_returns_token():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"access_token": "tok-1", "token_type": "bearer"})

    token = await make_client(handler).exchange_code_for_token("abc123")

    assert token == "tok-1"
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://kauth.kakao.com/oauth/token"
    form = parse_qs(request.content.decode())
    assert form["grant_type"] == ["authorization_code"]
    assert form["code"] == ["abc123"]
    assert form["client_id"] == ["client-123"]
    assert form["client_secret"] == ["secret-456"]
    assert form["redirect_uri"] == ["http://localhost:3000/api/auth/kakao/callback"]


async def test_exchange_omits_secret_when_not_configured():
    forms: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        forms.append(parse_qs(request.content.decode()))
        return httpx.Response(200, json={"access_token": "tok-1"})

    await make_client(handler, KAKAO_CLIENT_SECRET="").exchange_code_for_token("abc123")

    assert "client_secret" not in forms[0]


async def test_exchange_rejected_code_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    with pytest.raises(ExchangeError) as excinfo:
        await make_client(handler).exchange_code_for_token("used-code")

    assert "400" in excinfo.value.detail


async def test_exchange_without_access_token_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"token_type": "bearer"})

    with pytest.raises(ExchangeError):
        await make_client(handler).exchange_code_for_token("abc123")


async def test_exchange_timeout_raises_exchange_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ExchangeError):
        await make_client(handler).exchange_code_for_token("abc123")


async def test_fetch_profile_sends_bearer_and_maps_fields():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer tok-1"
        return httpx.Response(200, json={
            "id": 42,
            "properties": {"nickname": "Alice", "profile_image": "http://img.example/a.png"},
            "kakao_account": {"email": "alice@example.com"},
        })

    profile = await make_client(handler).fetch_profile("tok-1")

    assert profile.identity == 42
    assert profile.display_name == "Alice"
    assert profile.email == "alice@example.com"
    assert profile.avatar_url == "http://img.example/a.png"


async def test_fetch_profile_unauthorized_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"msg": "this access token does not exist", "code": -401})

    with pytest.raises(ProfileFetchError):
        await make_client(handler).fetch_profile("expired")


async def test_fetch_profile_without_id_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"properties": {"nickname": "Alice"}})

    with pytest.raises(ProfileFetchError):
        await make_client(handler).fetch_profile("tok-1")


def test_parse_profile_falls_back_to_account_profile():
    profile = parse_kakao_profile({
        "id": 7,
        "kakao_account": {
            "profile": {"nickname": "Bob", "profile_image_url": "http://img.example/b.png"},
        },
    })

    assert profile.display_name == "Bob"
    assert profile.avatar_url == "http://img.example/b.png"
    assert profile.email is None


def test_parse_profile_missing_optional_fields():
    profile = parse_kakao_profile({"id": 7})

    assert profile.identity == 7
    assert profile.display_name is None
    assert profile.avatar_url is None


@pytest.mark.parametrize("identity", ["42", None, True, 4.2])
def test_parse_profile_rejects_non_integer_id(identity):
    with pytest.raises(ValueError):
        parse_kakao_profile({"id": identity})


async def test_revoke_success_returns_no_warning():
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "https://kapi.kakao.com/v1/user/logout"
        assert request.headers["Authorization"] == "Bearer tok-1"
        return httpx.Response(200, json={"id": 42})

    assert await make_client(handler).revoke("tok-1") is None


async def test_revoke_failure_returns_warning_instead_of_raising():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"code": -401})

    warning = await make_client(handler).revoke("expired")

    assert warning is not None
    assert warning.operation == "provider_logout"


async def test_revoke_transport_error_returns_warning():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    warning = await make_client(handler).revoke("tok-1")

    assert warning is not None
    assert "connection refused" in warning.message


@pytest.mark.parametrize("body", [
    {"id": 42, "properties": "oops"},
    {"id": 42, "kakao_account": ["not", "a", "dict"]},
    {"id": 42, "kakao_account": {"profile": "oops", "email": "alice@example.com"}},
    {"id": 42, "properties": None, "kakao_account": None},
])
def test_parse_profile_ignores_malformed_sections(body):
    profile = parse_kakao_profile(body)

    assert profile.identity == 42
    assert profile.display_name is None


async def test_fetch_profile_with_malformed_sections_still_maps_id():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": 42, "properties": "oops", "kakao_account": 5})

    profile = await make_client(handler).fetch_profile("tok-1")

    assert profile.identity == 42


async def test_fetch_profile_with_wrongly_typed_field_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": 42, "properties": {"nickname": ["Alice"]}})

    with pytest.raises(ProfileFetchError):
        await make_client(handler).fetch_profile("tok-1")
