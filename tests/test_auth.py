"""Tests for the login strategies."""

import asyncio
import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from gitea_cms.auth import (
    AuthType,
    ImplicitAuthenticator,
    LoginRequest,
    NetlifyAuthenticator,
    PkceAuthenticator,
    create_authenticator,
)
from gitea_cms.exceptions import LoginError


def query(url: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


class TestPkce:
    def test_code_challenge_matches_rfc_7636_example(self) -> None:
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"

        assert PkceAuthenticator.code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_begin_login(self) -> None:
        auth = PkceAuthenticator(
            "app-1", base_url="https://git.example.com/", redirect_uri="https://cms.example.com/admin/"
        )

        login = auth.begin_login()
        params = query(login.url)

        assert login.url.startswith("https://git.example.com/login/oauth/authorize?")
        assert params["client_id"] == "app-1"
        assert params["response_type"] == "code"
        assert params["state"] == login.state
        assert params["code_challenge_method"] == "S256"
        assert params["code_challenge"] == PkceAuthenticator.code_challenge(login.code_verifier)
        assert params["redirect_uri"] == "https://cms.example.com/admin/"

    def test_logins_use_fresh_state(self) -> None:
        auth = PkceAuthenticator("app-1")

        first, second = auth.begin_login(), auth.begin_login()

        assert first.state != second.state
        assert first.code_verifier != second.code_verifier

    def test_complete_login_exchanges_code(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"access_token": "tok", "refresh_token": "ref"})

        auth = PkceAuthenticator("app-1", http_transport=httpx.MockTransport(handler))
        login = auth.begin_login()

        credentials = asyncio.run(
            auth.complete_login(login, f"https://cms.example.com/admin/?code=abc&state={login.state}")
        )

        assert credentials.token == "tok"
        assert credentials.refresh_token == "ref"
        assert str(seen[0].url) == "https://gitea.com/login/oauth/access_token"
        form = {key: values[0] for key, values in parse_qs(seen[0].content.decode()).items()}
        assert form == {
            "grant_type": "authorization_code",
            "client_id": "app-1",
            "code": "abc",
            "code_verifier": login.code_verifier,
        }

    def test_state_mismatch(self) -> None:
        auth = PkceAuthenticator("app-1")
        login = auth.begin_login()

        with pytest.raises(LoginError, match="Invalid OAuth state"):
            asyncio.run(auth.complete_login(login, "https://cms.example.com/?code=abc&state=forged"))

    def test_provider_error(self) -> None:
        auth = PkceAuthenticator("app-1")
        login = auth.begin_login()

        with pytest.raises(LoginError, match="User denied access"):
            asyncio.run(
                auth.complete_login(
                    login,
                    "https://cms.example.com/?error=access_denied&error_description=User+denied+access",
                )
            )

    def test_failed_exchange(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "invalid_grant"})

        auth = PkceAuthenticator("app-1", http_transport=httpx.MockTransport(handler))
        login = auth.begin_login()

        with pytest.raises(LoginError, match="invalid_grant"):
            asyncio.run(auth.complete_login(login, f"https://cms.example.com/?code=abc&state={login.state}"))

    def test_requires_app_id(self) -> None:
        with pytest.raises(LoginError):
            PkceAuthenticator("")


class TestImplicit:
    def test_round_trip(self) -> None:
        auth = ImplicitAuthenticator("app-1")
        login = auth.begin_login()

        assert query(login.url)["response_type"] == "token"
        credentials = asyncio.run(
            auth.complete_login(
                login, f"https://cms.example.com/admin/#access_token=tok&state={login.state}"
            )
        )

        assert credentials.token == "tok"
        assert credentials.refresh_token is None

    def test_missing_token(self) -> None:
        auth = ImplicitAuthenticator("app-1")
        login = auth.begin_login()

        with pytest.raises(LoginError, match="Access token missing"):
            asyncio.run(auth.complete_login(login, f"https://cms.example.com/#state={login.state}"))


class TestNetlify:
    def test_begin_login(self) -> None:
        auth = NetlifyAuthenticator(site_id="site.example.com")

        login = auth.begin_login()
        params = query(login.url)

        assert login.url.startswith("https://api.netlify.com/auth?")
        assert params["provider"] == "gitea"
        assert params["scope"] == "repo"
        assert params["site_id"] == "site.example.com"

    def test_success_message(self) -> None:
        auth = NetlifyAuthenticator()
        login = LoginRequest(url="", state="s1")
        message = "authorization:gitea:success:" + json.dumps({"token": "tok", "provider": "gitea"})

        assert asyncio.run(auth.complete_login(login, message)).token == "tok"

    def test_error_message(self) -> None:
        auth = NetlifyAuthenticator()
        login = LoginRequest(url="", state="s1")
        message = "authorization:gitea:error:" + json.dumps({"message": "Access denied"})

        with pytest.raises(LoginError, match="Access denied"):
            asyncio.run(auth.complete_login(login, message))

    @pytest.mark.parametrize(
        "message",
        [
            "authorization:github:success:{}",
            "authorization:gitea:success:{not json",
            "authorization:gitea:success:" + json.dumps({"token": "tok", "state": "other"}),
            "authorization:gitea:success:{}",
        ],
    )
    def test_rejected_messages(self, message: str) -> None:
        auth = NetlifyAuthenticator()

        with pytest.raises(LoginError):
            asyncio.run(auth.complete_login(LoginRequest(url="", state="s1"), message))


@pytest.mark.parametrize(
    "auth_type, expected",
    [
        ("pkce", PkceAuthenticator),
        (AuthType.IMPLICIT, ImplicitAuthenticator),
        ("netlify", NetlifyAuthenticator),
        (None, NetlifyAuthenticator),
        ("something-else", NetlifyAuthenticator),
    ],
)
def test_create_authenticator(auth_type, expected: type) -> None:
    options = {} if expected is NetlifyAuthenticator else {"app_id": "app-1"}

    assert isinstance(create_authenticator(auth_type, **options), expected)
