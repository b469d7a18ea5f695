"""
Authentication strategies.

The backend never runs a login flow itself; a host obtains the bearer token
through one of these strategies and hands it to the client. Every strategy
has the same two steps: ``begin_login`` returns the URL the user must visit,
``complete_login`` turns what the provider sends back into ``Credentials``.
"""

import base64
import hashlib
import json
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import parse_qs, urlencode, urlsplit

import httpx

from gitea_cms.exceptions import LoginError
from gitea_cms.logging import get_logger

DEFAULT_BASE_URL = "https://gitea.com"
DEFAULT_AUTH_ENDPOINT = "login/oauth/authorize"
DEFAULT_TOKEN_ENDPOINT = "login/oauth/access_token"
DEFAULT_NETLIFY_BASE_URL = "https://api.netlify.com"
PROVIDER = "gitea"

logger = get_logger("auth")


class AuthType(str, Enum):
    """Configuration keys of the available strategies."""

    PKCE = "pkce"
    IMPLICIT = "implicit"
    NETLIFY = "netlify"


@dataclass(frozen=True)
class LoginRequest:
    """First step of a login: where to send the user and what to remember."""

    url: str
    state: str
    code_verifier: str | None = None


@dataclass(frozen=True)
class Credentials:
    """Result of a completed login."""

    token: str
    refresh_token: str | None = None


def _random_string(length: int = 32) -> str:
    return secrets.token_urlsafe(length)[:length]


def _join(base_url: str, endpoint: str) -> str:
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


def _check_state(login: LoginRequest, params: dict[str, str]) -> None:
    if params.get("error"):
        raise LoginError(params.get("error_description") or params["error"])
    if params.get("state") != login.state:
        raise LoginError("Invalid OAuth state, please try logging in again")


def _single_values(query: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(query).items() if values}


class PkceAuthenticator:
    """OAuth authorization code flow with PKCE."""

    auth_type = AuthType.PKCE

    def __init__(
        self,
        app_id: str,
        base_url: str = DEFAULT_BASE_URL,
        auth_endpoint: str = DEFAULT_AUTH_ENDPOINT,
        auth_token_endpoint: str = DEFAULT_TOKEN_ENDPOINT,
        redirect_uri: str | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not app_id:
            raise LoginError("An app_id is required for PKCE authentication")
        self.app_id = app_id
        self.base_url = base_url
        self.auth_url = _join(base_url, auth_endpoint)
        self.token_url = _join(base_url, auth_token_endpoint)
        self.redirect_uri = redirect_uri
        self._http_transport = http_transport

    @staticmethod
    def code_challenge(verifier: str) -> str:
        digest = hashlib.sha256(verifier.encode("ascii")).digest()
        return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")

    def begin_login(self) -> LoginRequest:
        state = _random_string()
        verifier = _random_string(64)
        params = {
            "client_id": self.app_id,
            "response_type": "code",
            "state": state,
            "code_challenge": self.code_challenge(verifier),
            "code_challenge_method": "S256",
        }
        if self.redirect_uri:
            params["redirect_uri"] = self.redirect_uri
        return LoginRequest(
            url=f"{self.auth_url}?{urlencode(params)}",
            state=state,
            code_verifier=verifier,
        )

    async def complete_login(self, login: LoginRequest, callback_url: str) -> Credentials:
        """
        Exchange the authorization code in ``callback_url`` for a token.

        Raises:
            LoginError: On state mismatch, provider errors or a failed exchange
        """
        params = _single_values(urlsplit(callback_url).query)
        _check_state(login, params)
        code = params.get("code")
        if not code:
            raise LoginError("Authorization code missing from callback")

        form = {
            "grant_type": "authorization_code",
            "client_id": self.app_id,
            "code": code,
            "code_verifier": login.code_verifier or "",
        }
        if self.redirect_uri:
            form["redirect_uri"] = self.redirect_uri

        async with httpx.AsyncClient(transport=self._http_transport) as client:
            try:
                response = await client.post(self.token_url, data=form)
            except httpx.RequestError as e:
                raise LoginError(f"Token request failed: {e}") from e

        try:
            data: dict[str, Any] = response.json()
        except ValueError:
            data = {}
        if response.status_code >= 400 or not data.get("access_token"):
            message = data.get("error_description") or data.get("error") or f"HTTP {response.status_code}"
            raise LoginError(f"Token exchange failed: {message}")

        logger.debug("PKCE login completed")
        return Credentials(token=data["access_token"], refresh_token=data.get("refresh_token"))


class ImplicitAuthenticator:
    """OAuth implicit grant: the token comes back in the URL fragment."""

    auth_type = AuthType.IMPLICIT

    def __init__(
        self,
        app_id: str,
        base_url: str = DEFAULT_BASE_URL,
        auth_endpoint: str = DEFAULT_AUTH_ENDPOINT,
        redirect_uri: str | None = None,
    ) -> None:
        if not app_id:
            raise LoginError("An app_id is required for implicit authentication")
        self.app_id = app_id
        self.auth_url = _join(base_url, auth_endpoint)
        self.redirect_uri = redirect_uri

    def begin_login(self) -> LoginRequest:
        state = _random_string()
        params = {"client_id": self.app_id, "response_type": "token", "state": state}
        if self.redirect_uri:
            params["redirect_uri"] = self.redirect_uri
        return LoginRequest(url=f"{self.auth_url}?{urlencode(params)}", state=state)

    async def complete_login(self, login: LoginRequest, callback_url: str) -> Credentials:
        params = _single_values(urlsplit(callback_url).fragment)
        _check_state(login, params)
        token = params.get("access_token")
        if not token:
            raise LoginError("Access token missing from callback")
        return Credentials(token=token)


class NetlifyAuthenticator:
    """Login proxied through Netlify's OAuth gateway."""

    auth_type = AuthType.NETLIFY

    def __init__(
        self,
        site_id: str | None = None,
        base_url: str = DEFAULT_NETLIFY_BASE_URL,
        auth_endpoint: str = "auth",
        scope: str = "repo",
    ) -> None:
        self.site_id = site_id
        self.auth_url = _join(base_url, auth_endpoint)
        self.scope = scope

    def begin_login(self) -> LoginRequest:
        state = _random_string()
        params = {"provider": PROVIDER, "scope": self.scope, "state": state}
        if self.site_id:
            params["site_id"] = self.site_id
        return LoginRequest(url=f"{self.auth_url}?{urlencode(params)}", state=state)

    async def complete_login(self, login: LoginRequest, message: str) -> Credentials:
        """
        Parse the ``authorization:gitea:<result>:<json>`` message posted back
        by the gateway.
        """
        prefix = f"authorization:{PROVIDER}:"
        if not message.startswith(prefix):
            raise LoginError("Unexpected authorization message")
        result, _, payload = message[len(prefix):].partition(":")
        try:
            data = json.loads(payload) if payload else {}
        except ValueError as e:
            raise LoginError("Malformed authorization message") from e

        if result != "success":
            raise LoginError(data.get("message") or "Authentication failed")
        if data.get("state") is not None and data["state"] != login.state:
            raise LoginError("Invalid OAuth state, please try logging in again")
        if not data.get("token"):
            raise LoginError("Access token missing from authorization message")
        return Credentials(token=data["token"], refresh_token=data.get("refresh_token"))


Authenticator = PkceAuthenticator | ImplicitAuthenticator | NetlifyAuthenticator


def create_authenticator(auth_type: AuthType | str | None, **options: Any) -> Authenticator:
    """
    Create the strategy selected by ``auth_type``.

    Unknown or empty types use the Netlify gateway.
    """
    try:
        selected = AuthType(auth_type) if auth_type else AuthType.NETLIFY
    except ValueError:
        selected = AuthType.NETLIFY

    if selected is AuthType.PKCE:
        return PkceAuthenticator(**options)
    if selected is AuthType.IMPLICIT:
        return ImplicitAuthenticator(**options)
    return NetlifyAuthenticator(**options)
