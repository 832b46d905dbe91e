"""Spotify OAuth2 Authorization Code flow on top of spotipy.

Typical use from a web app::

    auth = Authenticator(redirect_uri, scopes.USER_LIBRARY_READ)
    state = new_state()
    # redirect the user to auth.auth_url(state), then in the callback handler:
    token = auth.complete_auth(state, request.args)
    sp = auth.new_client(token)
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol, Union
from urllib.parse import parse_qs, urlparse

import spotipy
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth

from spotauth.config import (
    AUTH_URL,
    REQUEST_TIMEOUT_SECONDS,
    TOKEN_URL,
    Credentials,
    env_credentials,
)

logger = logging.getLogger("spotauth.auth")

# Token-info dict as produced by spotipy (access_token, refresh_token, expires_at, ...)
Token = dict

CredentialsSource = Union[Credentials, Callable[[], Credentials]]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class AuthError(Exception):
    """The redirect callback was rejected before any token exchange."""


class AuthorizationDenied(AuthError):
    def __init__(self, reason: str):
        super().__init__(f"spotify: auth failed - {reason}")
        self.reason = reason


class MissingCodeError(AuthError):
    def __init__(self):
        super().__init__("spotify: didn't get access code")


class StateMismatchError(AuthError):
    def __init__(self, expected: str, actual: str):
        super().__init__("spotify: redirect state parameter doesn't match")
        self.expected = expected
        self.actual = actual


# ---------------------------------------------------------------------------
# OAuth configuration and backend
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OAuthConfig:
    client_id: str
    client_secret: str = field(repr=False)
    redirect_uri: str
    scopes: tuple[str, ...] = ()
    auth_url: str = AUTH_URL
    token_url: str = TOKEN_URL


class OAuthBackend(Protocol):
    def authorize_url(self, config: OAuthConfig, state: str) -> str: ...

    def exchange(self, config: OAuthConfig, code: str) -> Token: ...

    def client(self, config: OAuthConfig, token: Token) -> spotipy.Spotify: ...


class _ConfiguredOAuth(SpotifyOAuth):
    """SpotifyOAuth that keeps the client ID, secret and redirect URI as given.

    spotipy replaces empty values with the SPOTIPY_* environment variables or
    raises; here an empty client ID is sent as-is and Spotify rejects it.
    """

    @property
    def client_id(self):
        return self._client_id

    @client_id.setter
    def client_id(self, value):
        self._client_id = value

    @property
    def client_secret(self):
        return self._client_secret

    @client_secret.setter
    def client_secret(self, value):
        self._client_secret = value

    @property
    def redirect_uri(self):
        return self._redirect_uri

    @redirect_uri.setter
    def redirect_uri(self, value):
        self._redirect_uri = value


class SpotipyBackend:
    """OAuthBackend backed by spotipy's SpotifyOAuth.

    Each call builds a throwaway SpotifyOAuth with an in-memory cache, so no
    token is ever written to disk and nothing is shared between calls.
    """

    def __init__(self, requests_timeout: int = REQUEST_TIMEOUT_SECONDS):
        self.requests_timeout = requests_timeout

    def _oauth(
        self, config: OAuthConfig, token: Token | None = None, scope: str | None = None
    ) -> SpotifyOAuth:
        oauth = _ConfiguredOAuth(
            client_id=config.client_id,
            client_secret=config.client_secret,
            redirect_uri=config.redirect_uri,
            scope=scope,
            cache_handler=MemoryCacheHandler(token_info=token),
            open_browser=False,
            requests_timeout=self.requests_timeout,
        )
        oauth.OAUTH_AUTHORIZE_URL = config.auth_url
        oauth.OAUTH_TOKEN_URL = config.token_url
        return oauth

    def authorize_url(self, config: OAuthConfig, state: str) -> str:
        oauth = self._oauth(config, scope=" ".join(config.scopes) or None)
        return oauth.get_authorize_url(state=state)

    def exchange(self, config: OAuthConfig, code: str) -> Token:
        # spotipy starts its interactive prompt when the code is empty
        if not code:
            raise MissingCodeError()
        oauth = self._oauth(config, scope=" ".join(config.scopes) or None)
        oauth.get_access_token(code, as_dict=False, check_cache=False)
        return oauth.cache_handler.get_cached_token()

    def client(self, config: OAuthConfig, token: Token) -> spotipy.Spotify:
        # spotipy discards cached tokens whose scope doesn't cover its own
        scope = token.get("scope") or None
        if "scope" not in token:
            token = {**token, "scope": ""}
        return spotipy.Spotify(
            auth_manager=self._oauth(config, token, scope=scope),
            requests_timeout=self.requests_timeout,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def new_state(nbytes: int = 16) -> str:
    """Return a random URL-safe state token for CSRF protection."""
    return secrets.token_urlsafe(nbytes)


def query_params(url: str) -> dict[str, str]:
    """Return the query parameters of *url*, keeping the first value of each."""
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


def _param(params: Mapping[str, Any], key: str) -> str:
    # parse_qs-style mappings hold lists
    value = params.get(key)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return value or ""


# ---------------------------------------------------------------------------
# Authenticator
# ---------------------------------------------------------------------------

class Authenticator:
    """Runs the Authorization Code flow against the Spotify Accounts Service.

    The redirect URI must exactly match one registered for the app in the
    Spotify developer dashboard. Credentials come from the SPOTIFY_ID and
    SPOTIFY_SECRET environment variables unless *credentials* is given,
    either as a Credentials value or as a callable returning one.

    Instances are immutable; ``with_credentials`` returns a new one.
    """

    def __init__(
        self,
        redirect_uri: str,
        *scopes: str,
        credentials: CredentialsSource | None = None,
        backend: OAuthBackend | None = None,
    ):
        source = env_credentials if credentials is None else credentials
        creds = source() if callable(source) else source
        self._config = OAuthConfig(
            client_id=creds.client_id,
            client_secret=creds.client_secret,
            redirect_uri=redirect_uri,
            scopes=tuple(scopes),
        )
        self._backend = backend if backend is not None else SpotipyBackend()

    @property
    def config(self) -> OAuthConfig:
        return self._config

    @property
    def credentials(self) -> Credentials:
        return Credentials(self._config.client_id, self._config.client_secret)

    def with_credentials(self, client_id: str, client_secret: str) -> Authenticator:
        """Return a copy of this authenticator using a different client ID and secret."""
        return Authenticator(
            self._config.redirect_uri,
            *self._config.scopes,
            credentials=Credentials(client_id, client_secret),
            backend=self._backend,
        )

    def auth_url(self, state: str) -> str:
        """Return the URL to send the user to for authorization.

        Pass the same *state* to ``complete_auth`` so the callback can be
        checked against it (RFC 6749 section 10.12).
        """
        url = self._backend.authorize_url(self._config, state)
        logger.debug("Built authorization URL for %d scope(s)", len(self._config.scopes))
        return url

    def complete_auth(self, expected_state: str, params: Mapping[str, Any]) -> Token:
        """Validate the redirect callback's query parameters and exchange its code.

        *params* may be a plain dict, a ``parse_qs`` result, or a web
        framework's request args. Raises AuthorizationDenied, MissingCodeError
        or StateMismatchError before any network call is made.
        """
        error = _param(params, "error")
        if error:
            logger.warning("Authorization denied by Spotify: %s", error)
            raise AuthorizationDenied(error)

        code = _param(params, "code")
        if not code:
            raise MissingCodeError()

        actual_state = _param(params, "state")
        if actual_state != expected_state:
            logger.warning("Redirect state mismatch, possible CSRF attempt")
            raise StateMismatchError(expected_state, actual_state)

        return self.exchange(code)

    def complete_auth_from_url(self, expected_state: str, redirect_url: str) -> Token:
        """Like ``complete_auth``, taking the full URL the browser was redirected to."""
        return self.complete_auth(expected_state, query_params(redirect_url))

    def exchange(self, code: str) -> Token:
        """Exchange an authorization code for a token.

        Errors from spotipy or requests propagate unchanged.
        """
        logger.info("Exchanging authorization code for an access token")
        token = self._backend.exchange(self._config, code)
        logger.info("Token exchange complete")
        return token

    def new_client(self, token: Token) -> spotipy.Spotify:
        """Return a Spotify API client authenticated with *token*."""
        return self._backend.client(self._config, token)
