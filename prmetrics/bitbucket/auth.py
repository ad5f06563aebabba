"""OAuth2 client-credentials authentication for the shared HTTP client."""

from __future__ import annotations

import base64
import threading
import time
from typing import Generator

import httpx

from prmetrics.core.config import Settings
from prmetrics.core.errors import BitbucketAPIError

# Refresh this many seconds before the token actually expires.
TOKEN_EXPIRY_MARGIN_SECONDS = 30


class ClientCredentialsAuth(httpx.Auth):
    """Fetches and caches a bearer token shared by every request of a client."""

    requires_response_body = True

    def __init__(self, key: str, secret: str, token_url: str) -> None:
        self._key = key
        self._secret = secret
        self._token_url = token_url
        self._lock = threading.Lock()
        self._token: str | None = None
        self._expires_at = 0.0

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._cached_token()
        if token is None:
            token = self._store_token((yield self._token_request()))
        request.headers["Authorization"] = f"Bearer {token}"
        response = yield request

        if response.status_code == 401:
            self._invalidate(token)
            token = self._store_token((yield self._token_request()))
            request.headers["Authorization"] = f"Bearer {token}"
            yield request

    def _token_request(self) -> httpx.Request:
        credentials = base64.b64encode(f"{self._key}:{self._secret}".encode("utf-8")).decode("ascii")
        return httpx.Request(
            "POST",
            self._token_url,
            data={"grant_type": "client_credentials"},
            headers={"Authorization": f"Basic {credentials}"},
        )

    def _cached_token(self) -> str | None:
        with self._lock:
            if self._token and time.monotonic() < self._expires_at:
                return self._token
            return None

    def _invalidate(self, token: str) -> None:
        with self._lock:
            if self._token == token:
                self._token = None

    def _store_token(self, response: httpx.Response) -> str:
        if not response.is_success:
            raise BitbucketAPIError(
                f"Token request failed: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
                url=self._token_url,
            )
        try:
            payload = response.json()
            token = payload["access_token"]
            expires_in = float(payload.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise BitbucketAPIError(
                f"Token response is not a usable token: {exc}",
                status=response.status_code,
                url=self._token_url,
            ) from exc
        if not isinstance(token, str) or not token:
            raise BitbucketAPIError(
                "Token response carries no access_token", status=response.status_code, url=self._token_url
            )
        with self._lock:
            self._token = token
            self._expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0.0)
        return token


def new_client(settings: Settings, *, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """Build the HTTP client every paginated fetch of a gather cycle shares."""

    auth = None
    if settings.oauth_key and settings.oauth_secret:
        auth = ClientCredentialsAuth(settings.oauth_key, settings.oauth_secret, settings.oauth_token_url)
    return httpx.Client(
        timeout=settings.http_timeout,
        auth=auth,
        headers={"Accept": "application/json"},
        transport=transport,
    )
