from __future__ import annotations

import base64

import httpx
import pytest

from prmetrics.bitbucket.auth import new_client
from prmetrics.core.config import Settings
from prmetrics.core.errors import BitbucketAPIError

TOKEN_URL = "https://bitbucket.example.com/site/oauth2/access_token"


def _settings(**overrides) -> Settings:
    values = {"oauth_key": "testkey", "oauth_secret": "testsecret", "oauth_token_url": TOKEN_URL}
    values.update(overrides)
    return Settings(**values)


def test_token_is_fetched_once_and_reused():
    seen = {"token": 0, "api": []}

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            seen["token"] += 1
            expected = base64.b64encode(b"testkey:testsecret").decode("ascii")
            assert request.headers["Authorization"] == f"Basic {expected}"
            assert b"grant_type=client_credentials" in request.content
            return httpx.Response(200, json={"access_token": "tok-1", "expires_in": 7200})
        seen["api"].append(request.headers["Authorization"])
        return httpx.Response(200, json={"values": []})

    with new_client(_settings(), transport=httpx.MockTransport(handler)) as client:
        client.get("https://api.example.com/2.0/a")
        client.get("https://api.example.com/2.0/b")

    assert seen["token"] == 1
    assert seen["api"] == ["Bearer tok-1", "Bearer tok-1"]


def test_unauthorized_response_refreshes_token_once():
    tokens = iter(["stale", "fresh"])

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            return httpx.Response(200, json={"access_token": next(tokens), "expires_in": 7200})
        if request.headers["Authorization"] == "Bearer stale":
            return httpx.Response(401)
        return httpx.Response(200, json={"values": []})

    with new_client(_settings(), transport=httpx.MockTransport(handler)) as client:
        response = client.get("https://api.example.com/2.0/a")

    assert response.status_code == 200


def test_rejected_credentials_raise():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_client"})

    with new_client(_settings(), transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(BitbucketAPIError):
            client.get("https://api.example.com/2.0/a")


def test_client_without_credentials_is_unauthenticated():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["authorization"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"values": []})

    settings = Settings(oauth_key=None, oauth_secret=None, http_timeout=2.5)
    with new_client(settings, transport=httpx.MockTransport(handler)) as client:
        client.get("https://api.example.com/2.0/a")
        assert client.timeout.read == 2.5

    assert captured["authorization"] is None


@pytest.mark.parametrize(
    "token_response",
    [
        httpx.Response(200, content=b"<html>maintenance</html>", headers={"Content-Type": "text/html"}),
        httpx.Response(200, json={"token_type": "bearer"}),
        httpx.Response(200, json=["tok"]),
    ],
    ids=["html-body", "missing-access-token", "non-object"],
)
def test_unusable_token_body_raises_api_error(token_response):
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            return token_response
        return httpx.Response(200, json={"values": []})

    with new_client(_settings(), transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(BitbucketAPIError) as excinfo:
            client.get("https://api.example.com/2.0/a")

    assert excinfo.value.url == TOKEN_URL
    assert excinfo.value.status == 200
