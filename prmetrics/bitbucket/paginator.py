"""Cursor-following reader for Bitbucket's paginated listings."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx
from pydantic import ValidationError

from prmetrics.core.errors import BitbucketAPIError, PageParseError
from prmetrics.models.bitbucket import Page

_logger = logging.getLogger(__name__)


def merge_query_params(url: str | httpx.URL, defaults: Mapping[str, str]) -> httpx.URL:
    """Add ``defaults`` to the query of ``url``; values already on the URL win.

    Next-page URLs handed out by the API already carry ``pagelen`` and
    ``fields``, so those must pass through untouched.
    """

    parsed = httpx.URL(url)
    params = parsed.params
    for key, value in defaults.items():
        if not params.get(key):
            params = params.set(key, value)
    return parsed.copy_with(params=params)


class Paginator:
    """Fetches every page of a listing through a shared ``httpx.Client``."""

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    def fetch_all(self, seed_url: str, fields: str, pagelen: int | str) -> list[Any]:
        values: list[Any] = []
        next_url: str | None = seed_url
        defaults = {"pagelen": str(pagelen), "fields": fields}
        while next_url:
            try:
                url = merge_query_params(next_url, defaults)
            except httpx.InvalidURL as exc:
                raise PageParseError(f"Unusable page URL {next_url!r}: {exc}", url=next_url) from exc
            page = self._fetch_page(url)
            values.extend(page.values)
            next_url = page.next
        return values

    def _fetch_page(self, url: httpx.URL) -> Page:
        response = self._client.get(url)
        if not response.is_success:
            raise BitbucketAPIError(
                f"Response from Bitbucket API: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
                url=str(url),
            )
        try:
            page = Page.model_validate_json(response.content)
        except ValidationError as exc:
            raise PageParseError(f"Malformed page from {url}: {exc}", url=str(url)) from exc
        _logger.debug("Fetched %d values from %s", len(page.values), url)
        return page
