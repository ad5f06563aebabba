"""Bitbucket Cloud pagination, fan-out collection, and record reduction."""

from .auth import ClientCredentialsAuth, new_client
from .collector import (
    collect_pull_requests,
    member_pull_requests_url,
    repository_pull_requests_url,
)
from .paginator import Paginator, merge_query_params
from .reducer import APPROVED_MARKER, pr_fields, pr_tags, reduce_pull_request
from .resolver import EntityResolver

__all__ = [
    "ClientCredentialsAuth",
    "new_client",
    "collect_pull_requests",
    "member_pull_requests_url",
    "repository_pull_requests_url",
    "Paginator",
    "merge_query_params",
    "APPROVED_MARKER",
    "pr_fields",
    "pr_tags",
    "reduce_pull_request",
    "EntityResolver",
]
