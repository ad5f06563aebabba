"""Flatten pull requests into metric fields and tags."""

from __future__ import annotations

from typing import Any

from prmetrics.models.bitbucket import ParticipantRole, PullRequest

APPROVED_MARKER = "✅"


def _reviewer_summary(pr: PullRequest) -> tuple[str, str, int]:
    reviewers: list[str] = []
    approved: list[str] = []
    for participant in pr.participants:
        if participant.role != ParticipantRole.REVIEWER.value:
            continue
        name = participant.user.display_name
        if participant.approved:
            reviewers.append(f"{APPROVED_MARKER}{name}")
            approved.append(name)
        else:
            reviewers.append(name)
    return ", ".join(reviewers), ", ".join(approved), len(approved)


def pr_fields(pr: PullRequest) -> dict[str, Any]:
    reviewers, approved, approval_count = _reviewer_summary(pr)
    return {
        "id": pr.id,
        "title": pr.title,
        "pr_state": pr.state,
        "comment_count": pr.comment_count,
        "task_count": pr.task_count,
        "author": pr.author.display_name,
        "created_on": int(pr.created_on.timestamp()),
        "updated_on": int(pr.updated_on.timestamp()),
        "src_repo": pr.source.repository.name,
        "src_branch": pr.source.branch.name,
        "dest_repo": pr.destination.repository.name,
        "dest_branch": pr.destination.branch.name,
        "reviewers": reviewers,
        "approved": approved,
        "approval_count": approval_count,
        "link": pr.links.html.href,
    }


def pr_tags(pr: PullRequest) -> dict[str, str]:
    return {
        "state": pr.state,
        "source_repo": pr.source.repository.slug,
    }


def reduce_pull_request(pr: PullRequest) -> tuple[dict[str, Any], dict[str, str]]:
    return pr_fields(pr), pr_tags(pr)
