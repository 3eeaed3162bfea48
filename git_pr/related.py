"""Resolve the set of open PRs that share a tag."""

import logging
from collections.abc import Iterable
from typing import Literal, Protocol

from git_pr.models import PullRequest, RelatedSet
from git_pr.tags import extract

logger = logging.getLogger(__name__)

MatchStrategy = Literal["token", "title_tag"]


class PRLister(Protocol):
    def list_my_prs(self, user: str) -> list[PullRequest]: ...


def _is_token_char(ch: str) -> bool:
    return ch.isalnum() or ch in "-_"


def contains_token(text: str, tag: str) -> bool:
    """Case-sensitive plain-text search for tag as a whole token.

    "fix [TRACK-1]" contains TRACK-1; "TRACK-12" does not.
    """
    if not tag:
        return False
    start = text.find(tag)
    while start >= 0:
        end = start + len(tag)
        before = text[start - 1] if start > 0 else ""
        after = text[end] if end < len(text) else ""
        if not (before and _is_token_char(before)) and not (after and _is_token_char(after)):
            return True
        start = text.find(tag, start + 1)
    return False


def matches(pr: PullRequest, tag: str, strategy: MatchStrategy = "token", pattern: str | None = None) -> bool:
    match strategy:
        case "token":
            return contains_token(pr.title, tag) or contains_token(pr.body, tag)
        case "title_tag":
            return extract(pr.title, pattern) == tag
        case _:
            raise ValueError(f"Unknown match strategy '{strategy}'")


def resolve(
    acting_user: str,
    tag: str,
    lister: PRLister,
    *,
    strategy: MatchStrategy = "token",
    pattern: str | None = None,
    include: Iterable[PullRequest] = (),
) -> RelatedSet:
    """Return every open PR by acting_user carrying tag, ordered by (repository, number).

    PRs in ``include`` are always members; search indexes lag behind PR
    creation, so the caller passes the PR it just opened here.
    """
    by_key: dict[tuple[str, int], PullRequest] = {}
    for pr in lister.list_my_prs(acting_user):
        if pr.state.lower() != "open":
            continue
        if matches(pr, tag, strategy, pattern):
            by_key[pr.key] = pr
    for pr in include:
        by_key[pr.key] = pr

    members = sorted(by_key.values(), key=lambda pr: (pr.repository, pr.number))
    logger.debug("Resolved %d PR(s) for tag %s: %s", len(members), tag, [pr.path for pr in members])
    return RelatedSet(tag=tag, members=members)
