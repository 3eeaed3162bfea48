"""Tag extraction from commit messages and the persisted tag history."""

import logging
import re
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path

from git_pr.models import Commit
from git_pr.settings import DEFAULT_TAG_PATTERN

logger = logging.getLogger(__name__)


@lru_cache(maxsize=8)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def extract(text: str, pattern: str | None = None) -> str | None:
    """Return the first tag in text, brackets stripped, or None.

    "[TRACK-123]: fix login" → "TRACK-123"
    """
    match = _compile(pattern or DEFAULT_TAG_PATTERN).search(text)
    if not match:
        return None
    tag = match.group(1) if match.re.groups else match.group(0)
    tag = tag.strip().strip("[]").strip()
    return tag or None


def matches_in_full(tag: str, pattern: str | None = None) -> bool:
    return extract(tag, pattern) == tag


def extract_from_commits(commits: Iterable[Commit], pattern: str | None = None) -> tuple[str, Commit] | None:
    """Scan commits (most recent first) and return the first tag with its commit."""
    for commit in commits:
        tag = extract(commit.message, pattern)
        if tag:
            return tag, commit
    return None


class TagHistory:
    """Previously used tags, most recent first, one per line in tags.txt."""

    def __init__(self, path: Path, tags: list[str] | None = None, limit: int = 10) -> None:
        self.path = path
        self.limit = limit
        self._tags: list[str] = list(tags or [])[:limit]

    @classmethod
    def load(cls, path: Path, limit: int = 10) -> "TagHistory":
        if not path.exists():
            return cls(path, limit=limit)
        seen: list[str] = []
        for line in path.read_text().splitlines():
            tag = line.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return cls(path, seen, limit=limit)

    @property
    def tags(self) -> list[str]:
        return list(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def add(self, tag: str) -> None:
        tag = tag.strip()
        if not tag:
            return
        if tag in self._tags:
            self._tags.remove(tag)
        self._tags.insert(0, tag)
        del self._tags[self.limit :]

    def suggestions(self, prefix: str = "") -> list[str]:
        return [t for t in self._tags if t.startswith(prefix)]

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w") as f:
            for tag in self._tags:
                f.write(f"{tag}\n")
        logger.debug("Saved %d tag(s) to %s", len(self._tags), self.path)

    def add_and_save(self, tag: str) -> None:
        self.add(tag)
        self.save()
