"""git access through the git binary."""

import logging
import subprocess
from pathlib import Path

from git_pr.errors import GitError
from git_pr.models import Commit
from git_pr.providers.base import GitClient

logger = logging.getLogger(__name__)

PROTECTED_BRANCHES = frozenset({"master", "main", "development", "stage", "production"})
REMOTE = "origin"

# files in the git dir that mean the working tree is mid-operation
_IN_PROGRESS = (
    ("MERGE_HEAD", "merge"),
    ("rebase-merge", "rebase"),
    ("rebase-apply", "rebase"),
    ("CHERRY_PICK_HEAD", "cherry-pick"),
    ("REVERT_HEAD", "revert"),
)

# ASCII unit/record separators keep multi-line commit bodies intact
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"


def parse_remote_repository(url: str) -> str | None:
    """Parse a GitHub remote URL to 'owner/repo'.

    git@github.com:owner/repo.git, https://github.com/owner/repo(.git)
    """
    cleaned = url.strip().removesuffix(".git").rstrip("/")
    if cleaned.startswith("git@github.com:"):
        path = cleaned[len("git@github.com:") :]
    elif cleaned.startswith("ssh://git@github.com/"):
        path = cleaned[len("ssh://git@github.com/") :]
    else:
        for prefix in ("https://github.com/", "http://github.com/"):
            if cleaned.startswith(prefix):
                path = cleaned[len(prefix) :]
                break
        else:
            return None
    parts = path.split("/")
    if len(parts) != 2 or not all(parts):
        return None
    return f"{parts[0]}/{parts[1]}"


class SubprocessGit(GitClient):
    def __init__(self, cwd: Path | None = None) -> None:
        self._cwd = cwd
        # bare base name -> ref it was found on (e.g. develop -> origin/develop)
        self._base_refs: dict[str, str] = {}

    def _run(self, *args: str) -> str:
        logger.debug("git %s", " ".join(args))
        try:
            result = subprocess.run(["git", *args], capture_output=True, text=True, cwd=self._cwd)
        except FileNotFoundError as exc:
            raise GitError("git executable not found on PATH") from exc
        if result.returncode != 0:
            raise GitError(f"git {' '.join(args)} failed: {result.stderr.strip()}")
        return result.stdout

    def _succeeds(self, *args: str) -> bool:
        try:
            result = subprocess.run(["git", *args], capture_output=True, text=True, cwd=self._cwd)
        except FileNotFoundError as exc:
            raise GitError("git executable not found on PATH") from exc
        return result.returncode == 0

    def _check_clean_state(self) -> None:
        git_dir = Path(self._run("rev-parse", "--git-dir").strip())
        if not git_dir.is_absolute() and self._cwd:
            git_dir = self._cwd / git_dir
        for marker, operation in _IN_PROGRESS:
            if (git_dir / marker).exists():
                raise GitError(f"A {operation} is in progress. Commit changes first")

    def current_branch(self) -> str:
        if not self._succeeds("rev-parse", "--git-dir"):
            raise GitError("Not in a git repository")
        self._check_clean_state()
        if not self._succeeds("symbolic-ref", "--quiet", "HEAD"):
            raise GitError("HEAD is detached; check out a branch first")
        branch = self._run("symbolic-ref", "--short", "HEAD").strip()
        if branch in PROTECTED_BRANCHES:
            raise GitError(f"Cannot open a PR from protected branch '{branch}'")
        return branch

    def list_branches(self) -> set[str]:
        out = self._run("for-each-ref", "--format=%(refname:short)", "refs/heads")
        return {line.strip() for line in out.splitlines() if line.strip()}

    def _remote_branches(self) -> set[str]:
        out = self._run("for-each-ref", "--format=%(refname:short)", f"refs/remotes/{REMOTE}")
        # origin/HEAD is a symref; recent git shortens it to "origin"
        skip = {REMOTE, f"{REMOTE}/HEAD"}
        return {line.strip() for line in out.splitlines() if line.strip() and line.strip() not in skip}

    def list_commits(self, branch: str, base: str | None = None) -> list[Commit]:
        if base:
            base = self._base_refs.get(base, base)
        rev = f"{base}..{branch}" if base else branch
        out = self._run("log", f"--format=%H{_FIELD_SEP}%B{_RECORD_SEP}", rev)
        commits = []
        for record in out.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            sha, _, message = record.partition(_FIELD_SEP)
            commits.append(Commit(sha=sha.strip(), message=message.strip()))
        return commits

    def _ahead_count(self, base: str, branch: str) -> int:
        return int(self._run("rev-list", "--count", f"{base}..{branch}").strip())

    def merge_base_candidates(self, branch: str) -> list[str]:
        """Branches sharing history with branch and closest to it.

        Local branches and origin's remote branches are both scanned; remote
        names are reported without the "origin/" prefix. A branch that already
        contains every commit of ``branch`` is not a base. Among the rest, only
        those with the fewest commits between them and ``branch`` are kept,
        sorted by name.
        """
        refs = (self.list_branches() | self._remote_branches()) - {branch, f"{REMOTE}/{branch}"}
        ahead: dict[str, int] = {}
        # local refs first so they win over their remote twin on a tie
        for ref in sorted(refs, key=lambda r: (r.startswith(f"{REMOTE}/"), r)):
            if not self._succeeds("merge-base", ref, branch):
                continue
            count = self._ahead_count(ref, branch)
            name = ref.removeprefix(f"{REMOTE}/")
            if count > 0 and (name not in ahead or count < ahead[name]):
                ahead[name] = count
                self._base_refs[name] = ref
        if not ahead:
            return []
        best = min(ahead.values())
        return sorted(name for name, count in ahead.items() if count == best)

    def current_repository(self) -> str:
        url = self._run("remote", "get-url", REMOTE)
        repository = parse_remote_repository(url)
        if not repository:
            raise GitError(f"Remote 'origin' is not a GitHub repository: {url.strip()}")
        return repository

    def push_branch(self, branch: str) -> None:
        self._run("push", "--set-upstream", REMOTE, branch)
