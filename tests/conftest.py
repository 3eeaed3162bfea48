"""Shared test fixtures and in-memory collaborators."""

from pathlib import Path

import pytest

from git_pr.errors import GitHubError
from git_pr.models import Commit, PullRequest, PullRequestDraft
from git_pr.providers.base import GitClient, GitHubClient
from git_pr.settings import Config, FormField
from git_pr.tags import TagHistory
from git_pr.ui import UserInterface

RELATED_EMPTY = "<!-- RELATED_PR -->\n<!-- /RELATED_PR -->"


def make_pr(repository: str, number: int, title: str = "", body: str = RELATED_EMPTY, state: str = "open") -> PullRequest:
    return PullRequest(
        repository=repository,
        number=number,
        title=title,
        body=body,
        url=f"https://github.com/{repository}/pull/{number}",
        state=state,
    )


class FakeGit(GitClient):
    def __init__(
        self,
        branch: str = "feature/login",
        commits: list[Commit] | None = None,
        candidates: list[str] | None = None,
        repository: str = "acme/web",
    ) -> None:
        self.branch = branch
        self.commits = commits if commits is not None else [Commit(sha="a1", message="[TRACK-7]: fix bug")]
        self.candidates = candidates if candidates is not None else ["main"]
        self.repository = repository
        self.pushed: list[str] = []

    def current_branch(self) -> str:
        return self.branch

    def list_branches(self) -> set[str]:
        return {self.branch, *self.candidates}

    def list_commits(self, branch: str, base: str | None = None) -> list[Commit]:
        return list(self.commits)

    def merge_base_candidates(self, branch: str) -> list[str]:
        return list(self.candidates)

    def current_repository(self) -> str:
        return self.repository

    def push_branch(self, branch: str) -> None:
        self.pushed.append(branch)


class FakeGitHub(GitHubClient):
    """Keeps PRs in memory; create_pr/edit_pr_body mutate that state."""

    def __init__(self, prs: list[PullRequest] | None = None, user: str = "octocat") -> None:
        self.prs: dict[tuple[str, int], PullRequest] = {pr.key: pr for pr in prs or []}
        self.user = user
        self.collaborators: list[str] = ["alice", "bob", "octocat"]
        self.created: list[PullRequestDraft] = []
        self.edits: list[tuple[str, int, str]] = []
        self.fail_edits_for: set[tuple[str, int]] = set()
        self.next_number = 100
        self.index_new_prs = False  # mimic search lag by default

    def authenticated_user(self) -> str:
        return self.user

    def create_pr(self, draft: PullRequestDraft) -> PullRequest:
        self.created.append(draft)
        pr = make_pr(draft.repository, self.next_number, draft.title, draft.body)
        self.next_number += 1
        if self.index_new_prs:
            self.prs[pr.key] = pr
        return pr

    def list_my_prs(self, user: str) -> list[PullRequest]:
        return list(self.prs.values())

    def edit_pr_body(self, repository: str, number: int, body: str) -> None:
        if (repository, number) in self.fail_edits_for:
            raise GitHubError(f"GitHub API PATCH /repos/{repository}/pulls/{number} returned 403: Forbidden")
        self.edits.append((repository, number, body))
        key = (repository, number)
        if key in self.prs:
            self.prs[key] = self.prs[key].model_copy(update={"body": body})

    def list_collaborators(self, repository: str) -> list[str]:
        return list(self.collaborators)

    def find_pr_for_branch(self, repository: str, branch: str) -> PullRequest | None:
        for pr in self.prs.values():
            if pr.repository == repository and branch in pr.title:
                return pr
        return None


class FakeUI(UserInterface):
    """Scripted answers; records what was asked."""

    def __init__(
        self,
        fields: dict[str, list[str]] | None = None,
        tag: str | None = None,
        title: str = "Manual title",
        base: str | None = None,
        reviewers: list[str] | None = None,
    ) -> None:
        self.field_answers = {name: list(answers) for name, answers in (fields or {}).items()}
        self.tag = tag
        self.title = title
        self.base = base
        self.reviewers = reviewers
        self.asked: list[str] = []

    def confirm_tag(self, tag: str) -> str | None:
        self.asked.append("confirm_tag")
        return self.tag if self.tag is not None else tag

    def prompt_title(self, suggestions: list[str]) -> str:
        self.asked.append("prompt_title")
        return self.title

    def prompt_tag(self, history: list[str]) -> str | None:
        self.asked.append("prompt_tag")
        return self.tag

    def select_base(self, candidates: list[str]) -> str:
        self.asked.append("select_base")
        return self.base or candidates[0]

    def prompt_field(self, field: FormField) -> str:
        self.asked.append(f"field:{field.name}")
        answers = self.field_answers.get(field.name, [])
        return answers.pop(0) if answers else ""

    def select_reviewers(self, choices: list[str], preselected: list[str]) -> list[str]:
        self.asked.append("select_reviewers")
        return self.reviewers if self.reviewers is not None else list(preselected)


@pytest.fixture
def config() -> Config:
    return Config.model_validate({"github": {"user": "octocat"}})


@pytest.fixture
def history(tmp_path: Path) -> TagHistory:
    return TagHistory.load(tmp_path / "tags.txt")


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()
