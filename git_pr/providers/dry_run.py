"""--dry-run wrappers: reads go to the real client, mutations are only described."""

from rich import print as rprint
from rich.markup import escape

from git_pr.models import Commit, PullRequest, PullRequestDraft
from git_pr.providers.base import GitClient, GitHubClient

DRY_RUN_NUMBER = 0


class _Planner:
    def __init__(self, echo: bool = True) -> None:
        self.planned: list[str] = []
        self._echo = echo

    def _plan(self, description: str) -> None:
        self.planned.append(description)
        if self._echo:
            rprint(f"[dim]dry-run:[/dim] {escape(description)}")


class DryRunGit(_Planner, GitClient):
    def __init__(self, inner: GitClient, echo: bool = True) -> None:
        super().__init__(echo)
        self._inner = inner

    def current_branch(self) -> str:
        return self._inner.current_branch()

    def list_branches(self) -> set[str]:
        return self._inner.list_branches()

    def list_commits(self, branch: str, base: str | None = None) -> list[Commit]:
        return self._inner.list_commits(branch, base)

    def merge_base_candidates(self, branch: str) -> list[str]:
        return self._inner.merge_base_candidates(branch)

    def current_repository(self) -> str:
        return self._inner.current_repository()

    def push_branch(self, branch: str) -> None:
        self._plan(f"git push --set-upstream origin {branch}")


class DryRunGitHub(_Planner, GitHubClient):
    def __init__(self, inner: GitHubClient, echo: bool = True) -> None:
        super().__init__(echo)
        self._inner = inner

    def authenticated_user(self) -> str:
        return self._inner.authenticated_user()

    def list_my_prs(self, user: str) -> list[PullRequest]:
        return self._inner.list_my_prs(user)

    def list_collaborators(self, repository: str) -> list[str]:
        return self._inner.list_collaborators(repository)

    def find_pr_for_branch(self, repository: str, branch: str) -> PullRequest | None:
        return self._inner.find_pr_for_branch(repository, branch)

    def create_pr(self, draft: PullRequestDraft) -> PullRequest:
        reviewers = ", ".join(draft.reviewers) or "none"
        self._plan(
            f"create PR in {draft.repository} ({draft.head} → {draft.base}) "
            f"title={draft.title!r} reviewers={reviewers}\n{draft.body}"
        )
        return PullRequest(
            repository=draft.repository,
            number=DRY_RUN_NUMBER,
            title=draft.title,
            body=draft.body,
            url=f"https://github.com/{draft.repository}/pull/new/{draft.head}",
        )

    def edit_pr_body(self, repository: str, number: int, body: str) -> None:
        self._plan(f"edit body of {repository}/pull/{number}\n{body}")
