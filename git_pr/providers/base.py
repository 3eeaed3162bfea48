"""Abstract base classes for the git and GitHub collaborators."""

from abc import ABC, abstractmethod

from git_pr.models import Commit, PullRequest, PullRequestDraft


class GitClient(ABC):
    @abstractmethod
    def current_branch(self) -> str: ...

    @abstractmethod
    def list_branches(self) -> set[str]: ...

    @abstractmethod
    def list_commits(self, branch: str, base: str | None = None) -> list[Commit]:
        """Commits on branch not reachable from base, most recent first."""

    @abstractmethod
    def merge_base_candidates(self, branch: str) -> list[str]:
        """Plausible base branches for branch, best first."""

    @abstractmethod
    def current_repository(self) -> str:
        """owner/repo of the origin remote."""

    @abstractmethod
    def push_branch(self, branch: str) -> None: ...


class GitHubClient(ABC):
    @abstractmethod
    def authenticated_user(self) -> str: ...

    @abstractmethod
    def create_pr(self, draft: PullRequestDraft) -> PullRequest: ...

    @abstractmethod
    def list_my_prs(self, user: str) -> list[PullRequest]: ...

    @abstractmethod
    def edit_pr_body(self, repository: str, number: int, body: str) -> None: ...

    @abstractmethod
    def list_collaborators(self, repository: str) -> list[str]: ...

    @abstractmethod
    def find_pr_for_branch(self, repository: str, branch: str) -> PullRequest | None: ...
