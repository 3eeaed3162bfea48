"""Shared pydantic models — the contract between providers, app.py and main.py."""

from pydantic import BaseModel, ConfigDict


class Commit(BaseModel):
    model_config = ConfigDict(frozen=True)

    sha: str
    message: str

    @property
    def subject(self) -> str:
        return self.message.strip().splitlines()[0] if self.message.strip() else ""


class PullRequestRef(BaseModel):
    """One entry of a rendered related-PR list."""

    model_config = ConfigDict(frozen=True)

    repository: str  # owner/repo
    number: int
    url: str
    is_self: bool = False

    @property
    def path(self) -> str:
        return f"{self.repository}/pull/{self.number}"


class PullRequest(BaseModel):
    """A PR as listed by GitHub, body included."""

    model_config = ConfigDict(frozen=True)

    repository: str  # owner/repo
    number: int
    title: str
    body: str = ""
    url: str
    state: str = "open"

    @property
    def key(self) -> tuple[str, int]:
        return self.repository, self.number

    @property
    def path(self) -> str:
        return f"{self.repository}/pull/{self.number}"

    def ref(self, is_self: bool = False) -> PullRequestRef:
        return PullRequestRef(repository=self.repository, number=self.number, url=self.url, is_self=is_self)


class PullRequestDraft(BaseModel):
    """Everything needed to open a PR."""

    model_config = ConfigDict(frozen=True)

    repository: str
    title: str
    body: str
    base: str
    head: str
    reviewers: list[str] = []
    assignees: list[str] = []


class RelatedSet(BaseModel):
    """PRs sharing one tag, in deterministic (repository, number) order."""

    model_config = ConfigDict(frozen=True)

    tag: str
    members: list[PullRequest] = []

    def view_for(self, target: PullRequest) -> list[PullRequestRef]:
        return [pr.ref(is_self=pr.key == target.key) for pr in self.members]


class SyncWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    ref: PullRequestRef
    reason: str


class SyncReport(BaseModel):
    """Outcome of one related-section synchronization pass."""

    updated: list[PullRequestRef] = []
    unchanged: list[PullRequestRef] = []
    skipped: list[SyncWarning] = []  # markers missing, body left alone
    failed: list[SyncWarning] = []  # GitHub rejected the edit

    @property
    def warnings(self) -> list[SyncWarning]:
        return [*self.skipped, *self.failed]


class RunResult(BaseModel):
    """What one create or update-only invocation did."""

    pr: PullRequest | None = None
    tag: str | None = None
    report: SyncReport | None = None  # None when no sync pass ran
