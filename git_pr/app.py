"""Create / update-only flows: branch analysis through related-PR synchronization."""

import logging
from dataclasses import dataclass
from functools import cached_property

from rich import print as rprint
from rich.markup import escape

from git_pr.errors import GitError, GitHubError, MissingMarkerError
from git_pr.models import Commit, PullRequest, PullRequestDraft, RunResult, SyncReport, SyncWarning
from git_pr.providers.base import GitClient, GitHubClient
from git_pr.related import resolve
from git_pr.settings import Config, FieldKind
from git_pr.tags import TagHistory, extract, extract_from_commits
from git_pr.template import render, render_related, replace_related_section, tracking_line
from git_pr.ui import UserInterface

logger = logging.getLogger(__name__)


def _say(label: str, value: str) -> None:
    rprint(f"[bright_green]>[/bright_green] {label}: [bright_cyan]{escape(value)}[/bright_cyan]")


@dataclass(frozen=True)
class BranchAnalysis:
    branch: str
    candidates: list[str]  # plausible bases, best first
    commits: list[Commit]  # most recent first


class App:
    def __init__(
        self,
        config: Config,
        git: GitClient,
        github: GitHubClient,
        ui: UserInterface,
        history: TagHistory,
        dry_run: bool = False,
    ) -> None:
        self.config = config
        self.git = git
        self.github = github
        self.ui = ui
        self.history = history
        self.dry_run = dry_run

    @cached_property
    def acting_user(self) -> str:
        return self.config.github.user or self.github.authenticated_user()

    @property
    def _pattern(self) -> str:
        return self.config.tags.pattern

    # ------------------------------------------------------------------
    # Create mode
    # ------------------------------------------------------------------

    def create(self) -> RunResult:
        analysis = self.analyze_branch()
        tag, title = self.detect_or_prompt_tag(analysis.commits)
        base = self.select_base_branch(analysis.candidates)
        values = self.collect_fields()
        repository = self.git.current_repository()
        reviewers = self.select_reviewers(repository)
        body = self.render_body(tag, values)

        draft = PullRequestDraft(
            repository=repository,
            title=title,
            body=body,
            base=base,
            head=analysis.branch,
            reviewers=reviewers,
            assignees=[self.acting_user],
        )
        pr = self.create_pr(draft)

        if not tag:
            return RunResult(pr=pr)
        try:
            report = self.sync_related(tag, include=[pr])
        except GitHubError as exc:
            # The PR is open; losing the related section is only a warning.
            report = SyncReport(failed=[SyncWarning(ref=pr.ref(is_self=True), reason=str(exc))])
            rprint(f"[yellow]Warning:[/yellow] Could not sync related PRs: {escape(str(exc))}")
            rprint("[yellow]Re-run with --update-only to retry.[/yellow]")
        return RunResult(pr=pr, tag=tag, report=report)

    def analyze_branch(self) -> BranchAnalysis:
        branch = self.git.current_branch()
        candidates = self.git.merge_base_candidates(branch)
        if not candidates:
            raise GitError(f"Could not find a base branch for '{branch}'")
        commits = self.git.list_commits(branch, candidates[0])
        if not commits:
            raise GitError(f"No commits found on '{branch}' since '{candidates[0]}'")
        logger.debug("Branch %s: %d commit(s), base candidates %s", branch, len(commits), candidates)
        return BranchAnalysis(branch=branch, candidates=candidates, commits=commits)

    def detect_or_prompt_tag(self, commits: list[Commit]) -> tuple[str | None, str]:
        """Return (tag, title). The tag is None when the user declines to give one."""
        found = extract_from_commits(commits, self._pattern)
        if found:
            detected, commit = found
            title = commit.subject
            _say("PR title", title)
            tag = self.ui.confirm_tag(detected)
            if tag and tag != detected:
                title = title.replace(detected, tag)
        else:
            title = self.ui.prompt_title([c.subject for c in commits])
            tag = self.ui.prompt_tag(self.history.tags)
            if tag:
                title = f"[{tag}]: {title}"

        if tag:
            _say("PR tag", tag)
            self.history.add_and_save(tag)
        else:
            rprint("[dim]No tag: related PRs will not be tracked.[/dim]")
        return tag, title

    def select_base_branch(self, candidates: list[str]) -> str:
        if len(candidates) > 1:
            return self.ui.select_base(candidates)
        _say("PR base", candidates[0])
        return candidates[0]

    def collect_fields(self) -> dict[str, str | None]:
        values: dict[str, str | None] = {}
        for field in self.config.template.fields:
            if self.dry_run and field.kind == FieldKind.EDITOR:
                values[field.name] = f"<dry-run: {field.name}>"
                continue
            answer = self.ui.prompt_field(field)
            while field.required and not answer.strip():
                rprint(f"[yellow]'{field.name}' is required.[/yellow]")
                answer = self.ui.prompt_field(field)
            values[field.name] = answer if answer.strip() else None
        return values

    def select_reviewers(self, repository: str) -> list[str]:
        defaults = list(self.config.github.default_reviewers)
        try:
            collaborators = self.github.list_collaborators(repository)
        except GitHubError as exc:
            rprint(f"[yellow]Warning:[/yellow] Could not list collaborators of {repository}: {escape(str(exc))}")
            collaborators = []

        choices = defaults + [c for c in collaborators if c not in defaults]
        choices = [c for c in choices if c != self.acting_user]
        if not choices:
            return []
        return self.ui.select_reviewers(choices, defaults)

    def render_body(self, tag: str | None, values: dict[str, str | None]) -> str:
        # The real section needs this PR's number, so it is filled in by sync_related.
        return render(
            self.config.template,
            values,
            render_related([]),
            tracking_line(tag, self.config.jira, self._pattern),
        )

    def create_pr(self, draft: PullRequestDraft) -> PullRequest:
        self.git.push_branch(draft.head)
        pr = self.github.create_pr(draft)
        rprint(f"[green]✓[/green] Published at: {pr.url}")
        return pr

    # ------------------------------------------------------------------
    # Update-only mode
    # ------------------------------------------------------------------

    def update_only(self) -> RunResult:
        branch = self.git.current_branch()
        repository = self.git.current_repository()
        pr = self.github.find_pr_for_branch(repository, branch)
        if pr is None:
            raise GitHubError(f"No open PR found for branch '{branch}' in {repository}")
        _say("PR", pr.path)

        tag = extract(pr.title, self._pattern)
        if not tag:
            candidates = self.git.merge_base_candidates(branch)
            commits = self.git.list_commits(branch, candidates[0] if candidates else None)
            found = extract_from_commits(commits, self._pattern)
            tag = found[0] if found else self.ui.prompt_tag(self.history.tags)
        if not tag:
            rprint("[yellow]No tag for this PR; nothing to update.[/yellow]")
            return RunResult(pr=pr)

        _say("PR tag", tag)
        self.history.add_and_save(tag)
        report = self.sync_related(tag, include=[pr])
        return RunResult(pr=pr, tag=tag, report=report)

    # ------------------------------------------------------------------
    # Bulk update
    # ------------------------------------------------------------------

    def sync_related(self, tag: str, include: list[PullRequest] | None = None) -> SyncReport:
        """Rewrite the related-PR section of every open PR carrying tag.

        Edits run one at a time in resolver order. Per-PR problems are
        collected in the report; nothing here undoes an already created PR.
        """
        related = resolve(
            self.acting_user,
            tag,
            self.github,
            strategy=self.config.github.related_match,
            pattern=self._pattern,
            include=include or [],
        )
        report = SyncReport()
        if not related.members:
            rprint("[bright_green]>[/bright_green] No related PRs found.")
            return report

        rprint(f"[bright_green]>[/bright_green] Found {len(related.members)} related PR(s). Updating...")
        markers = self.config.template.markers
        for pr in related.members:
            ref = pr.ref()
            section = render_related(related.view_for(pr))
            try:
                body = replace_related_section(pr.body, markers, section)
            except MissingMarkerError as exc:
                report.skipped.append(SyncWarning(ref=ref, reason=str(exc)))
                rprint(f"[yellow]Warning:[/yellow] Skipped {pr.path}: {escape(str(exc))}")
                continue

            if body == pr.body:
                report.unchanged.append(ref)
                rprint(f"[dim]= {pr.path} already up to date[/dim]")
                continue

            try:
                self.github.edit_pr_body(pr.repository, pr.number, body)
            except GitHubError as exc:
                report.failed.append(SyncWarning(ref=ref, reason=str(exc)))
                rprint(f"[red]x[/red] Update {pr.path} failed: {escape(str(exc))}")
                continue
            report.updated.append(ref)
            rprint(f"[bright_green]+[/bright_green] Updated {pr.path}")

        if report.failed:
            rprint("[yellow]Some PRs were not updated. Re-run with --update-only to retry.[/yellow]")
        return report
