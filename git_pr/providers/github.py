"""GitHub REST API v3 client."""

import logging
import subprocess
from typing import Any

import httpx

from git_pr.errors import GitHubError
from git_pr.models import PullRequest, PullRequestDraft
from git_pr.providers.base import GitHubClient
from git_pr.settings import EnvSettings

logger = logging.getLogger(__name__)

BASE_URL = "https://api.github.com"
PER_PAGE = 100
MAX_PAGES = 10  # search API stops at 1000 results anyway


def _repo_from_html_url(html_url: str) -> str:
    # https://github.com/owner/repo/pull/123
    parts = html_url.split("/")
    return f"{parts[3]}/{parts[4]}"


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("message", response.text)
    except ValueError:
        return response.text


class RestGitHub(GitHubClient):
    def __init__(self, env: EnvSettings, api_url: str = BASE_URL) -> None:
        self._token = self._resolve_token(env)
        self._base_url = api_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _resolve_token(self, env: EnvSettings) -> str:
        if env.github_token:
            return env.github_token.get_secret_value()
        try:
            result = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True)
        except FileNotFoundError as exc:
            raise GitHubError("No GitHub credentials. Set GITHUB_TOKEN or install gh and run: gh auth login") from exc
        if result.returncode != 0 or not result.stdout.strip():
            raise GitHubError("No GitHub credentials. Set GITHUB_TOKEN or run: gh auth login")
        return result.stdout.strip()

    def _request(self, method: str, path: str, params: dict | None = None, body: dict | None = None) -> Any:
        logger.debug("%s %s params=%s", method, path, params)
        try:
            response = httpx.request(
                method,
                f"{self._base_url}{path}",
                headers=self._headers,
                params=params or {},
                json=body,
                timeout=30,
            )
        except httpx.HTTPError as exc:
            raise GitHubError(f"GitHub API {method} {path} failed: {exc}") from exc
        if response.status_code == 401:
            raise GitHubError("GitHub API returned 401. Check GITHUB_TOKEN or run: gh auth login")
        if response.is_error:
            raise GitHubError(f"GitHub API {method} {path} returned {response.status_code}: {_error_message(response)}")
        if not response.content:
            return None
        return response.json()

    def _get(self, path: str, params: dict | None = None) -> Any:
        return self._request("GET", path, params=params)

    def _post(self, path: str, body: dict) -> Any:
        return self._request("POST", path, body=body)

    def _patch(self, path: str, body: dict) -> Any:
        return self._request("PATCH", path, body=body)

    def _pr_from_node(self, node: dict, repository: str | None = None) -> PullRequest:
        return PullRequest(
            repository=repository or _repo_from_html_url(node["html_url"]),
            number=node["number"],
            title=node["title"],
            body=node.get("body") or "",
            url=node["html_url"],
            state=node.get("state", "open"),
        )

    def authenticated_user(self) -> str:
        return self._get("/user")["login"]

    def create_pr(self, draft: PullRequestDraft) -> PullRequest:
        node = self._post(
            f"/repos/{draft.repository}/pulls",
            {"title": draft.title, "body": draft.body, "base": draft.base, "head": draft.head},
        )
        pr = self._pr_from_node(node, draft.repository)

        # The PR exists at this point; reviewer/assignee hiccups must not undo it.
        if draft.reviewers:
            try:
                self._post(f"/repos/{draft.repository}/pulls/{pr.number}/requested_reviewers", {"reviewers": draft.reviewers})
            except GitHubError as exc:
                logger.warning("Could not request reviewers on %s: %s", pr.path, exc)
        if draft.assignees:
            try:
                self._post(f"/repos/{draft.repository}/issues/{pr.number}/assignees", {"assignees": draft.assignees})
            except GitHubError as exc:
                logger.warning("Could not assign %s: %s", pr.path, exc)
        return pr

    def list_my_prs(self, user: str) -> list[PullRequest]:
        result: list[PullRequest] = []
        for page in range(1, MAX_PAGES + 1):
            data = self._get(
                "/search/issues",
                params={"q": f"is:pr is:open author:{user}", "per_page": str(PER_PAGE), "page": str(page)},
            )
            items = data.get("items", [])
            result.extend(self._pr_from_node(item) for item in items)
            if len(items) < PER_PAGE:
                break
        return result

    def edit_pr_body(self, repository: str, number: int, body: str) -> None:
        self._patch(f"/repos/{repository}/pulls/{number}", {"body": body})

    def list_collaborators(self, repository: str) -> list[str]:
        logins: list[str] = []
        for page in range(1, MAX_PAGES + 1):
            nodes = self._get(
                f"/repos/{repository}/collaborators",
                params={"per_page": str(PER_PAGE), "page": str(page)},
            )
            logins.extend(node["login"] for node in nodes)
            if len(nodes) < PER_PAGE:
                break
        return logins

    def find_pr_for_branch(self, repository: str, branch: str) -> PullRequest | None:
        owner = repository.split("/", 1)[0]
        nodes = self._get(f"/repos/{repository}/pulls", params={"head": f"{owner}:{branch}", "state": "open"})
        if not nodes:
            return None
        return self._pr_from_node(nodes[0], repository)
