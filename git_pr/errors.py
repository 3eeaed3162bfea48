"""Exception hierarchy shared by providers, app.py and main.py."""


class GitPrError(Exception):
    """Base class for every error the CLI turns into a clean exit."""


class ConfigError(GitPrError):
    pass


class GitError(GitPrError):
    pass


class TemplateError(GitPrError):
    pass


class MissingMarkerError(TemplateError):
    def __init__(self, marker: str) -> None:
        super().__init__(f"Marker '{marker}' not found (or out of order) in PR body")
        self.marker = marker


class GitHubError(GitPrError):
    pass


class UserCancelled(GitPrError):
    def __init__(self) -> None:
        super().__init__("Cancelled by user")
