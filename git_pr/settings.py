"""Configuration: YAML file in the config directory, environment fallback, validated once."""

import os
import re
from enum import Enum
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from git_pr.errors import ConfigError

PKG_NAME = "git-pr"
CONFIG_FILE = "config.yml"
TAGS_FILE = "tags.txt"

# [TRACK-123], TRACK-123 — brackets optional, group 1 is the tag
DEFAULT_TAG_PATTERN = r"\[?\b([A-Z]+-\d+)\b\]?"

DEFAULT_BODY = """\
## What is this PR doing

{{description}}

## Considerations and implementation

{{implementation}}

**Testing:** {{testing}}

## Related PRs

<!-- RELATED_PR -->
<!-- /RELATED_PR -->
"""


class FieldKind(str, Enum):
    TEXT = "text"  # single line
    EDITOR = "editor"  # multi-line, opens $EDITOR


class FormField(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(pattern=r"^\w+$")
    prompt: str
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    default: str | None = None


def _default_fields() -> list[FormField]:
    return [
        FormField(name="description", prompt="What is this PR doing:", kind=FieldKind.EDITOR, required=True),
        FormField(name="implementation", prompt="Considerations and implementation:", kind=FieldKind.EDITOR),
        FormField(name="testing", prompt="How was this tested?"),
    ]


class Markers(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    related_pr_start: str = "<!-- RELATED_PR -->"
    related_pr_end: str = "<!-- /RELATED_PR -->"

    @model_validator(mode="after")
    def _distinct(self) -> "Markers":
        if not self.related_pr_start.strip() or not self.related_pr_end.strip():
            raise ValueError("related PR markers must not be empty")
        if self.related_pr_start == self.related_pr_end:
            raise ValueError("related PR start and end markers must differ")
        return self


class TemplateSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    body: str = DEFAULT_BODY
    markers: Markers = Markers()
    fields: list[FormField] = Field(default_factory=_default_fields)

    @model_validator(mode="after")
    def _check_body_and_fields(self) -> "TemplateSettings":
        start, end = self.markers.related_pr_start, self.markers.related_pr_end
        for marker in (start, end):
            count = self.body.count(marker)
            if count != 1:
                raise ValueError(f"template body must contain '{marker}' exactly once (found {count})")
        if self.body.index(start) > self.body.index(end):
            raise ValueError(f"'{start}' must come before '{end}' in the template body")

        seen: set[str] = set()
        for field in self.fields:
            if field.name in seen:
                raise ValueError(f"duplicate form field name '{field.name}'")
            seen.add(field.name)
        return self


class JiraSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str | None = None  # e.g. https://company.atlassian.net/browse/
    auto_detect: bool = True


class GitHubSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    user: str | None = None
    default_reviewers: list[str] = []
    related_match: Literal["token", "title_tag"] = "token"
    api_url: str = "https://api.github.com"


class TagSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    pattern: str = DEFAULT_TAG_PATTERN
    history_size: int = Field(default=10, ge=1)

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid tag pattern: {exc}") from exc
        return value


class Config(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    jira: JiraSettings = JiraSettings()
    github: GitHubSettings = GitHubSettings()
    template: TemplateSettings = TemplateSettings()
    tags: TagSettings = TagSettings()


class EnvSettings(BaseSettings):
    """Environment fallbacks. Values in config.yml always win over these."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_user: str | None = None
    github_token: SecretStr | None = None
    jira_url: str | None = None
    git_pr_config: Path | None = None


def default_config_dir() -> Path:
    """Return ~/.config/git-pr, respecting XDG_CONFIG_HOME."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / PKG_NAME


def resolve_config_dir(cli_value: Path | None = None, env: EnvSettings | None = None) -> Path:
    """Precedence: --config flag, GIT_PR_CONFIG, default location."""
    if cli_value:
        return cli_value.expanduser()
    env = env or EnvSettings()
    if env.git_pr_config:
        return env.git_pr_config.expanduser()
    return default_config_dir()


def load_config(config_dir: Path, env: EnvSettings | None = None) -> Config:
    """Load <config_dir>/config.yml (missing file means defaults) and apply env fallbacks."""
    env = env or EnvSettings()
    path = config_dir / CONFIG_FILE

    raw: object = {}
    if path.exists():
        try:
            with path.open() as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Malformed YAML in {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"{path} must contain a mapping at the top level")

    try:
        config = Config.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}:\n{exc}") from exc

    updates: dict = {}
    if not config.github.user and env.github_user:
        updates["github"] = config.github.model_copy(update={"user": env.github_user})
    if not config.jira.url and env.jira_url:
        updates["jira"] = config.jira.model_copy(update={"url": env.jira_url})
    return config.model_copy(update=updates) if updates else config


class _BlockDumper(yaml.SafeDumper):
    pass


def _str_representer(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    style = "|" if "\n" in value else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", value, style=style)


_BlockDumper.add_representer(str, _str_representer)


def dump_config(config: Config) -> str:
    return yaml.dump(config.model_dump(mode="json"), Dumper=_BlockDumper, sort_keys=False, allow_unicode=True)


def write_default_config(config_dir: Path, force: bool = False) -> Path:
    """Write config.yml with every default spelled out. Refuses to overwrite unless force."""
    path = config_dir / CONFIG_FILE
    if path.exists() and not force:
        raise ConfigError(f"{path} already exists. Use --force to overwrite.")
    config_dir.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_config(Config()))
    return path
