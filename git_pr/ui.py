"""Interactive prompts."""

from abc import ABC, abstractmethod
from typing import Any

import click
import questionary
import typer

from git_pr.errors import GitPrError, UserCancelled
from git_pr.settings import FieldKind, FormField

STYLE = questionary.Style([("qmark", "fg:ansibrightgreen bold"), ("answer", "fg:ansibrightcyan")])
QMARK = ">"


class UserInterface(ABC):
    @abstractmethod
    def confirm_tag(self, tag: str) -> str | None:
        """Let the user accept or override a detected tag. Empty input means no tag."""

    @abstractmethod
    def prompt_title(self, suggestions: list[str]) -> str: ...

    @abstractmethod
    def prompt_tag(self, history: list[str]) -> str | None:
        """Ask for a tag, suggesting previously used ones. Empty input means no tag."""

    @abstractmethod
    def select_base(self, candidates: list[str]) -> str: ...

    @abstractmethod
    def prompt_field(self, field: FormField) -> str:
        """Return the raw answer, possibly empty."""

    @abstractmethod
    def select_reviewers(self, choices: list[str], preselected: list[str]) -> list[str]: ...


def _ask(question: questionary.Question) -> Any:
    try:
        return question.unsafe_ask()
    except KeyboardInterrupt as exc:
        raise UserCancelled() from exc


def _optional(answer: str | None) -> str | None:
    answer = (answer or "").strip()
    return answer or None


class TerminalUI(UserInterface):
    def confirm_tag(self, tag: str) -> str | None:
        return _optional(_ask(questionary.text("PR tag:", default=tag, qmark=QMARK, style=STYLE)))

    def prompt_title(self, suggestions: list[str]) -> str:
        default = suggestions[-1] if suggestions else ""
        question = questionary.autocomplete(
            "PR title:",
            choices=suggestions,
            default=default,
            validate=lambda text: bool(text.strip()) or "Title cannot be empty",
            qmark=QMARK,
            style=STYLE,
        )
        return _ask(question).strip()

    def prompt_tag(self, history: list[str]) -> str | None:
        question = questionary.autocomplete(
            "PR tag (leave empty for none):",
            choices=history,
            default=history[0] if history else "",
            qmark=QMARK,
            style=STYLE,
        )
        return _optional(_ask(question))

    def select_base(self, candidates: list[str]) -> str:
        return _ask(questionary.select("PR base:", choices=candidates, default=candidates[0], qmark=QMARK, style=STYLE))

    def prompt_field(self, field: FormField) -> str:
        if field.kind == FieldKind.EDITOR:
            typer.echo(f"{QMARK} {field.prompt} (opening editor)")
            try:
                edited = typer.edit(field.default or "", require_save=False)
            except click.ClickException as exc:
                raise GitPrError(f"Could not open editor: {exc.format_message()}") from exc
            return (edited or "").strip()
        answer = _ask(questionary.text(field.prompt, default=field.default or "", qmark=QMARK, style=STYLE))
        return (answer or "").strip()

    def select_reviewers(self, choices: list[str], preselected: list[str]) -> list[str]:
        if not choices:
            return []
        question = questionary.checkbox(
            "Reviewers:",
            choices=[questionary.Choice(name, checked=name in preselected) for name in choices],
            qmark=QMARK,
            style=STYLE,
        )
        return list(_ask(question) or [])
