"""Tests for git_pr.template — rendering and related-section handling."""

import logging

import pytest

from git_pr.errors import MissingMarkerError
from git_pr.models import PullRequestRef
from git_pr.settings import JiraSettings, Markers, TemplateSettings
from git_pr.template import (
    extract_related_section,
    render,
    render_related,
    replace_related_section,
    tracking_line,
)

MARKERS = "<!-- RELATED_PR -->\n<!-- /RELATED_PR -->\n"


def _template(body: str) -> TemplateSettings:
    return TemplateSettings(body=body, fields=[])


def _ref(repo: str, number: int, is_self: bool = False) -> PullRequestRef:
    return PullRequestRef(repository=repo, number=number, url=f"https://github.com/{repo}/pull/{number}", is_self=is_self)


class TestRender:
    def test_substitutes_fields(self) -> None:
        body = render(_template("## What\n{{description}}\n" + MARKERS), {"description": "Adds X"}, "\n")
        assert body == "## What\nAdds X\n" + MARKERS

    def test_optional_absent_field_removes_whole_line(self) -> None:
        body = render(_template("A\n{{x}}\nB\n" + MARKERS), {"x": None}, "\n")
        assert body.startswith("A\nB\n")
        assert "{{x}}" not in body

    def test_optional_absent_inline_removes_line(self) -> None:
        body = render(_template("A\n**Testing:** {{testing}}\nB\n" + MARKERS), {"testing": None}, "\n")
        assert body.startswith("A\nB\n")
        assert "Testing" not in body

    def test_absent_field_on_marker_line_keeps_markers(self) -> None:
        template = _template("Notes: {{notes}} <!-- RELATED_PR -->\n<!-- /RELATED_PR --> {{notes}}\nEnd\n")
        body = render(template, {"notes": None}, "\n- acme/web/pull/1\n")

        assert body == "Notes:  <!-- RELATED_PR -->\n- acme/web/pull/1\n<!-- /RELATED_PR --> \nEnd\n"
        assert extract_related_section(body, Markers()) == "\n- acme/web/pull/1\n"

    def test_whitespace_inside_braces(self) -> None:
        assert render(_template("{{ name }}\n" + MARKERS), {"name": "v"}, "\n").startswith("v\n")

    def test_unresolved_placeholder_kept_and_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="git_pr.template"):
            body = render(_template("{{unknown}}\n" + MARKERS), {}, "\n")
        assert body.startswith("{{unknown}}\n")
        assert "unknown" in caplog.text

    def test_no_recursive_expansion(self) -> None:
        body = render(_template("{{a}} {{b}}\n" + MARKERS), {"a": "{{b}}", "b": "B"}, "\n")
        assert body.startswith("{{b}} B\n")

    def test_related_section_inserted_verbatim(self) -> None:
        section = "\n- acme/web/pull/3 - (this pr)\n- {{not_a_field}}\n"
        body = render(_template("Top\n" + MARKERS + "Bottom {{x}}\n"), {"x": "!"}, section)
        assert body == f"Top\n<!-- RELATED_PR -->{section}<!-- /RELATED_PR -->\nBottom !\n"

    def test_tracking_line_prepended(self) -> None:
        body = render(_template(MARKERS), {}, "\n", tracking_line="Tracked by [T-1](https://j/T-1)")
        assert body.startswith("Tracked by [T-1](https://j/T-1)\n\n<!-- RELATED_PR -->")

    def test_missing_marker_raises(self) -> None:
        # model_construct skips validation, as a body edited at runtime would
        template = TemplateSettings.model_construct(body="no markers", markers=Markers(), fields=[])
        with pytest.raises(MissingMarkerError):
            render(template, {}, "\n")

    def test_section_round_trip_is_stable(self) -> None:
        template = _template("Head {{d}}\n" + MARKERS + "Tail\n")
        section = render_related([_ref("acme/a", 3, is_self=True), _ref("acme/b", 5)])
        first = render(template, {"d": "x"}, section)
        second = render(template, {"d": "x"}, extract_related_section(first, Markers()) or "")
        assert first == second


class TestRenderRelated:
    def test_formats_self_and_others(self) -> None:
        section = render_related([_ref("repoA", 3, is_self=True), _ref("repoA", 10), _ref("repoB", 5)])
        assert section == "\n- repoA/pull/3 - (this pr)\n- repoA/pull/10\n- repoB/pull/5\n"

    def test_empty(self) -> None:
        assert render_related([]) == "\n"


class TestRelatedSectionHelpers:
    BODY = "Intro\n<!-- RELATED_PR -->\n- old/stuff\n<!-- /RELATED_PR -->\nMore text"

    def test_extract(self) -> None:
        assert extract_related_section(self.BODY, Markers()) == "\n- old/stuff\n"

    def test_extract_missing_markers(self) -> None:
        assert extract_related_section("legacy body", Markers()) is None

    def test_extract_end_before_start(self) -> None:
        body = "<!-- /RELATED_PR -->\n<!-- RELATED_PR -->"
        assert extract_related_section(body, Markers()) is None

    def test_replace_only_touches_interior(self) -> None:
        result = replace_related_section(self.BODY, Markers(), "\n- owner/repo/pull/1 - (this pr)\n")
        assert result == "Intro\n<!-- RELATED_PR -->\n- owner/repo/pull/1 - (this pr)\n<!-- /RELATED_PR -->\nMore text"

    def test_replace_with_extracted_is_identity(self) -> None:
        section = extract_related_section(self.BODY, Markers())
        assert section is not None
        assert replace_related_section(self.BODY, Markers(), section) == self.BODY

    def test_custom_markers(self) -> None:
        markers = Markers(related_pr_start="{{RELATED_START}}", related_pr_end="{{RELATED_END}}")
        body = "Some text\n{{RELATED_START}}\n- old/stuff\n{{RELATED_END}}\nMore text"
        result = replace_related_section(body, markers, "\n- owner/repo/pull/1 - (this pr)\n")
        assert "{{RELATED_START}}" in result
        assert "{{RELATED_END}}" in result
        assert "old/stuff" not in result

    def test_replace_missing_marker_raises(self) -> None:
        with pytest.raises(MissingMarkerError, match="RELATED_PR"):
            replace_related_section("no markers", Markers(), "\n")


class TestTrackingLine:
    def test_with_jira_url(self) -> None:
        jira = JiraSettings(url="https://jira.example.com/browse/")
        assert tracking_line("TRACK-123", jira) == "Tracked by [TRACK-123](https://jira.example.com/browse/TRACK-123)"

    def test_no_url(self) -> None:
        assert tracking_line("TRACK-123", JiraSettings()) is None

    def test_no_tag(self) -> None:
        assert tracking_line(None, JiraSettings(url="https://j/")) is None

    def test_auto_detect_off(self) -> None:
        assert tracking_line("TRACK-1", JiraSettings(url="https://j/", auto_detect=False)) is None

    def test_free_form_tag_is_not_a_jira_key(self) -> None:
        assert tracking_line("login-rework", JiraSettings(url="https://j/")) is None
