"""PR body rendering and the marker-delimited related-PR section."""

import logging
import re
from collections.abc import Iterable, Mapping

from git_pr.errors import MissingMarkerError
from git_pr.models import PullRequestRef
from git_pr.settings import JiraSettings, Markers, TemplateSettings
from git_pr.tags import matches_in_full

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")

SELF_SUFFIX = " - (this pr)"


def _split(body: str, markers: Markers) -> tuple[str, str, str]:
    """Return (head including start marker, interior, tail including end marker)."""
    start, end = markers.related_pr_start, markers.related_pr_end
    start_at = body.find(start)
    if start_at < 0:
        raise MissingMarkerError(start)
    interior_at = start_at + len(start)
    end_at = body.find(end, interior_at)
    if end_at < 0:
        raise MissingMarkerError(end)
    return body[:interior_at], body[interior_at:end_at], body[end_at:]


def _substitute(
    text: str,
    fields: Mapping[str, str | None],
    unresolved: set[str],
    markers: Markers,
) -> str:
    out: list[str] = []
    for line in text.splitlines(keepends=True):
        names = _PLACEHOLDER.findall(line)
        absent = {name for name in names if name in fields and fields[name] is None}
        has_marker = markers.related_pr_start in line or markers.related_pr_end in line
        if absent and not has_marker:
            continue  # optional field left empty: drop the whole line

        def _value(match: re.Match[str]) -> str:
            name = match.group(1)
            if name in absent:
                return ""  # a marker line is never dropped
            value = fields.get(name)
            if value is None:
                unresolved.add(name)
                return match.group(0)
            return value

        out.append(_PLACEHOLDER.sub(_value, line))
    return "".join(out)


def render(
    template: TemplateSettings,
    fields: Mapping[str, str | None],
    related_section: str,
    tracking_line: str | None = None,
) -> str:
    """Render the PR body.

    ``fields`` maps field name to value; ``None`` means an optional field was
    left empty and removes every line carrying its placeholder. Placeholders
    with no entry in ``fields`` are kept verbatim and logged.

    The related-PR interior is replaced by ``related_section`` as is and is
    never scanned for placeholders.
    """
    head, _, tail = _split(template.body, template.markers)
    unresolved: set[str] = set()
    markers = template.markers
    body = (
        _substitute(head, fields, unresolved, markers)
        + related_section
        + _substitute(tail, fields, unresolved, markers)
    )

    for name in sorted(unresolved):
        logger.warning("Unresolved placeholder {{%s}} left in PR body", name)

    if tracking_line:
        body = f"{tracking_line}\n\n{body}"
    return body


def render_related(refs: Iterable[PullRequestRef]) -> str:
    """Format the section interior: one "- owner/repo/pull/N" line per PR."""
    lines = [f"- {ref.path}{SELF_SUFFIX}" if ref.is_self else f"- {ref.path}" for ref in refs]
    return "\n" + "".join(f"{line}\n" for line in lines)


def extract_related_section(body: str, markers: Markers) -> str | None:
    """Return the raw text between the markers, or None if they are missing."""
    try:
        _, interior, _ = _split(body, markers)
    except MissingMarkerError:
        return None
    return interior


def replace_related_section(body: str, markers: Markers, section: str) -> str:
    """Swap only the interior between the markers; everything else is untouched."""
    head, _, tail = _split(body, markers)
    return f"{head}{section}{tail}"


def tracking_line(tag: str | None, jira: JiraSettings, pattern: str | None = None) -> str | None:
    """Return "Tracked by [TAG](<jira url>TAG)" when the tag looks like a Jira key."""
    if not tag or not jira.url or not jira.auto_detect:
        return None
    if not matches_in_full(tag, pattern):
        return None
    return f"Tracked by [{tag}]({jira.url}{tag})"
