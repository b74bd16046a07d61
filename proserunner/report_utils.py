"""Utilities for rendering vetting results.

Results arrive as :class:`~proserunner.models.Line` objects carrying their
issues. ``prepare_issues`` flattens them into one ``ReportIssue`` row per
issue, sorted by file, line and column; the builders below render those rows
as grouped text, JSON or CSV.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Iterable

from proserunner.models import Check, Line

CSV_HEADERS = ["File", "Line", "Column", "Specimen", "Check", "Kind", "Message"]


@dataclass(frozen=True)
class ReportIssue:
    """A single issue merged with the line it was found on.

    ``column`` is 1-based here, unlike :class:`~proserunner.models.Issue`.
    """

    file: str
    line_number: int
    column: int
    specimen: str
    name: str
    kind: str
    message: str
    line_text: str = ""


def sentence_dress(text: str) -> str:
    """Capitalise the first character and make sure the text ends with a period.

    Only the first character is touched so recommendations keep their case.
    """
    text = text.strip()
    if not text:
        return text
    if not text.endswith("."):
        text = f"{text}."
    return text[0].upper() + text[1:]


def prepare_issues(lines: Iterable[Line]) -> list[ReportIssue]:
    rows = [
        ReportIssue(
            file=line.file,
            line_number=line.line_number,
            column=issue.column + 1,
            specimen=issue.specimen.strip(),
            name=issue.name,
            kind=issue.kind,
            message=sentence_dress(issue.message),
            line_text=line.text.strip(),
        )
        for line in lines
        for issue in line.issues
    ]
    return sorted(rows, key=lambda row: (row.file, row.line_number, row.column))


def issue_summary(issue: ReportIssue, number: int | None = None) -> str:
    """One tab-separated row: optional ``[n]``, ``line:column`` and the finding."""
    parts = [f"[{number}]"] if number is not None else []
    parts.append(f"{issue.line_number}:{issue.column}")
    parts.append(f'"{issue.specimen}" -> {issue.message}')
    return "\t".join(parts)


def build_report_text(issues: Iterable[ReportIssue]) -> str:
    """Group issues by file and number them in report order."""
    issue_list = list(issues)
    if not issue_list:
        return "No issues found."

    lines: list[str] = []
    current_file: str | None = None
    for number, issue in enumerate(issue_list, start=1):
        if issue.file != current_file:
            if current_file is not None:
                lines.append("")
            lines.append(issue.file)
            current_file = issue.file
        lines.append(issue_summary(issue, number))

    files = len({issue.file for issue in issue_list})
    lines.append("")
    lines.append(f"Found {len(issue_list)} issue(s) in {files} file(s).")
    return "\n".join(lines)


def build_report_json(issues: Iterable[ReportIssue]) -> str:
    return json.dumps([asdict(issue) for issue in issues], indent=2, ensure_ascii=False)


def build_report_csv(issues: Iterable[ReportIssue]) -> list[list[str]]:
    """Convert issues into CSV data.

    Returns a list of rows, where each row is a list of string values.
    The first row contains the column headers.
    """
    rows: list[list[str]] = [list(CSV_HEADERS)]
    for issue in issues:
        rows.append([
            issue.file,
            str(issue.line_number),
            str(issue.column),
            issue.specimen,
            issue.name,
            issue.kind,
            issue.message,
        ])
    return rows


def format_ignore_list(ignore_set) -> list[str]:
    """Describe an ignore set for ``proserunner ignore list``."""
    if ignore_set.is_empty():
        return ["No ignored specimens or issues."]
    lines: list[str] = []
    if ignore_set.ignore:
        lines.append("Simple ignores (apply everywhere):")
        lines.extend(f"  - {specimen}" for specimen in sorted(ignore_set.ignore, key=str.lower))
    if ignore_set.ignore_issues:
        if lines:
            lines.append("")
        lines.append("Contextual ignores:")
        for entry in ignore_set.ignore_issues:
            line = entry.line_number if entry.line_number is not None else "*"
            suffix = f" [{entry.check}]" if entry.check else ""
            lines.append(f'  - {entry.file}:{line} "{entry.specimen}"{suffix}')
    return lines


CHECK_TABLE_HEADERS = ["Name", "Kind", "Explanation"]


def build_checks_table(checks: Iterable[Check]) -> list[str]:
    """Render enabled checks as an aligned Name/Kind/Explanation table, sorted by name."""
    rows = [
        [
            check.name.replace("-", " ").capitalize(),
            check.kind.replace("-", " ").capitalize(),
            sentence_dress(check.explanation),
        ]
        for check in sorted(checks, key=lambda check: check.name.lower())
    ]
    widths = [
        max(len(row[column]) for row in [CHECK_TABLE_HEADERS, *rows])
        for column in range(len(CHECK_TABLE_HEADERS))
    ]

    def _format(row: list[str]) -> str:
        return "  ".join(value.ljust(width) for value, width in zip(row, widths)).rstrip()

    lines = [_format(CHECK_TABLE_HEADERS), _format(["-" * width for width in widths])]
    lines.extend(_format(row) for row in rows)
    return lines


def format_check_warnings(errors: list[str]) -> list[str]:
    """Describe checks that failed to load; empty when every check loaded."""
    if not errors:
        return []
    lines = [f"Warning: {len(errors)} check(s) failed to load and will be skipped."]
    lines.extend(f"  - {error.splitlines()[0]}" for error in errors)
    return lines
