"""Finding contextual ignores that point at files which no longer exist."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .index import IgnoreEntry, IgnoreSet


@dataclass
class AuditReport:
    active: IgnoreSet = field(default_factory=IgnoreSet)
    stale: list[IgnoreEntry] = field(default_factory=list)

    @property
    def has_stale(self) -> bool:
        return bool(self.stale)


def _file_exists(file: str) -> bool:
    return Path(file).expanduser().exists()


def audit(ignore_set: IgnoreSet) -> AuditReport:
    """Split contextual entries into active and stale ones.

    Simple ignores are not tied to a file and are always active.
    """
    active: list[IgnoreEntry] = []
    stale: list[IgnoreEntry] = []
    for entry in ignore_set.ignore_issues:
        (active if _file_exists(entry.file) else stale).append(entry)
    return AuditReport(
        active=IgnoreSet(ignore=set(ignore_set.ignore), ignore_issues=active),
        stale=stale,
    )


def remove_stale(ignore_set: IgnoreSet) -> IgnoreSet:
    return audit(ignore_set).active


def format_audit_report(report: AuditReport) -> list[str]:
    simple = len(report.active.ignore)
    contextual = len(report.active.ignore_issues) + len(report.stale)
    total = simple + contextual
    if not report.stale:
        return [
            f"All {total} ignore entries are active ({simple} simple, {contextual} contextual).",
            "No stale ignores found.",
        ]
    lines = [
        f"Found {len(report.stale)} stale contextual ignore(s) out of {total} total entries:",
        "",
    ]
    for entry in report.stale:
        line = entry.line_number if entry.line_number is not None else "*"
        lines.append(f'  - File: {entry.file}:{line} - "{entry.specimen}"')
    lines.append("")
    lines.append("Stale ignores reference files that no longer exist.")
    lines.append("Use 'proserunner ignore audit --clean' to remove them.")
    return lines
