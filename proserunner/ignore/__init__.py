"""Ignore lists: persistence, indexing, filtering and auditing."""

from __future__ import annotations

from .audit import AuditReport, audit, format_audit_report, remove_stale
from .index import (
    GRANULARITIES,
    FileIgnores,
    IgnoreEntry,
    IgnoreIndex,
    IgnoreSet,
    build_index,
    filter_issues,
    filter_lines,
    is_ignored,
    issue_to_ignore_entry,
    issues_to_ignore_entries,
    line_issue_pairs,
    matches_entry,
)
from .store import IgnoreStore

__all__ = [
    "AuditReport",
    "FileIgnores",
    "GRANULARITIES",
    "IgnoreEntry",
    "IgnoreIndex",
    "IgnoreSet",
    "IgnoreStore",
    "audit",
    "build_index",
    "filter_issues",
    "filter_lines",
    "format_audit_report",
    "is_ignored",
    "issue_to_ignore_entry",
    "issues_to_ignore_entries",
    "line_issue_pairs",
    "matches_entry",
    "remove_stale",
]
