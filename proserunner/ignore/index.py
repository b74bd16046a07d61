"""Ignore entries and the index used to filter issues against them.

Two kinds of ignore exist:

* simple ignores - a bare specimen suppressed everywhere (case-insensitive);
* contextual ignores - :class:`IgnoreEntry` records scoped to a file and
  optionally narrowed to a line and/or a check.

:func:`build_index` groups contextual entries by file, then by line, so each
issue only meets the handful of entries that could possibly match it. The
index is rebuilt for every filtering pass and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator

from proserunner.models import Issue, Line

GRANULARITIES = ("file", "line", "full")


class IgnoreEntry(BaseModel):
    """A contextual ignore: ``specimen`` in ``file``, optionally on one line or for one check."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    file: str
    specimen: str
    line_number: int | None = Field(
        default=None, validation_alias=AliasChoices("line_number", "line_num", "line")
    )
    check: str | None = None

    @field_validator("file", "specimen", mode="before")
    def _require_text(cls, value: object) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("must be a non-empty string")
        return text


class IgnoreSet(BaseModel):
    """Everything a run should suppress.

    ``ignore`` holds simple specimens; ``ignore_issues`` holds contextual
    entries. Both serialise in a stable order so the JSON file diffs cleanly.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    ignore: set[str] = Field(default_factory=set)
    ignore_issues: list[IgnoreEntry] = Field(
        default_factory=list, validation_alias=AliasChoices("ignore_issues", "ignore-issues")
    )

    @field_validator("ignore", mode="before")
    def _clean_specimens(cls, value: object) -> object:
        if value is None:
            return set()
        if isinstance(value, (list, tuple, set, frozenset)):
            return {str(item).strip() for item in value if str(item).strip()}
        return value

    @field_validator("ignore_issues", mode="before")
    def _none_to_list(cls, value: object) -> object:
        return [] if value is None else value

    @field_serializer("ignore")
    def _sorted_specimens(self, value: set[str]) -> list[str]:
        return sorted(value, key=str.lower)

    def is_empty(self) -> bool:
        return not self.ignore and not self.ignore_issues


@dataclass
class FileIgnores:
    by_line: dict[int, list[IgnoreEntry]] = field(default_factory=dict)
    file_wide: list[IgnoreEntry] = field(default_factory=list)


@dataclass(frozen=True)
class IgnoreIndex:
    simple: frozenset[str] = frozenset()
    contextual: dict[str, FileIgnores] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.simple and not self.contextual


@dataclass(frozen=True)
class _IssueFields:
    file: str
    line_number: int | None
    specimen: str
    check: str | None


def _issue_fields(issue: Any) -> _IssueFields:
    """Read the fields used for matching from a report row or a ``(Line, Issue)`` pair.

    Specimens are stripped the same way stored ignores are.
    """
    if isinstance(issue, tuple) and len(issue) == 2 and isinstance(issue[0], Line):
        line, found = issue
        return _IssueFields(line.file, line.line_number, found.specimen.strip(), found.name)
    return _IssueFields(
        issue.file,
        getattr(issue, "line_number", None),
        issue.specimen.strip(),
        getattr(issue, "name", None) or getattr(issue, "check", None),
    )


def build_index(ignore_set: IgnoreSet) -> IgnoreIndex:
    simple = frozenset(specimen.lower() for specimen in ignore_set.ignore)
    contextual: dict[str, FileIgnores] = {}
    for entry in ignore_set.ignore_issues:
        file_ignores = contextual.setdefault(entry.file, FileIgnores())
        if entry.line_number is not None:
            file_ignores.by_line.setdefault(entry.line_number, []).append(entry)
        else:
            file_ignores.file_wide.append(entry)
    return IgnoreIndex(simple=simple, contextual=contextual)


def _matches(entry: IgnoreEntry, fields: _IssueFields) -> bool:
    return (
        entry.file == fields.file
        and entry.specimen.lower() == fields.specimen.lower()
        and (entry.line_number is None or entry.line_number == fields.line_number)
        and (entry.check is None or entry.check == fields.check)
    )


def matches_entry(entry: IgnoreEntry | str, issue: Any) -> bool:
    """Naive predicate: does a single simple or contextual ignore cover ``issue``?"""
    fields = _issue_fields(issue)
    if isinstance(entry, str):
        return entry.lower() == fields.specimen.lower()
    return _matches(entry, fields)


def is_ignored(issue: Any, index: IgnoreIndex) -> bool:
    fields = _issue_fields(issue)
    if fields.specimen.lower() in index.simple:
        return True
    file_ignores = index.contextual.get(fields.file)
    if file_ignores is None:
        return False
    if fields.line_number is not None:
        for entry in file_ignores.by_line.get(fields.line_number, ()):
            if _matches(entry, fields):
                return True
    return any(_matches(entry, fields) for entry in file_ignores.file_wide)


def _as_index(ignores: IgnoreSet | IgnoreIndex | None) -> IgnoreIndex | None:
    if ignores is None:
        return None
    if isinstance(ignores, IgnoreIndex):
        return None if ignores.is_empty() else ignores
    if ignores.is_empty():
        return None
    return build_index(ignores)


def filter_issues(issues: Iterable[Any], ignores: IgnoreSet | IgnoreIndex | None) -> list[Any]:
    """Return the issues not suppressed by ``ignores``, preserving order."""
    index = _as_index(ignores)
    if index is None:
        return list(issues)
    return [issue for issue in issues if not is_ignored(issue, index)]


def filter_lines(lines: Iterable[Line], ignores: IgnoreSet | IgnoreIndex | None) -> list[Line]:
    """Drop ignored issues from each line and drop lines left without any."""
    index = _as_index(ignores)
    if index is None:
        return list(lines)
    kept: list[Line] = []
    for line in lines:
        issues = tuple(issue for issue in line.issues if not is_ignored((line, issue), index))
        if len(issues) == len(line.issues):
            kept.append(line)
        elif issues:
            kept.append(line.model_copy(update={"issues": issues, "has_issue": True}))
    return kept


def issue_to_ignore_entry(issue: Any, granularity: str = "line") -> IgnoreEntry:
    """Turn an issue into an ignore entry.

    ``granularity`` is ``"file"`` (specimen anywhere in the file), ``"line"``
    (only on this line) or ``"full"`` (this line and this check).
    """
    fields = _issue_fields(issue)
    if granularity == "file":
        return IgnoreEntry(file=fields.file, specimen=fields.specimen)
    if granularity == "line":
        return IgnoreEntry(
            file=fields.file, specimen=fields.specimen, line_number=fields.line_number
        )
    if granularity == "full":
        return IgnoreEntry(
            file=fields.file,
            specimen=fields.specimen,
            line_number=fields.line_number,
            check=fields.check,
        )
    raise ValueError(
        f"Unknown granularity {granularity!r}; expected one of {', '.join(GRANULARITIES)}"
    )


def issues_to_ignore_entries(
    issues: Iterable[Any], granularity: str = "line"
) -> list[IgnoreEntry]:
    entries = (
        issue_to_ignore_entry(issue, granularity)
        for issue in issues
        if _issue_fields(issue).specimen
    )
    return list(dict.fromkeys(entries))


def line_issue_pairs(lines: Sequence[Line]) -> list[tuple[Line, Issue]]:
    return [(line, issue) for line in lines for issue in line.issues]
