from __future__ import annotations

import itertools
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from proserunner.ignore import (
    IgnoreEntry,
    IgnoreSet,
    build_index,
    filter_issues,
    filter_lines,
    issue_to_ignore_entry,
    issues_to_ignore_entries,
    line_issue_pairs,
    matches_entry,
)
from proserunner.models import Issue, Line
from proserunner.report_utils import ReportIssue


def _row(file: str = "a.md", line: int = 1, specimen: str = "very", name: str = "weasel") -> ReportIssue:
    return ReportIssue(
        file=file,
        line_number=line,
        column=1,
        specimen=specimen,
        name=name,
        kind="existence",
        message="Weasel word.",
    )


@pytest.mark.parametrize(
    ("ignore_set", "issue", "suppressed"),
    [
        (IgnoreSet(ignore={"Very"}), _row(), True),
        (IgnoreSet(ignore={"Very"}), _row(specimen="really"), False),
        (IgnoreSet(ignore_issues=[IgnoreEntry(file="a.md", specimen="VERY")]), _row(line=9), True),
        (IgnoreSet(ignore_issues=[IgnoreEntry(file="a.md", specimen="very")]), _row(file="b.md"), False),
        (IgnoreSet(ignore_issues=[IgnoreEntry(file="a.md", specimen="very", line_number=1)]), _row(), True),
        (IgnoreSet(ignore_issues=[IgnoreEntry(file="a.md", specimen="very", line_number=2)]), _row(), False),
        (IgnoreSet(ignore_issues=[IgnoreEntry(file="a.md", specimen="very", check="weasel")]), _row(), True),
        (IgnoreSet(ignore_issues=[IgnoreEntry(file="a.md", specimen="very", check="other")]), _row(), False),
        (
            IgnoreSet(ignore_issues=[IgnoreEntry(file="a.md", specimen="very", line_number=1, check="weasel")]),
            _row(name="other"),
            False,
        ),
        (IgnoreSet(), _row(), False),
    ],
)
def test_filter_matrix(ignore_set: IgnoreSet, issue: ReportIssue, suppressed: bool) -> None:
    assert (filter_issues([issue], ignore_set) == []) is suppressed


def test_index_agrees_with_naive_matching() -> None:
    files = ["a.md", "b.md"]
    specimens = ["very", "Really"]
    entries = [
        IgnoreEntry(file=file, specimen=specimen, line_number=line, check=check)
        for file, specimen, line, check in itertools.product(files, specimens, [None, 2], [None, "weasel"])
    ][::3]
    ignore_set = IgnoreSet(ignore={"quite"}, ignore_issues=entries)
    issues = [
        _row(file=file, line=line, specimen=specimen, name=name)
        for file, line, specimen, name in itertools.product(
            files + ["c.md"], [1, 2, 3], ["very", "REALLY", "quite", "so"], ["weasel", "hedge"]
        )
    ]

    naive = [
        issue
        for issue in issues
        if not any(matches_entry(entry, issue) for entry in [*ignore_set.ignore, *ignore_set.ignore_issues])
    ]

    assert filter_issues(issues, ignore_set) == naive
    assert filter_issues(issues, build_index(ignore_set)) == naive


def test_build_index_groups_by_file_and_line() -> None:
    by_line = IgnoreEntry(file="a.md", specimen="very", line_number=4)
    file_wide = IgnoreEntry(file="a.md", specimen="so")

    index = build_index(IgnoreSet(ignore={"Quite"}, ignore_issues=[by_line, file_wide]))

    assert index.simple == frozenset({"quite"})
    assert index.contextual["a.md"].by_line == {4: [by_line]}
    assert index.contextual["a.md"].file_wide == [file_wide]


def test_filter_lines_drops_ignored_issues_and_empty_lines() -> None:
    def issue(specimen: str) -> Issue:
        return Issue(file="a.md", name="weasel", kind="existence", specimen=specimen, column=0, message="m")

    mixed = Line(file="a.md", text="very so", line_number=1, issues=[issue("very"), issue("so")])
    only_ignored = Line(file="a.md", text="very", line_number=2, issues=[issue("very")])

    kept = filter_lines([mixed, only_ignored], IgnoreSet(ignore={"very"}))

    assert len(kept) == 1
    assert [found.specimen for found in kept[0].issues] == ["so"]
    assert kept[0].has_issue
    assert filter_issues(line_issue_pairs([mixed]), IgnoreSet(ignore={"so"})) == [(mixed, mixed.issues[0])]


@pytest.mark.parametrize(
    ("granularity", "expected"),
    [
        ("file", IgnoreEntry(file="a.md", specimen="very")),
        ("line", IgnoreEntry(file="a.md", specimen="very", line_number=3)),
        ("full", IgnoreEntry(file="a.md", specimen="very", line_number=3, check="weasel")),
    ],
)
def test_issue_to_ignore_entry(granularity: str, expected: IgnoreEntry) -> None:
    assert issue_to_ignore_entry(_row(line=3), granularity) == expected


def test_issue_to_ignore_entry_rejects_unknown_granularity() -> None:
    with pytest.raises(ValueError):
        issue_to_ignore_entry(_row(), "paragraph")


def test_issues_to_ignore_entries_dedupes() -> None:
    entries = issues_to_ignore_entries([_row(line=1), _row(line=2), _row(line=1)], "file")

    assert entries == [IgnoreEntry(file="a.md", specimen="very")]


def test_entry_accepts_line_num_alias() -> None:
    entry = IgnoreEntry.model_validate({"file": "a.md", "specimen": "very", "line_num": 7})

    assert entry.line_number == 7


def test_entries_from_padded_specimens_suppress_the_same_issues() -> None:
    padded = Issue(file="a.md", name="spaced", kind="regex", specimen=" very ", column=3, message="m")
    blank = Issue(file="a.md", name="spaced", kind="regex", specimen="  ", column=0, message="m")
    line = Line(file="a.md", text="So very good.", line_number=2, issues=[padded, blank])

    entries = issues_to_ignore_entries(line_issue_pairs([line]), "full")

    assert entries == [IgnoreEntry(file="a.md", specimen="very", line_number=2, check="spaced")]
    kept = filter_lines([line], IgnoreSet(ignore_issues=entries))
    assert [found.specimen for found in kept[0].issues] == ["  "]
