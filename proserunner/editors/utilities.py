"""Shared helpers for building editors that flag specimens in a line.

The four parameterised editors (existence, case, recommender and
case-recommender) are produced by two factories that differ only in case
sensitivity; ``EDITOR_SPECS`` lists them so the default registry can be
populated in one loop.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Callable

from proserunner.exceptions import UnknownCheckKind
from proserunner.models import Check, Issue, Line

LOGGER = logging.getLogger(__name__)

# Matches preceded by these characters sit inside link targets, headings or
# identifiers (``[word``, ``#word``, ``-word``, ``_word``) and are skipped.
_SKIP_PRECEDING = r"(?<![\[#\-_])"

EditorFunction = Callable[[Line, Check], Line]


@lru_cache(maxsize=1024)
def make_pattern(alternation: str, case_sensitive: bool) -> re.Pattern[str]:
    """Compile ``alternation`` into a word-bounded specimen pattern.

    Raises:
        re.error: if the alternation is not a valid regular expression.
    """
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(rf"{_SKIP_PRECEDING}\b({alternation})\b", flags)


def warn_invalid_pattern(line: Line, check: Check, pattern: str, exc: re.error) -> None:
    LOGGER.warning(
        "Invalid pattern %r in check '%s' (%s) on %s:%d: %s",
        pattern,
        check.name,
        check.kind,
        line.file,
        line.line_number,
        exc,
    )


def seek(text: str, alternation: str, case_sensitive: bool) -> list[tuple[str, int]]:
    """Return ``(specimen, column)`` for every match of ``alternation`` in ``text``.

    Raises:
        re.error: if the alternation is not a valid regular expression.
    """
    pattern = make_pattern(alternation, case_sensitive)
    return [(match.group(1), match.start(1)) for match in pattern.finditer(text)]


def create_issue(line: Line, check: Check, specimen: str, column: int, message: str) -> Issue:
    return Issue(
        file=line.file,
        name=check.name,
        kind=check.kind,
        specimen=specimen,
        column=column,
        message=message,
    )


def add_issue(line: Line, check: Check, specimen: str, column: int, message: str) -> Line:
    """Attach a new issue for ``specimen`` at ``column`` to ``line``."""
    return line.with_issue(create_issue(line, check, specimen, column, message))


def create_issue_collector(case_sensitive: bool) -> EditorFunction:
    """Build an editor that flags every specimen of a check."""

    def collect(line: Line, check: Check) -> Line:
        if not check.specimens:
            return line
        alternation = "|".join(check.specimens)
        try:
            matches = seek(line.text, alternation, case_sensitive)
        except re.error as exc:
            warn_invalid_pattern(line, check, alternation, exc)
            return line
        for specimen, column in matches:
            line = add_issue(line, check, specimen, column, check.message)
        return line

    return collect


def create_recommender(case_sensitive: bool) -> EditorFunction:
    """Build an editor that flags ``avoid`` terms and suggests ``prefer``."""

    def recommend(line: Line, check: Check) -> Line:
        for recommendation in check.recommendations:
            try:
                matches = seek(line.text, recommendation.avoid, case_sensitive)
            except re.error as exc:
                warn_invalid_pattern(line, check, recommendation.avoid, exc)
                continue
            for specimen, column in matches:
                line = add_issue(
                    line, check, specimen, column, f"Prefer: {recommendation.prefer}"
                )
        return line

    return recommend


EDITOR_SPECS: dict[str, tuple[Callable[[bool], EditorFunction], bool]] = {
    "existence": (create_issue_collector, False),
    "case": (create_issue_collector, True),
    "recommender": (create_recommender, False),
    "case-recommender": (create_recommender, True),
}


def create_editor(kind: str) -> EditorFunction:
    """Return a new editor for a standard ``kind``.

    Raises:
        UnknownCheckKind: if ``kind`` is not one of ``EDITOR_SPECS``.
    """
    entry = EDITOR_SPECS.get(kind)
    if entry is None:
        raise UnknownCheckKind(kind, EDITOR_SPECS)
    factory, case_sensitive = entry
    return factory(case_sensitive)


def standard_editor_kinds() -> set[str]:
    return set(EDITOR_SPECS)
