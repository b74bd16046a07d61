"""Applies raw regular-expression checks to a line."""

from __future__ import annotations

import re

from proserunner.models import Check, Expression, Line

from .utilities import add_issue, warn_invalid_pattern


def _specimen(match: re.Match[str]) -> tuple[str, int]:
    # With capture groups the first group is the specimen, as in the check files.
    if match.re.groups and match.group(1) is not None:
        return match.group(1), match.start(1)
    return match.group(0), match.start()


def apply_expression(line: Line, expression: Expression, check: Check) -> Line:
    """Flag every match of one expression; an invalid pattern is logged and skipped."""
    try:
        pattern = re.compile(expression.pattern)
    except re.error as exc:
        warn_invalid_pattern(line, check, expression.pattern, exc)
        return line
    for match in pattern.finditer(line.text):
        specimen, column = _specimen(match)
        if not specimen:
            continue
        line = add_issue(line, check, specimen, column, expression.message)
    return line


def proofread(line: Line, check: Check) -> Line:
    for expression in check.expressions:
        line = apply_expression(line, expression, check)
    return line
