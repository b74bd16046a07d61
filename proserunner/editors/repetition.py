"""Detects consecutive repeated words such as ``the the``."""

from __future__ import annotations

import re
from itertools import groupby

from proserunner.models import Check, Line

from .utilities import add_issue

DEFAULT_MESSAGE = "Consecutive word repetition"

_TOKEN = re.compile(r"\S+")
_NON_WORD = re.compile(r"\W")
_WORD_CHAR = re.compile(r"\w")


def _normalise(token: str) -> str:
    return _NON_WORD.sub("", token).casefold()


def _word_span(match: re.Match[str]) -> tuple[int, int]:
    """Offsets of the first and one-past-last word character in a token."""
    token = match.group()
    chars = [index for index, char in enumerate(token) if _WORD_CHAR.match(char)]
    return match.start() + chars[0], match.start() + chars[-1] + 1


def proofread(line: Line, check: Check) -> Line:
    """Flag each run of adjacent tokens that are equal after case-folding.

    Punctuation is ignored when comparing tokens, so ``this this.`` is a
    repetition. The specimen is the run as it appears in the line.
    """
    tokens = list(_TOKEN.finditer(line.text))
    message = check.message or DEFAULT_MESSAGE
    for word, group in groupby(tokens, key=lambda match: _normalise(match.group())):
        run = list(group)
        if len(run) < 2 or not word:
            continue
        start, _ = _word_span(run[0])
        _, end = _word_span(run[-1])
        line = add_issue(line, check, line.text[start:end], start, message)
    return line
