"""Cache validation and incremental recomputation.

Three outcomes are possible for every input path:

1. FULL_HIT - file, lines, config and checks are unchanged; the cached
   results are reused as they are.
2. PARTIAL_HIT - config and checks are unchanged but the text moved on;
   only the changed lines are vetted and the cached results for the rest
   are renumbered and spliced back in.
3. MISS - no usable snapshot, or the config or checks changed; everything
   is vetted again.

Lines are matched by file and text rather than by position, so cached
results survive lines being inserted or deleted elsewhere in the file.
"""

from __future__ import annotations

import logging
from collections import Counter
from enum import Enum
from typing import Any, Callable, Iterable, Sequence

from pydantic_core import to_jsonable_python

from proserunner.models import UNRESOLVED_LINE_NUMBER, CachedSnapshot, Check, Line
from proserunner.storage import stable_hash

LOGGER = logging.getLogger(__name__)

ProcessFunction = Callable[[Sequence[Check], Sequence[Line], bool], list[Line]]
LineKey = tuple[str, str]


class CacheOutcome(str, Enum):
    FULL_HIT = "full-hit"
    PARTIAL_HIT = "partial-hit"
    MISS = "miss"


def valid_config(snapshot: CachedSnapshot, config: Any) -> bool:
    return snapshot.config_hash == stable_hash(config)


def valid_checks(snapshot: CachedSnapshot, checks: Sequence[Check]) -> bool:
    return snapshot.check_hash == stable_hash(list(checks))


def valid_lines(snapshot: CachedSnapshot, lines: Sequence[Line]) -> bool:
    return snapshot.lines_hash == stable_hash(list(lines))


def valid_file(snapshot: CachedSnapshot, file: str) -> bool:
    return snapshot.file_hash == stable_hash(file)


def classify(
    snapshot: CachedSnapshot | None,
    file: str,
    lines: Sequence[Line],
    config: Any,
    checks: Sequence[Check],
) -> CacheOutcome:
    """Decide how much of ``snapshot`` can be reused for the current input."""
    if snapshot is None:
        return CacheOutcome.MISS
    if not (valid_config(snapshot, config) and valid_checks(snapshot, checks)):
        return CacheOutcome.MISS
    if valid_file(snapshot, file) and valid_lines(snapshot, lines):
        return CacheOutcome.FULL_HIT
    return CacheOutcome.PARTIAL_HIT


def build_snapshot(
    *,
    file: str,
    lines: Sequence[Line],
    config: Any,
    checks: Sequence[Check],
    output: str,
    results: Iterable[Line],
) -> CachedSnapshot:
    lines = list(lines)
    return CachedSnapshot(
        file=file,
        lines=tuple(lines),
        lines_hash=stable_hash(lines),
        file_hash=stable_hash(file),
        config=to_jsonable_python(config) if config is not None else {},
        config_hash=stable_hash(config),
        check_hash=stable_hash(list(checks)),
        output=output,
        results=tuple(results),
    )


def line_key(line: Line) -> LineKey:
    return (line.file, line.text)


def text_to_line_number(lines: Iterable[Line]) -> dict[LineKey, int]:
    """Map each line's ``(file, text)`` to its line number.

    Text that appears on more than one line of a file is left out: a single
    number cannot stand for several lines, so those lines are always vetted
    afresh. A result never follows its text into another file.
    """
    lines = list(lines)
    counts = Counter(line_key(line) for line in lines)
    return {
        line_key(line): line.line_number for line in lines if counts[line_key(line)] == 1
    }


def update_line_numbers(line_map: dict[LineKey, int], results: Iterable[Line]) -> list[Line]:
    """Move cached results to the line number their text now has in the same file."""
    return [
        result.with_line_number(line_map.get(line_key(result), UNRESOLVED_LINE_NUMBER))
        for result in results
    ]


def changed_lines(
    cached_map: dict[LineKey, int], current_map: dict[LineKey, int], lines: Iterable[Line]
) -> list[Line]:
    """Lines that cannot be matched one-to-one with the cached version of their file."""
    return [
        line
        for line in lines
        if line_key(line) not in cached_map or line_key(line) not in current_map
    ]


def combine(cached_results: Iterable[Line], new_results: Iterable[Line]) -> list[Line]:
    """Splice renumbered cached results and fresh results together.

    Cached entries that could not be placed are dropped; exact duplicates
    are collapsed, keeping the first occurrence.
    """
    merged = [
        line
        for line in [*cached_results, *new_results]
        if line.line_number != UNRESOLVED_LINE_NUMBER
    ]
    return list(dict.fromkeys(merged))


def compute_full(
    *,
    file: str,
    lines: Sequence[Line],
    config: Any,
    checks: Sequence[Check],
    output: str,
    parallel: bool,
    process_fn: ProcessFunction,
) -> CachedSnapshot:
    """Vet every line and wrap the results in a fresh snapshot."""
    results = process_fn(checks, lines, parallel)
    return build_snapshot(
        file=file, lines=lines, config=config, checks=checks, output=output, results=results
    )


def compute_changed(
    snapshot: CachedSnapshot,
    *,
    file: str,
    lines: Sequence[Line],
    config: Any,
    checks: Sequence[Check],
    output: str,
    parallel: bool,
    process_fn: ProcessFunction,
) -> CachedSnapshot:
    """Vet only the lines that changed since ``snapshot`` and merge the results."""
    cached_map = text_to_line_number(snapshot.lines)
    current_map = text_to_line_number(lines)
    renumbered = update_line_numbers(current_map, snapshot.results)
    delta = changed_lines(cached_map, current_map, lines)
    LOGGER.info(
        "Recomputing %d of %d line(s) for %s", len(delta), len(lines), file
    )
    new_results = process_fn(checks, delta, parallel)
    return build_snapshot(
        file=file,
        lines=lines,
        config=config,
        checks=checks,
        output=output,
        results=combine(renumbered, new_results),
    )
