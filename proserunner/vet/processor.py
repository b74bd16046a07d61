"""Applies the loaded checks to lines of text.

Processing flow:
1. For each line, fold every check over it in load order.
2. Each check is dispatched to the editor registered for its kind.
3. Only lines that ended up with issues are returned.

Lines are independent units of work, so the parallel strategy simply fans
them out over a thread pool. A failing check is logged and skipped for that
line; it never aborts the batch.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial, reduce
from pathlib import Path
from typing import Callable, Iterable, Sequence

from proserunner.editors import EditorRegistry, default_registry
from proserunner.models import Check, Line
from proserunner.text import LoadResult

LOGGER = logging.getLogger(__name__)


def safe_dispatch(registry: EditorRegistry, line: Line, check: Check) -> Line:
    """Dispatch ``check`` against ``line``, returning ``line`` unchanged on failure."""
    try:
        return registry.dispatch(line, check)
    except Exception as exc:
        LOGGER.warning(
            "Check '%s' (%s) failed on %s:%d: %s",
            check.name,
            check.kind,
            line.file,
            line.line_number,
            exc,
        )
        return line


def proofread_line(line: Line, checks: Sequence[Check], registry: EditorRegistry) -> Line:
    """Fold every check over a single line."""
    return reduce(partial(safe_dispatch, registry), checks, line)


def process(
    checks: Sequence[Check],
    lines: Iterable[Line],
    parallel: bool,
    *,
    registry: EditorRegistry | None = None,
    max_workers: int | None = None,
) -> list[Line]:
    """Run ``checks`` on each line and return the lines with issues.

    Args:
        checks: Checks in the order they were loaded.
        lines: Lines to vet.
        parallel: Process lines concurrently (one task per line).
        registry: Editor registry; defaults to the process-wide registry.
        max_workers: Optional cap on the number of worker threads.

    Returns:
        Lines where ``has_issue`` is True. No ordering is promised.
    """
    registry = registry or default_registry()
    checks = tuple(checks)
    line_list = list(lines)
    worker = partial(proofread_line, checks=checks, registry=registry)

    if parallel and len(line_list) > 1:
        executor_kwargs = {"max_workers": max_workers} if max_workers else {}
        with ThreadPoolExecutor(**executor_kwargs) as executor:
            vetted = list(executor.map(worker, line_list))
    else:
        vetted = [worker(line) for line in line_list]

    return [line for line in vetted if line.has_issue]


def process_files(
    paths: Sequence[Path],
    fetch: Callable[[Path], LoadResult],
    parallel: bool,
    *,
    max_workers: int | None = None,
) -> LoadResult:
    """Fetch the lines of every file, optionally one file per worker.

    The first failed fetch (in input order) is returned as the overall
    result; otherwise the lines of all files are concatenated.
    """
    if parallel and len(paths) > 1:
        executor_kwargs = {"max_workers": max_workers} if max_workers else {}
        with ThreadPoolExecutor(**executor_kwargs) as executor:
            results = list(executor.map(fetch, paths))
    else:
        results = [fetch(path) for path in paths]

    for result in results:
        if not result.ok:
            return result

    lines: list[Line] = []
    for result in results:
        lines.extend(result.lines)
    return LoadResult(lines=lines)
