"""Ties loading, caching, processing and ignore filtering into one run.

``vet`` is the entry point used by the CLI:

1. discover the supported files under the input path;
2. fetch their lines (one file per worker when file parallelism is on);
3. reuse, partially reuse or rebuild the cached snapshot for the input;
4. filter the results through the ignore set.

Load failures come back as a ``VetResult`` with ``errors`` set; they are
never raised to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Any, Sequence

from proserunner.config import Config, VetOptions
from proserunner.editors import EditorRegistry, default_registry
from proserunner.ignore import IgnoreSet, filter_lines
from proserunner.models import CachedSnapshot, Check, Line
from proserunner.storage import SnapshotStore
from proserunner.text import discover_files, fetch

from . import cache
from .cache import CacheOutcome
from .processor import process, process_files

LOGGER = logging.getLogger(__name__)


@dataclass
class VetInput:
    """Everything needed to vet one input path."""

    file: str
    lines: list[Line]
    checks: list[Check]
    config: Any = None
    output: str = "text"
    no_cache: bool = False
    parallel_lines: bool = True
    parallel_files: bool = False
    skip_ignore: bool = False
    ignore_set: IgnoreSet = field(default_factory=IgnoreSet)


@dataclass
class VetResult:
    input: VetInput | None = None
    snapshot: CachedSnapshot | None = None
    outcome: CacheOutcome | None = None
    results: list[Line] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def issue_count(self) -> int:
        return sum(len(line.issues) for line in self.results)


def _config_payload(config: Any) -> Any:
    if isinstance(config, Config):
        return config.model_dump(mode="json")
    return config if config is not None else {}


def compute_or_cached(
    vet_input: VetInput,
    *,
    store: SnapshotStore,
    registry: EditorRegistry | None = None,
    max_workers: int | None = None,
) -> tuple[CachedSnapshot, CacheOutcome]:
    """Return the snapshot for ``vet_input``, computing only what changed.

    With ``no_cache`` the cached snapshot is not consulted, but the fresh
    result is still stored for the next run.
    """
    registry = registry or default_registry()
    process_fn = partial(process, registry=registry, max_workers=max_workers)
    config = _config_payload(vet_input.config)
    common = dict(
        file=vet_input.file,
        lines=vet_input.lines,
        config=config,
        checks=vet_input.checks,
        output=vet_input.output,
        parallel=vet_input.parallel_lines,
        process_fn=process_fn,
    )

    snapshot = None if vet_input.no_cache else store.load(vet_input.file)
    outcome = cache.classify(
        snapshot, vet_input.file, vet_input.lines, config, vet_input.checks
    )

    if snapshot is not None and outcome is CacheOutcome.FULL_HIT:
        LOGGER.info("Cache hit for %s", vet_input.file)
        return snapshot.with_output(vet_input.output), outcome

    if snapshot is not None and outcome is CacheOutcome.PARTIAL_HIT:
        LOGGER.info("Partial cache hit for %s", vet_input.file)
        fresh = cache.compute_changed(snapshot, **common)
    else:
        LOGGER.info("Cache miss for %s; vetting %d line(s)", vet_input.file, len(vet_input.lines))
        fresh = cache.compute_full(**common)

    if not store.save(fresh):
        LOGGER.warning("Results for %s were not cached", vet_input.file)
    return fresh, outcome


def load_lines(path: Path, options: VetOptions) -> tuple[list[Line], list[str]]:
    """Discover and fetch every line under ``path``; returns ``(lines, errors)``."""
    discovery = discover_files(path, options.exclude)
    if not discovery.ok:
        return [], discovery.errors
    fetcher = partial(fetch, code_blocks=options.code_blocks, quoted_text=options.quoted_text)
    loaded = process_files(
        discovery.files, fetcher, options.parallel_files, max_workers=options.max_workers
    )
    return loaded.lines, loaded.errors


def vet(
    path: Path,
    options: VetOptions,
    checks: Sequence[Check],
    *,
    config: Config | None = None,
    ignore_set: IgnoreSet | None = None,
    store: SnapshotStore | None = None,
    registry: EditorRegistry | None = None,
) -> VetResult:
    """Vet every supported document under ``path``.

    The cache key is the resolved input path, so the same document reached
    through different relative paths shares one snapshot.
    """
    options.validate()
    resolved = Path(path).expanduser().resolve()
    key = str(resolved)
    lines, errors = load_lines(resolved, options)
    if errors:
        for error in errors:
            LOGGER.error("%s", error)
        return VetResult(errors=errors)

    vet_input = VetInput(
        file=key,
        lines=lines,
        checks=list(checks),
        config=config,
        output=options.output,
        no_cache=options.no_cache,
        parallel_lines=options.parallel_lines,
        parallel_files=options.parallel_files,
        skip_ignore=options.skip_ignore,
        ignore_set=ignore_set or IgnoreSet(),
    )
    snapshot, outcome = compute_or_cached(
        vet_input,
        store=store or SnapshotStore(),
        registry=registry,
        max_workers=options.max_workers,
    )
    results = list(snapshot.results)
    if not vet_input.skip_ignore:
        results = filter_lines(results, vet_input.ignore_set)
    return VetResult(input=vet_input, snapshot=snapshot, outcome=outcome, results=results)
