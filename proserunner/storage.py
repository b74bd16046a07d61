"""Persistence for cached vetting snapshots.

Snapshots live in one JSON file per input path inside the cache directory
(by default ``<tmp>/proserunner-storage``). File names and validity checks
use :func:`stable_hash`, a digest of a canonical JSON rendering, so a cache
written by one process is recognised by the next.
"""

from __future__ import annotations

import hashlib
import json
import logging
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from proserunner.exceptions import CacheCorruptionError
from proserunner.models import SNAPSHOT_VERSION, CachedSnapshot

LOGGER = logging.getLogger(__name__)

CACHE_DIR_NAME = "proserunner-storage"


def default_cache_dir() -> Path:
    return Path(tempfile.gettempdir()) / CACHE_DIR_NAME


def canonical_json(data: Any) -> str:
    """Render ``data`` as JSON with sorted keys and no insignificant whitespace."""
    return json.dumps(
        to_jsonable_python(data),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def stable_hash(data: Any) -> str:
    """SHA-256 of the canonical JSON form of ``data``; stable across restarts."""
    return hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()


class SnapshotStore:
    """Reads and writes :class:`CachedSnapshot` records."""

    def __init__(self, cache_dir: Path | None = None) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir is not None else default_cache_dir()

    def path_for(self, file: str) -> Path:
        return self.cache_dir / f"file{stable_hash(file)}.json"

    def _read(self, path: Path) -> CachedSnapshot:
        try:
            raw = path.read_text(encoding="utf-8")
            snapshot = CachedSnapshot.model_validate_json(raw)
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            # ValidationError is a ValueError subclass; malformed JSON lands here too.
            reason = exc.error_count() if isinstance(exc, ValidationError) else exc
            raise CacheCorruptionError(f"unreadable snapshot ({reason})") from exc
        if snapshot.version != SNAPSHOT_VERSION:
            raise CacheCorruptionError(
                f"snapshot version {snapshot.version!r} != {SNAPSHOT_VERSION!r}"
            )
        return snapshot

    def load(self, file: str) -> CachedSnapshot | None:
        """Return the snapshot for ``file``, or None when there is none to reuse.

        A corrupted snapshot is deleted (with a warning) so the next run
        starts clean.
        """
        path = self.path_for(file)
        if not path.exists():
            return None
        try:
            snapshot = self._read(path)
        except CacheCorruptionError as exc:
            LOGGER.warning("Corrupted cache detected for file '%s': %s", file, exc)
            LOGGER.warning("Clearing corrupted cache and recomputing...")
            try:
                path.unlink()
            except OSError as unlink_exc:
                LOGGER.warning("Could not delete corrupted cache %s: %s", path, unlink_exc)
            return None
        if snapshot.file != file:
            LOGGER.info("Cache entry %s belongs to %s; ignoring", path, snapshot.file)
            return None
        return snapshot

    def save(self, snapshot: CachedSnapshot) -> bool:
        """Write ``snapshot`` atomically; failures are logged and reported as False."""
        path = self.path_for(snapshot.file)
        temp_file = path.with_suffix(".tmp")
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            temp_file.write_text(snapshot.model_dump_json(), encoding="utf-8")
            temp_file.replace(path)
        except OSError as exc:
            LOGGER.warning("Failed to save cache to %s: %s", path, exc)
            try:
                if temp_file.exists():
                    temp_file.unlink()
            except OSError:
                LOGGER.debug("Could not remove temporary cache file %s", temp_file)
            return False
        return True

    def delete(self, file: str) -> None:
        path = self.path_for(file)
        try:
            path.unlink()
        except FileNotFoundError:
            return

    def clear(self) -> int:
        """Delete every snapshot in the cache directory; returns how many went."""
        if not self.cache_dir.is_dir():
            return 0
        removed = 0
        for path in self.cache_dir.glob("file*.json"):
            try:
                path.unlink()
                removed += 1
            except OSError as exc:
                LOGGER.warning("Could not delete %s: %s", path, exc)
        return removed
