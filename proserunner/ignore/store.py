"""JSON persistence for ignore lists.

The file has this structure::

    {
        "version": "1.0",
        "ignore": ["hopefully", "utilize"],
        "ignore_issues": [
            {"file": "~/notes/draft.md", "specimen": "very", "line_number": 12, "check": null}
        ]
    }

Simple specimens are kept sorted and contextual entries are sorted by file,
line and specimen so the file diffs cleanly when edited by hand.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .index import IgnoreEntry, IgnoreSet

LOGGER = logging.getLogger(__name__)

IGNORE_FILE_VERSION = "1.0"


def _entry_sort_key(entry: IgnoreEntry) -> tuple[str, int, str]:
    return (entry.file, entry.line_number or 0, entry.specimen)


class IgnoreStore:
    """Reads and updates an ignore file on disk.

    Every mutating method reads the current file, applies the change and
    writes it back atomically, returning the updated :class:`IgnoreSet`.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def read(self) -> IgnoreSet:
        """Return the stored ignores; a missing or invalid file counts as empty."""
        if not self.path.exists():
            return IgnoreSet()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Could not read ignore file %s: %s", self.path, exc)
            return IgnoreSet()
        if isinstance(data, dict):
            data = {key: value for key, value in data.items() if key != "version"}
        elif isinstance(data, list):
            # A bare list is a file of simple ignores.
            data = {"ignore": data}
        try:
            return IgnoreSet.model_validate(data)
        except ValidationError as exc:
            LOGGER.warning("Invalid ignore file %s: %s", self.path, exc)
            return IgnoreSet()

    def write(self, ignore_set: IgnoreSet) -> None:
        """Write ``ignore_set`` atomically.

        Raises:
            OSError: if the file cannot be written.
        """
        entries = sorted(dict.fromkeys(ignore_set.ignore_issues), key=_entry_sort_key)
        payload: dict[str, Any] = {"version": IGNORE_FILE_VERSION}
        payload.update(
            IgnoreSet(ignore=ignore_set.ignore, ignore_issues=entries).model_dump(mode="json")
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self.path.with_suffix(".tmp")
        try:
            temp_file.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            temp_file.replace(self.path)
        except OSError:
            if temp_file.exists():
                temp_file.unlink()
            raise

    def add(self, item: str | IgnoreEntry) -> IgnoreSet:
        """Add a simple specimen (``str``) or a contextual entry."""
        current = self.read()
        if isinstance(item, str):
            updated = IgnoreSet(ignore=current.ignore | {item}, ignore_issues=current.ignore_issues)
        elif item in current.ignore_issues:
            updated = current
        else:
            updated = IgnoreSet(
                ignore=current.ignore, ignore_issues=[*current.ignore_issues, item]
            )
        self.write(updated)
        LOGGER.info("Added ignore %s", item if isinstance(item, str) else item.model_dump())
        return updated

    def add_entries(self, entries: list[IgnoreEntry]) -> IgnoreSet:
        current = self.read()
        merged = list(dict.fromkeys([*current.ignore_issues, *entries]))
        updated = IgnoreSet(ignore=current.ignore, ignore_issues=merged)
        self.write(updated)
        return updated

    def remove(self, item: str | IgnoreEntry) -> IgnoreSet:
        """Remove a simple specimen or a contextual entry; unknown items are a no-op."""
        current = self.read()
        if isinstance(item, str):
            updated = IgnoreSet(ignore=current.ignore - {item}, ignore_issues=current.ignore_issues)
        else:
            updated = IgnoreSet(
                ignore=current.ignore,
                ignore_issues=[entry for entry in current.ignore_issues if entry != item],
            )
        self.write(updated)
        return updated

    def clear(self) -> IgnoreSet:
        empty = IgnoreSet()
        self.write(empty)
        return empty
