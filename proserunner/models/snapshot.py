"""Persisted unit of the incremental cache."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .line import Line

SNAPSHOT_VERSION = "1.0"


class CachedSnapshot(BaseModel):
    """Everything needed to decide whether a previous run can be reused.

    The hashes are content hashes (see :func:`proserunner.storage.stable_hash`)
    so a snapshot written by one process validates in the next.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str = SNAPSHOT_VERSION
    file: str
    lines: tuple[Line, ...] = ()
    lines_hash: str
    file_hash: str
    config: dict[str, Any] = Field(default_factory=dict)
    config_hash: str
    check_hash: str
    output: str = "text"
    results: tuple[Line, ...] = ()

    def with_output(self, output: str) -> "CachedSnapshot":
        return self.model_copy(update={"output": output})
