"""The vetting engine: processing, incremental caching and orchestration."""

from __future__ import annotations

from .cache import CacheOutcome
from .orchestrator import VetInput, VetResult, compute_or_cached, vet
from .processor import process, process_files, safe_dispatch

__all__ = [
    "CacheOutcome",
    "VetInput",
    "VetResult",
    "compute_or_cached",
    "process",
    "process_files",
    "safe_dispatch",
    "vet",
]
