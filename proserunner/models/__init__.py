"""Public model exports.

Import models from here: ``from proserunner.models import Line, Issue, Check``.
"""

from __future__ import annotations

from .check import BUILTIN_KINDS, Check, Expression, Recommendation
from .line import UNRESOLVED_LINE_NUMBER, Issue, Line
from .snapshot import SNAPSHOT_VERSION, CachedSnapshot

__all__ = [
    "BUILTIN_KINDS",
    "CachedSnapshot",
    "Check",
    "Expression",
    "Issue",
    "Line",
    "Recommendation",
    "SNAPSHOT_VERSION",
    "UNRESOLVED_LINE_NUMBER",
]
