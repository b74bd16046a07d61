"""Name-keyed registry that maps a check ``kind`` to its editor.

Editors are callables with the signature ``(line, check) -> line``; objects
exposing a ``proofread(line, check)`` method are accepted too. New check
kinds are added by registering another editor; the dispatcher never changes.

Registration is expected during start-up. Writes replace the internal table
under a lock (copy-on-write) so concurrent readers always see a complete
table and ``dispatch`` never needs to take the lock.
"""

from __future__ import annotations

import threading
from typing import Callable, Mapping, Protocol, Union

from proserunner.exceptions import UnknownCheckKind
from proserunner.models import Check, Line

EditorFunction = Callable[[Line, Check], Line]


class Editor(Protocol):
    """Object-style editor contract."""

    def proofread(self, line: Line, check: Check) -> Line:
        ...


EditorLike = Union[EditorFunction, Editor]


def _as_function(editor: EditorLike) -> EditorFunction:
    proofread = getattr(editor, "proofread", None)
    if callable(proofread):
        return proofread
    if callable(editor):
        return editor
    raise TypeError(f"Editor must be callable or define proofread(): {editor!r}")


class EditorRegistry:
    """Registry of editors keyed by check kind."""

    def __init__(self, editors: Mapping[str, EditorLike] | None = None) -> None:
        self._lock = threading.Lock()
        self._count_lock = threading.Lock()
        self._editors: dict[str, EditorFunction] = {}
        self._dispatch_count = 0
        for kind, editor in (editors or {}).items():
            self.register(kind, editor)

    def register(self, kind: str, editor: EditorLike) -> None:
        """Register ``editor`` for ``kind``, replacing any previous editor."""
        function = _as_function(editor)
        with self._lock:
            table = dict(self._editors)
            table[kind] = function
            self._editors = table

    def unregister(self, kind: str) -> None:
        with self._lock:
            table = dict(self._editors)
            table.pop(kind, None)
            self._editors = table

    def get(self, kind: str) -> EditorFunction | None:
        return self._editors.get(kind)

    def kinds(self) -> list[str]:
        return sorted(self._editors)

    def __contains__(self, kind: object) -> bool:
        return kind in self._editors

    @property
    def dispatch_count(self) -> int:
        """Number of dispatches performed since creation or the last reset."""
        return self._dispatch_count

    def reset_dispatch_count(self) -> None:
        with self._count_lock:
            self._dispatch_count = 0

    def dispatch(self, line: Line, check: Check) -> Line:
        """Run the editor registered for ``check.kind`` over ``line``.

        Raises:
            UnknownCheckKind: if no editor is registered for the kind.
        """
        editors = self._editors
        editor = editors.get(check.kind)
        if editor is None:
            raise UnknownCheckKind(check.kind, editors.keys())
        with self._count_lock:
            self._dispatch_count += 1
        return editor(line, check)
