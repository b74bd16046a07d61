"""Editors and the registry that dispatches checks to them."""

from __future__ import annotations

import threading

from . import regex, repetition
from .registry import Editor, EditorFunction, EditorRegistry
from .utilities import create_editor, standard_editor_kinds

_DEFAULT_REGISTRY: EditorRegistry | None = None
_DEFAULT_LOCK = threading.Lock()


def build_default_registry() -> EditorRegistry:
    """Return a new registry with every built-in editor registered."""
    registry = EditorRegistry()
    for kind in sorted(standard_editor_kinds()):
        registry.register(kind, create_editor(kind))
    registry.register("repetition", repetition.proofread)
    registry.register("regex", regex.proofread)
    return registry


def default_registry() -> EditorRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        with _DEFAULT_LOCK:
            if _DEFAULT_REGISTRY is None:
                _DEFAULT_REGISTRY = build_default_registry()
    return _DEFAULT_REGISTRY


__all__ = [
    "Editor",
    "EditorFunction",
    "EditorRegistry",
    "build_default_registry",
    "default_registry",
]
