"""Exception hierarchy shared by the vetting engine and its boundary helpers."""

from __future__ import annotations

from typing import Iterable


class ProserunnerError(Exception):
    """Base class for every error raised by proserunner."""


class UnknownCheckKind(ProserunnerError, KeyError):
    """Raised when a check's ``kind`` has no registered editor.

    The message names the requested kind and the kinds that are currently
    registered so a misspelt check definition is easy to diagnose.
    """

    def __init__(self, kind: str, available: Iterable[str]) -> None:
        self.kind = kind
        self.available = tuple(sorted(available))
        super().__init__(kind)

    def __str__(self) -> str:
        return (
            f"Unknown editor type: {self.kind!r} "
            f"(registered kinds: {', '.join(self.available) or 'none'})"
        )


class CheckDefinitionError(ProserunnerError):
    """Raised when a check definition is missing fields or is malformed."""

    def __init__(self, message: str, *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])

    def __str__(self) -> str:
        parts = [super().__str__()]
        for error in self.errors:
            parts.append(f"\n  - {error}")
        return "".join(parts)


class CacheCorruptionError(ProserunnerError):
    """Raised by the snapshot store when a cached record cannot be read back."""


class ConfigurationError(ProserunnerError):
    """Raised for unreadable configuration files or conflicting run options."""
