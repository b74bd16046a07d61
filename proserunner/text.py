"""Loading documents and turning them into lines to vet.

Lines inside fenced code blocks are dropped unless requested, blank lines are
never vetted, and quoted spans are blanked out with spaces (unless quoted
text is checked) so column numbers still point at the original text.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from proserunner.models import Line

LOGGER = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = frozenset({"txt", "tex", "md", "markdown", "org"})
MAX_FILE_BYTES = 10_000_000
CODE_FENCE = "```"

NO_VALID_FILES_MSG = "file must be a txt, md, markdown, tex, or org file."

_DOUBLE_QUOTED = re.compile(r"(?:\"[^\"]*\"|“[^”]*”)")
# Single quotes only count when they are not apostrophes (it's, dog's).
_SINGLE_QUOTED = re.compile(
    r"(?:(?:^|[\s,;:.!?])'[^']*'(?:[\s,;:.!?]|$)"
    r"|(?:^|[\s,;:.!?])‘[^’]*’(?:[\s,;:.!?]|$))"
)


@dataclass
class LoadResult:
    """Lines loaded from one or more files, or the errors that stopped loading."""

    lines: list[Line] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class DiscoveryResult:
    files: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def home_path(filepath: str | Path) -> str:
    """Shorten ``filepath`` for display by replacing the home directory with ``~``."""
    text = str(filepath)
    home = os.path.expanduser("~")
    if home and home != "~" and text.startswith(home):
        return "~" + text[len(home):]
    return text


def contains_quoted_text(text: str) -> bool:
    return bool(_DOUBLE_QUOTED.search(text) or _SINGLE_QUOTED.search(text))


def _blank(match: re.Match[str]) -> str:
    return " " * len(match.group())


def strip_quoted_text(text: str) -> str:
    """Replace quoted spans with spaces, preserving every column offset."""
    return _SINGLE_QUOTED.sub(_blank, _DOUBLE_QUOTED.sub(_blank, text))


def supported_file_type(path: str | Path) -> bool:
    suffix = Path(path).suffix.lower().lstrip(".")
    return suffix in SUPPORTED_EXTENSIONS


def split_lines(
    text: str,
    display_path: str,
    *,
    code_blocks: bool = False,
    quoted_text: bool = False,
) -> list[Line]:
    """Number the lines of ``text`` and decorate them for vetting."""
    lines: list[Line] = []
    in_code = False
    for index, raw in enumerate(text.splitlines(), start=1):
        if not raw.strip():
            continue
        if raw.startswith(CODE_FENCE):
            # Fence lines toggle the block and are never vetted themselves.
            in_code = not in_code
            continue
        if in_code and not code_blocks:
            continue
        quoted = contains_quoted_text(raw)
        content = raw if (quoted_text or not quoted) else strip_quoted_text(raw)
        lines.append(
            Line(
                file=display_path,
                text=content,
                line_number=index,
                in_code_block=in_code,
                quoted=quoted,
            )
        )
    return lines


def fetch(
    path: Path,
    *,
    code_blocks: bool = False,
    quoted_text: bool = False,
) -> LoadResult:
    """Load ``path`` and return its lines; read failures are reported, not raised."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.error("Failed to read %s: %s", path, exc)
        return LoadResult(errors=[f"Failed to read {path}: {exc}"])
    lines = split_lines(
        text, home_path(path), code_blocks=code_blocks, quoted_text=quoted_text
    )
    LOGGER.debug("Loaded %d line(s) from %s", len(lines), path)
    return LoadResult(lines=lines)


def _excluded(path: Path, base: Path, patterns: Iterable[str]) -> bool:
    try:
        relative = path.relative_to(base).as_posix()
    except ValueError:
        relative = path.as_posix()
    for pattern in patterns:
        if fnmatch.fnmatch(relative, pattern) or fnmatch.fnmatch(path.name, pattern):
            return True
    return False


def discover_files(root: Path, exclude: Iterable[str] = ()) -> DiscoveryResult:
    """Return supported documents under ``root`` (a file or a directory)."""
    patterns = list(exclude)
    if not root.exists():
        return DiscoveryResult(errors=[f"File not found: {root}"])

    if root.is_file():
        candidates = [root]
        base = root.parent
    else:
        candidates = sorted(path for path in root.rglob("*") if path.is_file())
        base = root

    files: list[Path] = []
    for path in candidates:
        if not supported_file_type(path) or _excluded(path, base, patterns):
            continue
        if path.stat().st_size > MAX_FILE_BYTES:
            LOGGER.warning("Skipping %s: individual files must be less than 10MB.", path)
            continue
        files.append(path)

    if not files:
        return DiscoveryResult(errors=[NO_VALID_FILES_MSG])
    return DiscoveryResult(files=files)
