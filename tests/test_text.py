from __future__ import annotations

import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from proserunner.text import (
    NO_VALID_FILES_MSG,
    contains_quoted_text,
    discover_files,
    fetch,
    home_path,
    split_lines,
    strip_quoted_text,
    supported_file_type,
)

DOCUMENT = """Intro line.

```python
print("very")
```
Closing line.
"""


def test_blank_lines_and_fences_are_dropped_but_numbering_is_kept() -> None:
    lines = split_lines(DOCUMENT, "doc.md")

    assert [(line.line_number, line.text) for line in lines] == [(1, "Intro line."), (6, "Closing line.")]


def test_code_blocks_are_kept_on_request() -> None:
    lines = split_lines(DOCUMENT, "doc.md", code_blocks=True, quoted_text=True)

    assert [(line.line_number, line.in_code_block) for line in lines] == [(1, False), (4, True), (6, False)]


def test_quoted_text_is_blanked_without_shifting_columns() -> None:
    raw = 'He said "very good" and left.'

    [line] = split_lines(raw, "doc.md")

    assert line.quoted
    assert len(line.text) == len(raw)
    assert "very" not in line.text
    assert line.text.index("left") == raw.index("left")


def test_quoted_text_is_kept_when_checked() -> None:
    raw = "She wrote “very nice”."

    [line] = split_lines(raw, "doc.md", quoted_text=True)

    assert line.quoted
    assert line.text == raw


def test_apostrophes_are_not_quotes() -> None:
    assert not contains_quoted_text("It's the dog's bone.")
    assert contains_quoted_text("He said 'no' twice.")
    assert strip_quoted_text("It's fine.") == "It's fine."


def test_fetch_reads_file_and_reports_failures(tmp_path: Path) -> None:
    document = tmp_path / "doc.md"
    document.write_text("First.\n\nSecond.\n", encoding="utf-8")

    loaded = fetch(document)
    missing = fetch(tmp_path / "missing.md")

    assert loaded.ok
    assert [line.line_number for line in loaded.lines] == [1, 3]
    assert loaded.lines[0].file == home_path(document)
    assert not missing.ok
    assert "Failed to read" in missing.errors[0]


def test_discover_files_filters_types_and_exclusions(tmp_path: Path) -> None:
    for name in ["a.md", "b.txt", "c.py", "sub/d.org", "sub/draft.tex"]:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("text", encoding="utf-8")

    result = discover_files(tmp_path, exclude=["b.*", "sub/draft*"])

    assert result.ok
    assert [path.relative_to(tmp_path).as_posix() for path in result.files] == ["a.md", "sub/d.org"]


def test_discover_single_file_and_failures(tmp_path: Path) -> None:
    document = tmp_path / "notes.markdown"
    document.write_text("text", encoding="utf-8")
    script = tmp_path / "tool.py"
    script.write_text("x = 1", encoding="utf-8")

    assert discover_files(document).files == [document]
    assert discover_files(script).errors == [NO_VALID_FILES_MSG]
    assert discover_files(tmp_path / "nope").errors == [f"File not found: {tmp_path / 'nope'}"]


def test_supported_file_type_is_case_insensitive() -> None:
    assert supported_file_type("README.MD")
    assert not supported_file_type("image.png")


def test_home_path_uses_tilde() -> None:
    home = os.path.expanduser("~")

    assert home_path(Path(home) / "notes" / "a.md") == str(Path("~") / "notes" / "a.md")
