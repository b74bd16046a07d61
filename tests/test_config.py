from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from proserunner.config import (
    CACHE_DIR_ENV,
    Config,
    VetOptions,
    load_config,
    load_environment,
    resolve_cache_dir,
)
from proserunner.exceptions import ConfigurationError
from proserunner.storage import default_cache_dir


def test_missing_config_uses_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path / "missing.json") == Config()
    assert load_config(None).ignore == "ignore"


def test_config_is_validated(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        '{"checks": [{"name": "default", "directory": "default", "files": ["cliches"]}], "ignore": ""}',
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.checks[0].files == ("cliches",)
    assert config.ignore == "ignore"


@pytest.mark.parametrize("content", ["{broken", '{"checks": "nope"}', '{"unknown": 1}'])
def test_invalid_config_raises(tmp_path: Path, content: str) -> None:
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_config(path)


def test_cache_dir_resolution_order(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CACHE_DIR_ENV, raising=False)
    assert resolve_cache_dir() == default_cache_dir()
    assert resolve_cache_dir(Config(cache_dir=str(tmp_path / "cfg"))) == tmp_path / "cfg"

    monkeypatch.setenv(CACHE_DIR_ENV, str(tmp_path / "env"))
    assert resolve_cache_dir(Config(cache_dir=str(tmp_path / "cfg"))) == tmp_path / "env"


def test_dotenv_sets_cache_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(CACHE_DIR_ENV, "placeholder")
    monkeypatch.delenv(CACHE_DIR_ENV)
    dotenv = tmp_path / ".env"
    dotenv.write_text(f"{CACHE_DIR_ENV}={tmp_path / 'from-dotenv'}\n", encoding="utf-8")

    load_environment(dotenv)

    assert os.environ[CACHE_DIR_ENV] == str(tmp_path / "from-dotenv")
    assert resolve_cache_dir() == tmp_path / "from-dotenv"


def test_parallel_lines_default_and_overrides() -> None:
    assert VetOptions().parallel_lines is True
    assert VetOptions(sequential_lines=True).parallel_lines is False
    assert VetOptions(parallel_files=True).parallel_lines is False


@pytest.mark.parametrize(
    "options",
    [
        VetOptions(parallel_files=True, force_parallel_lines=True),
        VetOptions(output="xml"),
        VetOptions(max_workers=0),
    ],
)
def test_invalid_options_are_rejected(options: VetOptions) -> None:
    with pytest.raises(ConfigurationError):
        options.validate()
