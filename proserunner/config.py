"""Configuration for a vetting run.

``Config`` describes where checks live and which ignore file to use; it is
hashed into every cache snapshot, so any change to it invalidates cached
results. ``VetOptions`` carries the per-run flags. Environment variables
(optionally from a ``.env`` file) can relocate the cache directory.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from proserunner.exceptions import ConfigurationError
from proserunner.storage import default_cache_dir

CACHE_DIR_ENV = "PROSERUNNER_CACHE_DIR"
DEFAULT_CONFIG_DIR = Path("~/.proserunner")
DEFAULT_IGNORE_FILE = "ignore"
OUTPUT_FORMATS = ("text", "json", "csv")


class CheckSource(BaseModel):
    """A directory of check files and the names (without ``.json``) to load."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    directory: str
    files: tuple[str, ...] = ()


class Config(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    checks: tuple[CheckSource, ...] = ()
    ignore: str = DEFAULT_IGNORE_FILE
    cache_dir: str | None = None

    @field_validator("ignore", mode="before")
    def _default_ignore(cls, value: object) -> str:
        text = str(value or "").strip()
        return text or DEFAULT_IGNORE_FILE


def load_config(path: Path | None) -> Config:
    """Read a JSON configuration file; a missing file yields the defaults.

    Raises:
        ConfigurationError: if the file cannot be parsed or fails validation.
    """
    if path is None or not path.exists():
        return Config()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Could not read config {path}: {exc}") from exc
    try:
        return Config.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config {path}: {exc}") from exc


def load_environment(dotenv_path: str | Path | None = None) -> None:
    """Load ``.env`` values without overriding variables already set."""
    if dotenv_path is not None:
        load_dotenv(dotenv_path=str(dotenv_path), override=False)
    else:
        load_dotenv(override=False)


def resolve_cache_dir(config: Config | None = None) -> Path:
    """Cache location: environment, then config, then the temp directory."""
    env_value = os.environ.get(CACHE_DIR_ENV)
    if env_value:
        return Path(env_value).expanduser()
    if config is not None and config.cache_dir:
        return Path(config.cache_dir).expanduser()
    return default_cache_dir()


@dataclass
class VetOptions:
    """Flags that shape a single run.

    Lines are vetted in parallel unless ``sequential_lines`` is set or file
    level parallelism is requested. Parallel files and parallel lines are
    mutually exclusive.
    """

    code_blocks: bool = False
    quoted_text: bool = False
    no_cache: bool = False
    parallel_files: bool = False
    sequential_lines: bool = False
    skip_ignore: bool = False
    output: str = "text"
    exclude: list[str] = field(default_factory=list)
    force_parallel_lines: bool = False
    max_workers: int | None = None

    @property
    def parallel_lines(self) -> bool:
        if self.parallel_files:
            return False
        return not self.sequential_lines

    def validate(self) -> None:
        if self.parallel_files and self.force_parallel_lines:
            raise ConfigurationError(
                "Parallel files and parallel lines cannot be enabled together."
            )
        if self.output not in OUTPUT_FORMATS:
            raise ConfigurationError(
                f"Unknown output format {self.output!r}; expected one of {', '.join(OUTPUT_FORMATS)}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
