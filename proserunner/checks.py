"""Loading and validating check definitions.

Each check lives in its own JSON file::

    {"name": "skunked-terms", "kind": "existence",
     "message": "Skunked term.", "specimens": ["hopefully", "decimate"]}

Definitions are validated before they become :class:`Check` objects so a
malformed file is reported at load time instead of failing line by line.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from proserunner.config import Config
from proserunner.exceptions import CheckDefinitionError
from proserunner.models import Check
from proserunner.models.check import (
    CASE,
    CASE_RECOMMENDER,
    EXISTENCE,
    RECOMMENDER,
    REGEX,
)

LOGGER = logging.getLogger(__name__)

CHECK_SUFFIX = ".json"

_REQUIRED_LISTS = {
    EXISTENCE: "specimens",
    CASE: "specimens",
    RECOMMENDER: "recommendations",
    CASE_RECOMMENDER: "recommendations",
    REGEX: "expressions",
}
_MESSAGE_OPTIONAL = {RECOMMENDER, CASE_RECOMMENDER}


def _missing_or_empty(data: dict[str, Any], field: str) -> bool:
    value = data.get(field)
    return value is None or (hasattr(value, "__len__") and len(value) == 0)


def validate_check_definition(data: dict[str, Any]) -> list[str]:
    """Return every problem with a raw check definition (empty when valid)."""
    errors: list[str] = []
    if not data.get("name"):
        errors.append("Check must have a 'name' field")
    kind = data.get("kind")
    if not kind:
        errors.append("Check must have a 'kind' field")
    if kind not in _MESSAGE_OPTIONAL and not data.get("message"):
        errors.append("Check must have a 'message' field")
    required = _REQUIRED_LISTS.get(kind or "")
    if required and _missing_or_empty(data, required):
        errors.append(f"Check of kind '{kind}' must have non-empty '{required}'")
    return errors


def make_check(data: dict[str, Any]) -> Check:
    """Validate ``data`` and build a :class:`Check`.

    Raises:
        CheckDefinitionError: listing every problem found.
    """
    if not isinstance(data, dict):
        raise CheckDefinitionError("Check definition must be a JSON object")
    name = data.get("name") or "unnamed-check"
    errors = validate_check_definition(data)
    if errors:
        raise CheckDefinitionError(f"Invalid check definition for '{name}':", errors=errors)
    try:
        return Check.model_validate(data)
    except ValidationError as exc:
        raise CheckDefinitionError(
            f"Invalid check definition for '{name}':",
            errors=[f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in exc.errors()],
        ) from exc


def read_check_file(path: Path) -> Check:
    """Read and validate one check file.

    Raises:
        CheckDefinitionError: naming the file and what went wrong with it.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CheckDefinitionError(f"Check file not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise CheckDefinitionError(f"Failed to read check file '{path}': {exc}") from exc
    try:
        return make_check(data)
    except CheckDefinitionError as exc:
        raise CheckDefinitionError(
            f"Failed to parse check file '{path}': {exc.args[0]}", errors=exc.errors
        ) from exc


def apply_ignore_filter(check: Check, ignore: Iterable[str]) -> Check:
    """Drop ignored specimens and ``avoid`` terms (case-insensitively)."""
    lowered = {item.lower() for item in ignore}
    if not lowered:
        return check
    specimens = tuple(s for s in check.specimens if s.lower() not in lowered)
    recommendations = tuple(
        r for r in check.recommendations if r.avoid.lower() not in lowered
    )
    if specimens == check.specimens and recommendations == check.recommendations:
        return check
    return check.model_copy(
        update={"specimens": specimens, "recommendations": recommendations}
    )


def check_paths(config: Config, check_dir: Path) -> list[Path]:
    """Resolve every configured check file to a path."""
    paths: list[Path] = []
    for source in config.checks:
        directory = Path(source.directory).expanduser()
        if not directory.is_absolute():
            directory = check_dir / directory
        paths.extend(directory / f"{name}{CHECK_SUFFIX}" for name in source.files)
    return paths


@dataclass
class CheckLoadResult:
    """Checks that loaded, plus one error message per file that did not."""

    checks: list[Check] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def collect_checks(config: Config, check_dir: Path) -> CheckLoadResult:
    """Load every configured check, keeping the reason each failure was skipped."""
    result = CheckLoadResult()
    for path in check_paths(config, check_dir):
        try:
            result.checks.append(read_check_file(path))
        except CheckDefinitionError as exc:
            result.errors.append(str(exc))
    return result


def load_checks(
    config: Config,
    check_dir: Path,
    *,
    ignore: Iterable[str] = (),
) -> list[Check]:
    """Load every configured check, in configuration order.

    Raises:
        CheckDefinitionError: if no check could be loaded at all.
    """
    ignore = list(ignore)
    result = collect_checks(config, check_dir)
    for error in result.errors:
        LOGGER.error("%s", error)
    if result.errors:
        LOGGER.warning(
            "%d check(s) failed to load and will be skipped.", len(result.errors)
        )
    if not result.checks:
        raise CheckDefinitionError(
            "No valid checks could be loaded. Please check your configuration."
        )
    return [apply_ignore_filter(check, ignore) for check in result.checks]
