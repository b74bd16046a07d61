"""Value types threaded through the vetting pipeline.

A :class:`Line` is one non-blank line of an input document. Editors never
mutate a line; they return a copy with an extra :class:`Issue` attached, so
the same line can be folded over many checks without any shared state.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

UNRESOLVED_LINE_NUMBER = -1


class Issue(BaseModel):
    """A single finding produced by an editor."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    file: str
    name: str
    kind: str
    specimen: str
    column: int = Field(ge=0)
    message: str


class Line(BaseModel):
    """One line of text to vet, plus any issues found on it.

    Fields:
    - file: display path of the source document (home directory shown as ``~``)
    - text: line content, with quoted spans blanked unless quoted text is checked
    - line_number: 1-based position in the original file
    - in_code_block: True when the line sits inside a fenced code block
    - quoted: True when the original line contained quoted text
    - has_issue: True once any check has flagged the line
    - issues: issues in the order the checks found them
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    file: str
    text: str
    line_number: int
    in_code_block: bool = False
    quoted: bool = False
    has_issue: bool = False
    issues: tuple[Issue, ...] = ()

    @field_validator("issues", mode="before")
    def _coerce_issues(cls, value: object) -> object:
        if value is None:
            return ()
        return value

    @model_validator(mode="before")
    @classmethod
    def _sync_has_issue(cls, data: Any) -> Any:
        # has_issue is derived from issues; callers cannot set them out of step.
        if isinstance(data, dict):
            data = dict(data)
            data["has_issue"] = bool(data.get("issues"))
        return data

    def with_issue(self, issue: Issue) -> "Line":
        """Return a copy of the line with ``issue`` appended."""
        return self.model_copy(
            update={"issues": self.issues + (issue,), "has_issue": True}
        )

    def with_line_number(self, line_number: int) -> "Line":
        return self.model_copy(update={"line_number": line_number})

    def without_issues(self) -> "Line":
        return self.model_copy(update={"issues": (), "has_issue": False})
