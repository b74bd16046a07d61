"""Check definitions loaded from configuration.

Checks are read-only for the duration of a run. ``kind`` is a free-form
string so extension editors registered at start-up can be targeted by
user-defined checks without touching this model.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

EXISTENCE = "existence"
CASE = "case"
RECOMMENDER = "recommender"
CASE_RECOMMENDER = "case-recommender"
REPETITION = "repetition"
REGEX = "regex"

BUILTIN_KINDS = frozenset(
    {EXISTENCE, CASE, RECOMMENDER, CASE_RECOMMENDER, REPETITION, REGEX}
)


class Recommendation(BaseModel):
    """An ``avoid`` term and the wording to ``prefer`` instead."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    avoid: str
    prefer: str


class Expression(BaseModel):
    """A raw regular expression and the message reported for its matches."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    pattern: str
    message: str


class Check(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    kind: str
    message: str = ""
    explanation: str = ""
    specimens: tuple[str, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    expressions: tuple[Expression, ...] = ()

    @field_validator("name", "kind", mode="before")
    def _strip(cls, value: object) -> str:
        return str(value or "").strip()

    @field_validator("message", "explanation", mode="before")
    def _default_text(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("specimens", "recommendations", "expressions", mode="before")
    def _none_to_empty(cls, value: object) -> object:
        if value is None:
            return ()
        return value
