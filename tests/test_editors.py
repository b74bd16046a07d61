from __future__ import annotations

import logging
import re
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from proserunner.editors import regex, repetition
from proserunner.editors.utilities import create_editor, make_pattern
from proserunner.exceptions import UnknownCheckKind
from proserunner.models import Check, Expression, Line, Recommendation


def _line(text: str, number: int = 1) -> Line:
    return Line(file="doc.md", text=text, line_number=number)


SKUNKED = Check(
    name="Skunked term",
    kind="existence",
    message="Skunked term.",
    specimens=("hopefully",),
)


def test_existence_flags_specimen_at_its_offset() -> None:
    line = _line("There is hopefully something wrong with this sentence.", 42)

    result = create_editor("existence")(line, SKUNKED)

    assert len(result.issues) == 1
    issue = result.issues[0]
    assert "hopefully" in issue.specimen
    assert issue.message == SKUNKED.message
    assert issue.column == line.text.index("hopefully") == 9
    assert issue.name == "Skunked term"
    assert result.line_number == 42


def test_existence_is_case_insensitive_but_case_is_not() -> None:
    line = _line("Hopefully it works.")
    case_check = SKUNKED.model_copy(update={"kind": "case"})

    assert create_editor("existence")(line, SKUNKED).has_issue
    assert not create_editor("case")(line, case_check).has_issue


def test_every_occurrence_is_reported() -> None:
    check = Check(name="weasel", kind="existence", message="Weasel word.", specimens=("very", "really"))

    result = create_editor("existence")(_line("very very really good"), check)

    assert [(issue.specimen, issue.column) for issue in result.issues] == [
        ("very", 0),
        ("very", 5),
        ("really", 10),
    ]


@pytest.mark.parametrize("text", ["[hopefully](link)", "#hopefully", "tag-hopefully", "snake_hopefully"])
def test_specimens_in_links_headings_and_identifiers_are_skipped(text: str) -> None:
    assert not create_editor("existence")(_line(text), SKUNKED).has_issue


def test_specimen_must_be_a_whole_word() -> None:
    assert not create_editor("existence")(_line("unhopefullyness"), SKUNKED).has_issue


def test_invalid_specimen_pattern_logs_and_yields_nothing(caplog: pytest.LogCaptureFixture) -> None:
    check = Check(name="broken", kind="existence", message="m", specimens=("(unclosed",))

    with caplog.at_level(logging.WARNING):
        result = create_editor("existence")(_line("(unclosed text"), check)

    assert not result.has_issue
    assert "Invalid pattern '(unclosed' in check 'broken' (existence) on doc.md:1" in caplog.text
    with pytest.raises(re.error):
        make_pattern("(unclosed", False)


def test_recommender_suggests_preferred_term() -> None:
    check = Check(
        name="plain-words",
        kind="recommender",
        recommendations=(Recommendation(avoid="utilize", prefer="use"),),
    )

    result = create_editor("recommender")(_line("We Utilize tools."), check)

    assert len(result.issues) == 1
    assert result.issues[0].specimen == "Utilize"
    assert result.issues[0].column == 3
    assert result.issues[0].message == "Prefer: use"


def test_invalid_recommendation_is_skipped_with_context(caplog: pytest.LogCaptureFixture) -> None:
    check = Check(
        name="plain-words",
        kind="recommender",
        recommendations=(
            Recommendation(avoid="(bad", prefer="x"),
            Recommendation(avoid="utilize", prefer="use"),
        ),
    )

    with caplog.at_level(logging.WARNING):
        result = create_editor("recommender")(_line("We utilize (bad tools.", 3), check)

    assert [issue.specimen for issue in result.issues] == ["utilize"]
    assert "in check 'plain-words' (recommender) on doc.md:3" in caplog.text


def test_case_recommender_only_matches_exact_case() -> None:
    check = Check(
        name="brands",
        kind="case-recommender",
        recommendations=(Recommendation(avoid="Javascript", prefer="JavaScript"),),
    )

    result = create_editor("case-recommender")(_line("javascript and Javascript"), check)

    assert [(issue.specimen, issue.column) for issue in result.issues] == [("Javascript", 15)]


def test_create_editor_rejects_kinds_without_a_standard_editor() -> None:
    with pytest.raises(UnknownCheckKind) as excinfo:
        create_editor("repetition")

    assert excinfo.value.kind == "repetition"
    assert "case-recommender" in excinfo.value.available


def test_repetition_flags_duplicated_word() -> None:
    check = Check(name="repetition", kind="repetition")

    result = repetition.proofread(_line("the the quick fox"), check)

    assert len(result.issues) == 1
    issue = result.issues[0]
    assert issue.specimen == "the the"
    assert issue.column == 0
    assert issue.message == repetition.DEFAULT_MESSAGE


def test_repetition_ignores_case_and_punctuation() -> None:
    check = Check(name="repetition", kind="repetition", message="Repeated word.")

    result = repetition.proofread(_line("This is is, fine. Fine."), check)

    assert [(issue.specimen, issue.column) for issue in result.issues] == [
        ("is is", 5),
        ("fine. Fine", 12),
    ]
    assert {issue.message for issue in result.issues} == {"Repeated word."}


def test_repetition_skips_punctuation_only_tokens() -> None:
    check = Check(name="repetition", kind="repetition")

    assert not repetition.proofread(_line("- - - list"), check).has_issue


def test_regex_uses_first_group_as_specimen() -> None:
    check = Check(
        name="adverbs",
        kind="regex",
        expressions=(Expression(pattern=r"\b(\w+)ly\b", message="Adverb."),),
    )

    result = regex.proofread(_line("run quickly"), check)

    assert [(issue.specimen, issue.column, issue.message) for issue in result.issues] == [
        ("quick", 4, "Adverb.")
    ]


def test_regex_without_groups_uses_whole_match() -> None:
    check = Check(name="digits", kind="regex", expressions=(Expression(pattern=r"\d+", message="Number."),))

    result = regex.proofread(_line("abc 123 and 45"), check)

    assert [(issue.specimen, issue.column) for issue in result.issues] == [("123", 4), ("45", 12)]


def test_regex_skips_invalid_and_zero_width_patterns(caplog: pytest.LogCaptureFixture) -> None:
    check = Check(
        name="mixed",
        kind="regex",
        expressions=(
            Expression(pattern="(", message="broken"),
            Expression(pattern=r"\b", message="empty"),
            Expression(pattern="fox", message="Fox."),
        ),
    )

    with caplog.at_level(logging.WARNING):
        result = regex.proofread(_line("the quick fox", 7), check)

    assert [issue.message for issue in result.issues] == ["Fox."]
    assert "Invalid pattern '(' in check 'mixed' (regex) on doc.md:7" in caplog.text
