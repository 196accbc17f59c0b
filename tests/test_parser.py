import pytest

from fitness_coach.errors import MalformedPlanError
from fitness_coach.parser import parse_plan_document, strip_code_fences

DOC = '{"dayName": "Push Day", "exercises": []}'
EXPECTED = {"dayName": "Push Day", "exercises": []}


@pytest.mark.parametrize("wrapped", [
    DOC,
    f"```json\n{DOC}\n```",
    f"```\n{DOC}\n```",
    f"  \n```json\n{DOC}\n```\n\n",
    f"```json{DOC}```",
])
def test_fence_styles_parse_to_same_document(wrapped):
    assert parse_plan_document(wrapped) == EXPECTED


def test_stripping_is_idempotent():
    once = strip_code_fences(f"```json\n{DOC}\n```")
    assert once == DOC
    assert strip_code_fences(once) == once


def test_malformed_output_keeps_raw_text():
    raw = "Sure! Here is your plan: {dayName: Push Day"
    with pytest.raises(MalformedPlanError) as excinfo:
        parse_plan_document(raw)
    assert excinfo.value.raw_text == raw
    assert excinfo.value.code == "malformed_plan"


def test_parser_does_not_check_plan_fields():
    assert parse_plan_document("```json\n[1, 2]\n```") == [1, 2]
