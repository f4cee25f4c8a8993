import json
from types import SimpleNamespace

import pytest

from backend.app.core.errors import ParseFailure
from backend.app.core.feedback import (
    ats_tier,
    badge_tier,
    criteria_color,
    extract_response_text,
    format_size,
    load_feedback,
    parse_feedback,
    score_tier,
)
from backend.app.core.prompts import prepare_instructions

from conftest import FEEDBACK_JSON, RICH_FEEDBACK


def test_parse_reference_payload():
    feedback = parse_feedback(FEEDBACK_JSON)
    assert feedback.overallScore == 80
    assert feedback.ATS.score == 70
    assert feedback.toneAndStyle.tips == []


def test_parse_strips_code_fences():
    assert parse_feedback("```json\n" + FEEDBACK_JSON + "\n```").overallScore == 80
    assert parse_feedback("```\n" + FEEDBACK_JSON + "```").overallScore == 80


@pytest.mark.parametrize("text", [
    "Sure! Here is your feedback",
    "",
    '{"overallScore": 80}',
    FEEDBACK_JSON.replace('"overallScore":80', '"overallScore":180'),
    json.dumps({**RICH_FEEDBACK, "content": {"score": 50, "tips": [{"type": "meh", "tip": "x", "explanation": "y"}]}}),
    json.dumps({**RICH_FEEDBACK, "skills": {"score": 50, "tips": [{"type": "good", "tip": "no explanation"}]}}),
])
def test_parse_rejects_bad_documents(text):
    with pytest.raises(ParseFailure) as exc:
        parse_feedback(text)
    assert exc.value.kind == "parse"
    assert exc.value.detail


def test_extract_text_from_string_and_list_content():
    assert extract_response_text({"message": {"content": "abc"}}) == "abc"
    assert extract_response_text({"message": {"content": [{"text": "first"}, {"text": "second"}]}}) == "first"
    obj = SimpleNamespace(message=SimpleNamespace(content=[SimpleNamespace(text="from object")]))
    assert extract_response_text(obj) == "from object"


@pytest.mark.parametrize("response", [
    {},
    {"message": {}},
    {"message": {"content": []}},
    {"message": {"content": "   "}},
    {"message": {"content": [{"type": "file"}]}},
])
def test_extract_text_without_content_is_a_parse_failure(response):
    with pytest.raises(ParseFailure):
        extract_response_text(response)


def test_load_feedback_treats_missing_data_as_not_ready():
    assert load_feedback("") is None
    assert load_feedback(None) is None
    assert load_feedback("not json") is None
    assert load_feedback({"overallScore": 1}) is None
    assert load_feedback(RICH_FEEDBACK).skills.score == 35
    assert load_feedback(FEEDBACK_JSON).overallScore == 80


def test_score_tiers():
    assert [score_tier(s) for s in (76, 75, 51, 50)] == ["Excellent", "Good", "Good", "Needs Improvement"]
    assert [badge_tier(s) for s in (70, 69, 40, 39)] == ["green", "yellow", "yellow", "red"]
    assert [ats_tier(s) for s in (76, 75, 51, 50)] == ["green", "yellow", "yellow", "red"]
    assert [criteria_color(s) for s in (75, 74, 50, 49)] == ["green", "yellow", "yellow", "red"]


def test_format_size():
    assert format_size(0) == "0 Bytes"
    assert format_size(512) == "512.00 Bytes"
    assert format_size(1024) == "1.00 KB"
    assert format_size(1048576) == "1.00 MB"
    assert format_size(1536 * 1024) == "1.50 MB"


def test_instructions_carry_the_job_context():
    text = prepare_instructions("Data Engineer", "Spark and Airflow", "Globex")
    assert "The job title is: Data Engineer" in text
    assert "The job description is: Spark and Airflow" in text
    assert "Globex" in text
    assert "overallScore" in text
    assert "without any other text" in text
