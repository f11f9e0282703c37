import json

import pytest

from statusscore.domain.errors import MalformedResponseError
from statusscore.domain.response_parsing import (
    extract_message_content,
    parse_score_payload,
    strip_code_fences,
)

VALID_CONTENT = json.dumps(
    {
        "categoryScores": {
            "wealth": 1,
            "fitness": 2,
            "power": 3,
            "intelligence": 4,
            "willpower": 5,
            "legacy": 6,
        },
        "overallScore": 4,
        "globalRanking": {"position": 10, "percentile": 1.0},
        "status": "ok",
        "futurePrediction": "ok",
    }
)


@pytest.mark.unit
def test_message_content_is_extracted_from_first_choice() -> None:
    body = json.dumps({"choices": [{"message": {"content": "hello"}}, {"message": {"content": "other"}}]})
    assert extract_message_content(body) == "hello"


@pytest.mark.unit
@pytest.mark.parametrize(
    "body",
    [
        json.dumps({"choices": []}),
        json.dumps({"choices": [{"message": {}}]}),
        json.dumps({"choices": [{"message": {"content": "   "}}]}),
        json.dumps({"result": "x"}),
        json.dumps([1, 2]),
    ],
)
def test_missing_message_content_is_malformed(body: str) -> None:
    with pytest.raises(MalformedResponseError, match="Invalid API response structure"):
        extract_message_content(body)


@pytest.mark.unit
def test_non_json_body_is_malformed() -> None:
    with pytest.raises(MalformedResponseError):
        extract_message_content("<html>bad gateway</html>")


@pytest.mark.unit
@pytest.mark.parametrize(
    "content",
    [
        VALID_CONTENT,
        f"```json\n{VALID_CONTENT}\n```",
        f"```\n{VALID_CONTENT}\n```",
        f"  ```json{VALID_CONTENT}```  ",
    ],
)
def test_fenced_and_plain_content_parse_the_same(content: str) -> None:
    assert parse_score_payload(content) == json.loads(VALID_CONTENT)


@pytest.mark.unit
def test_strip_code_fences_keeps_unfenced_text() -> None:
    assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


@pytest.mark.unit
def test_missing_top_level_keys_are_reported() -> None:
    payload = json.loads(VALID_CONTENT)
    del payload["status"]
    del payload["futurePrediction"]

    with pytest.raises(MalformedResponseError) as exc_info:
        parse_score_payload(json.dumps(payload))

    assert str(exc_info.value) == "Missing required fields in response: status, futurePrediction"


@pytest.mark.unit
def test_present_but_falsy_fields_pass_structural_checks() -> None:
    payload = json.loads(VALID_CONTENT)
    payload["overallScore"] = 0
    payload["status"] = ""

    assert parse_score_payload(json.dumps(payload))["overallScore"] == 0


@pytest.mark.unit
def test_missing_categories_are_reported() -> None:
    payload = json.loads(VALID_CONTENT)
    del payload["categoryScores"]["legacy"]

    with pytest.raises(MalformedResponseError, match="Missing category scores: legacy"):
        parse_score_payload(json.dumps(payload))


@pytest.mark.unit
@pytest.mark.parametrize("content", ["not json", "[1, 2, 3]", '{"categoryScores": []}'])
def test_structurally_invalid_content_is_malformed(content: str) -> None:
    with pytest.raises(MalformedResponseError):
        parse_score_payload(content)
