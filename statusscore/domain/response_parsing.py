from __future__ import annotations

import json
import re

from statusscore.domain.dto import SCORE_CATEGORIES
from statusscore.domain.errors import MalformedResponseError
from statusscore.domain.normalization import UntrustedValue

REQUIRED_TOP_LEVEL_KEYS: tuple[str, ...] = (
    "categoryScores",
    "overallScore",
    "globalRanking",
    "status",
    "futurePrediction",
)

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


def extract_message_content(body_text: str) -> str:
    """Return choices[0].message.content from an upstream completion body."""
    try:
        body: UntrustedValue = json.loads(body_text)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError("upstream body is not valid JSON") from exc

    content: object = None
    if isinstance(body, dict):
        choices = body.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict):
                content = message.get("content")
    if not isinstance(content, str) or not content.strip():
        raise MalformedResponseError("Invalid API response structure")
    return content


def strip_code_fences(content: str) -> str:
    match = _FENCE_RE.match(content)
    if match is None:
        return content.strip()
    return match.group(1).strip()


def parse_score_payload(
    content: str,
    *,
    required_keys: tuple[str, ...] = REQUIRED_TOP_LEVEL_KEYS,
    required_categories: tuple[str, ...] = SCORE_CATEGORIES,
) -> dict[str, object]:
    """Parse model content and check the top-level structure.

    Field values are not inspected here; they are coerced by the normalizer.
    """
    try:
        loaded: UntrustedValue = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"model output is not valid JSON: {exc.msg}") from exc
    if not isinstance(loaded, dict):
        raise MalformedResponseError("model output root must be JSON object")

    missing_fields = [key for key in required_keys if key not in loaded]
    if missing_fields:
        raise MalformedResponseError(f"Missing required fields in response: {', '.join(missing_fields)}")

    category_scores = loaded.get("categoryScores")
    if not isinstance(category_scores, dict):
        raise MalformedResponseError("categoryScores must be object")
    missing_categories = [key for key in required_categories if key not in category_scores]
    if missing_categories:
        raise MalformedResponseError(f"Missing category scores: {', '.join(missing_categories)}")
    return loaded
