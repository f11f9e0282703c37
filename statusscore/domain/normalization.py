from __future__ import annotations

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import math
import re
from typing import Union

from statusscore.domain.dto import (
    DEFAULT_PERCENTILE,
    DEFAULT_POSITION,
    DEFAULT_SCORE,
    NO_DATA_SENTINEL,
    POPULATION_SIZE,
    SCORE_CATEGORIES,
    GlobalRanking,
    ScoreResult,
)

# Field values decoded from the model output; anything else is treated as garbage.
UntrustedValue = Union[str, int, float, bool, None, list[object], dict[str, object]]

_MISSING = object()
_DECIMAL_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")
_THOUSANDS_RE = re.compile(r"(?<=\d)[,_](?=\d{3})")


def normalize_score_payload(parsed: Mapping[str, object]) -> ScoreResult:
    """Coerce a structurally valid model payload into a ScoreResult.

    Never raises: out-of-range or wrong-typed values fall back to defaults.
    """
    category_raw = _as_mapping(parsed.get("categoryScores"))
    ranking_raw = _as_mapping(parsed.get("globalRanking"))
    return ScoreResult(
        category_scores={
            category: coerce_score(category_raw.get(category, _MISSING)) for category in SCORE_CATEGORIES
        },
        overall_score=coerce_score(parsed.get("overallScore", _MISSING)),
        global_ranking=GlobalRanking(
            position=coerce_position(ranking_raw.get("position", _MISSING)),
            percentile=coerce_percentile(ranking_raw.get("percentile", _MISSING)),
        ),
        status=coerce_text(parsed.get("status", _MISSING)),
        future_prediction=coerce_text(parsed.get("futurePrediction", _MISSING)),
    )


def coerce_score(value: object) -> int:
    number = _to_number(value)
    if number is None or not 0 <= number <= 100:
        return DEFAULT_SCORE
    return _round_half_up(number)


def coerce_position(value: object) -> int:
    if isinstance(value, str):
        value = _THOUSANDS_RE.sub("", value)
    number = _to_number(value)
    if number is None or number <= 0 or number > POPULATION_SIZE:
        return DEFAULT_POSITION
    position = _round_half_up(number)
    if position < 1:
        return DEFAULT_POSITION
    return position


def coerce_percentile(value: object) -> float:
    number = _to_number(value)
    if number is None and isinstance(value, str) and "%" in value:
        # e.g. "top 1.9%"
        match = _DECIMAL_RE.search(value)
        if match is not None:
            number = _to_number(match.group(0))
    if number is None or not 0 <= number <= 100:
        return DEFAULT_PERCENTILE
    return float(Decimal(repr(number)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def coerce_text(value: object) -> str:
    if not isinstance(value, str):
        return NO_DATA_SENTINEL
    stripped = value.strip()
    return stripped or NO_DATA_SENTINEL


def _to_number(value: object) -> float | None:
    # bool is an int subclass but never a score.
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(Decimal(value.strip()))
        except (InvalidOperation, ValueError):
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _round_half_up(number: float) -> int:
    return math.floor(number + 0.5)


def _as_mapping(value: object) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        return value
    return {}
