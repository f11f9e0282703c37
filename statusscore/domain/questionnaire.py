from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from statusscore.domain.errors import AnswersIncompleteError, DomainValidationError

AnswerSet = Mapping[str, object]

CATEGORY_FIELDS: dict[int, tuple[str, ...]] = {
    1: ("annualIncome", "netWorth", "lifestyle"),
    2: ("height", "bodyType", "strengthLevel"),
    3: ("leadershipRole", "socialReach", "networkStrength"),
    4: ("problemSolving", "skillLevel", "achievements"),
    5: ("discipline", "productiveHours", "stressResilience"),
    6: ("relationshipStatus", "attractiveness", "legacy"),
}

CATEGORY_TITLES: dict[int, str] = {
    1: "Wealth & Resources",
    2: "Physical Fitness",
    3: "Power & Influence",
    4: "Intelligence & Mastery",
    5: "Willpower & Mental Toughness",
    6: "Legacy & Success",
}

ANSWER_FIELDS: tuple[str, ...] = tuple(field for fields in CATEGORY_FIELDS.values() for field in fields)


def _rating_scale() -> tuple[str, ...]:
    return tuple(str(value) for value in range(1, 11))


_MONEY_BANDS = ("<$10k", "$10k-$50k", "$50k-$100k", "$100k-$500k", "$500k-$1M", "$1M+")

# Accepted selection values per question, as offered by the questionnaire pickers.
QUESTION_OPTIONS: dict[str, tuple[str, ...]] = {
    "annualIncome": _MONEY_BANDS,
    "netWorth": _MONEY_BANDS,
    "lifestyle": ("budget", "comfortable", "luxury"),
    "height": ("under_5_6", "5_6_to_5_8", "5_9_to_5_11", "6_0_to_6_2", "over_6_2"),
    "bodyType": ("underweight", "athletic", "muscular", "overweight", "obese"),
    "strengthLevel": ("below_average", "average", "above_average", "elite"),
    "leadershipRole": ("none", "small_team", "organization", "ceo"),
    "socialReach": ("<1k", "1k-10k", "10k-100k", "100k+"),
    "networkStrength": ("local", "national", "global"),
    "problemSolving": _rating_scale(),
    "skillLevel": ("no_skills", "one_skill", "multi_skilled", "world_class"),
    "achievements": ("none", "degree", "awards", "global"),
    "discipline": _rating_scale(),
    "productiveHours": ("<2", "2-4", "5-7", "8+"),
    "stressResilience": ("crumbles", "moderate", "thrives"),
    "relationshipStatus": ("single", "dating", "married", "multiple"),
    "attractiveness": _rating_scale(),
    "legacy": ("none", "small", "large", "global"),
}


def empty_answers() -> dict[str, str]:
    return {field: "" for field in ANSWER_FIELDS}


def category_title(category: int) -> str:
    return CATEGORY_TITLES.get(category, "")


def missing_answer_fields(answers: AnswerSet, *, fields: tuple[str, ...] = ANSWER_FIELDS) -> tuple[str, ...]:
    return tuple(field for field in fields if not _as_text(answers.get(field)))


def invalid_answer_fields(answers: AnswerSet) -> tuple[str, ...]:
    invalid: list[str] = []
    for field in ANSWER_FIELDS:
        value = _as_text(answers.get(field))
        if value and value not in QUESTION_OPTIONS[field]:
            invalid.append(field)
    return tuple(invalid)


def validate_category(answers: AnswerSet, category: int) -> None:
    fields = CATEGORY_FIELDS.get(category)
    if fields is None:
        raise DomainValidationError(f"unknown questionnaire category: {category}")
    missing = missing_answer_fields(answers, fields=fields)
    if missing:
        raise AnswersIncompleteError(missing, "Please complete all fields before proceeding.")


def validate_answers(answers: AnswerSet, *, strict_options: bool = False) -> None:
    """Raise when the answer set may not enter the scoring pipeline."""
    missing = missing_answer_fields(answers)
    if missing:
        raise AnswersIncompleteError(missing)
    if strict_options:
        invalid = invalid_answer_fields(answers)
        if invalid:
            raise DomainValidationError(f"answers have unsupported values: {', '.join(invalid)}")


def freeze_answers(answers: AnswerSet) -> Mapping[str, str]:
    """Snapshot the answers handed to one pipeline invocation."""
    return MappingProxyType({field: _as_text(answers.get(field)) for field in ANSWER_FIELDS})


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value)
