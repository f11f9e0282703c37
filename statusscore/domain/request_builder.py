from __future__ import annotations

import json

from statusscore.domain.dto import ScoringRequest
from statusscore.domain.questionnaire import AnswerSet
from statusscore.domain.scoring_chain import ScoringChainSpec, render_user_prompt
from statusscore.settings import ScoringSettings

# profile section -> (profile key, answer field)
PROFILE_LAYOUT: dict[str, tuple[tuple[str, str], ...]] = {
    "wealth": (
        ("income", "annualIncome"),
        ("netWorth", "netWorth"),
        ("lifestyle", "lifestyle"),
    ),
    "physical": (
        ("height", "height"),
        ("bodyType", "bodyType"),
        ("strength", "strengthLevel"),
    ),
    "power": (
        ("leadership", "leadershipRole"),
        ("socialReach", "socialReach"),
        ("network", "networkStrength"),
    ),
    "intelligence": (
        ("problemSolving", "problemSolving"),
        ("skills", "skillLevel"),
        ("achievements", "achievements"),
    ),
    "willpower": (
        ("discipline", "discipline"),
        ("productivity", "productiveHours"),
        ("resilience", "stressResilience"),
    ),
    "legacy": (
        ("relationships", "relationshipStatus"),
        ("attractiveness", "attractiveness"),
        ("impact", "legacy"),
    ),
}


def build_profile(answers: AnswerSet) -> dict[str, dict[str, dict[str, str]]]:
    """Every value is a string; the upstream prompt is brittle about field types."""
    return {
        "profile": {
            section: {key: _as_text(answers.get(field)) for key, field in fields}
            for section, fields in PROFILE_LAYOUT.items()
        }
    }


def build_scoring_request(
    answers: AnswerSet,
    *,
    chain: ScoringChainSpec,
    settings: ScoringSettings,
) -> ScoringRequest:
    profile_json = json.dumps(build_profile(answers), ensure_ascii=False)
    return ScoringRequest(
        system_prompt=chain.prompts.system,
        user_prompt=render_user_prompt(template=chain.prompts.user_template, data=profile_json),
        model=settings.model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )


def to_wire_payload(request: ScoringRequest) -> dict[str, object]:
    return {
        "model": request.model,
        "messages": [
            {"role": "system", "content": request.system_prompt},
            {"role": "user", "content": request.user_prompt},
        ],
        "temperature": request.temperature,
        "max_tokens": request.max_tokens,
        "response_format": {"type": "json_object"},
    }


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value)
