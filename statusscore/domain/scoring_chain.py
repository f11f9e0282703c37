from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re

import yaml

from statusscore.domain.errors import ChainSpecError

DATA_PLACEHOLDER = "DATA"
DEFAULT_CHAIN_SPEC_PATH = Path(__file__).resolve().parent.parent / "eval" / "chains" / "status_score.v1.yaml"

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_.-]+)\s*\}\}")


@dataclass(frozen=True)
class PromptsConfig:
    system: str
    user_template: str


@dataclass(frozen=True)
class ResponseContract:
    required: tuple[str, ...]
    categories: tuple[str, ...]


@dataclass(frozen=True)
class ScoringChainSpec:
    spec_version: str
    chain_version: str
    prompts: PromptsConfig
    response: ResponseContract


def load_chain_spec(*, file_path: str | Path = DEFAULT_CHAIN_SPEC_PATH) -> ScoringChainSpec:
    data = yaml.safe_load(Path(file_path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ChainSpecError("chain spec must be a YAML object")
    return parse_chain_spec(data)


def parse_chain_spec(data: dict[str, object]) -> ScoringChainSpec:
    spec_version = _required_str(data, "spec_version")
    chain_version = _required_str(data, "chain_version")

    prompts_raw = _required_obj(data, "prompts")
    prompts = PromptsConfig(
        system=_required_str(prompts_raw, "system").strip(),
        user_template=_required_str(prompts_raw, "user_template"),
    )
    placeholders = set(PLACEHOLDER_RE.findall(prompts.user_template))
    if placeholders != {DATA_PLACEHOLDER}:
        raise ChainSpecError("prompts.user_template must contain exactly the {{DATA}} placeholder")

    response_raw = _required_obj(data, "response")
    response = ResponseContract(
        required=tuple(_required_str_list(response_raw, "required")),
        categories=tuple(_required_str_list(response_raw, "categories")),
    )
    if "categoryScores" not in response.required:
        raise ChainSpecError("response.required must include categoryScores")

    return ScoringChainSpec(
        spec_version=spec_version,
        chain_version=chain_version,
        prompts=prompts,
        response=response,
    )


def render_user_prompt(*, template: str, data: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key != DATA_PLACEHOLDER:
            raise ChainSpecError(f"missing placeholder value: {key}")
        return data

    return PLACEHOLDER_RE.sub(_replace, template)


def _required_str(data: dict[str, object], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ChainSpecError(f"{key} is required and must be non-empty string")
    return value


def _required_obj(data: dict[str, object], key: str) -> dict[str, object]:
    value = data.get(key)
    if not isinstance(value, dict):
        raise ChainSpecError(f"{key} is required and must be object")
    return value


def _required_str_list(data: dict[str, object], key: str) -> list[str]:
    values = data.get(key)
    if not isinstance(values, list) or not values:
        raise ChainSpecError(f"{key} is required and must be non-empty list")
    result: list[str] = []
    for value in values:
        if not isinstance(value, str) or not value:
            raise ChainSpecError(f"{key} must contain non-empty strings")
        result.append(value)
    return result
