from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
import uuid
from pathlib import Path

import uvicorn
import yaml

from statusscore.api.http_app import build_app
from statusscore.domain.errors import DomainValidationError, ScoringError
from statusscore.domain.questionnaire import validate_answers
from statusscore.logging_setup import configure_logging
from statusscore.roles import SUPPORTED_ROLES, validate_role
from statusscore.services.bootstrap import RuntimeContainer, build_runtime_container
from statusscore.services.error_reporting import ErrorReportingSubscription


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Status score pipeline entrypoint")
    parser.add_argument("--role", required=True, help="Runtime role")
    parser.add_argument("--host", default=os.getenv("APP_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("APP_PORT", "8000")))
    parser.add_argument("--answers", type=Path, default=None, help="YAML/JSON answers file (score role)")
    parser.add_argument(
        "--dry-run-startup",
        action="store_true",
        help="Validate startup and exit",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable code reload (dev mode)",
    )
    return parser.parse_args(argv)


def create_runtime_app() -> object:
    role = validate_role("api")
    configure_logging()
    return build_app(run_id=str(uuid.uuid4()), container=build_runtime_container(role))


def load_answers(path: Path) -> dict[str, object]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise DomainValidationError("answers file must contain a mapping")
    answers = data.get("answers", data)
    if not isinstance(answers, dict):
        raise DomainValidationError("answers must be a mapping")
    return answers


async def score_once(container: RuntimeContainer, answers: dict[str, object]) -> dict[str, object] | None:
    with ErrorReportingSubscription.subscribe(container.telemetry):
        try:
            result = await container.controller.run(answers)
        finally:
            container.controller.teardown()
            if container.on_shutdown is not None:
                await container.on_shutdown()
    return result.to_payload() if result is not None else None


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        role = validate_role(args.role)
    except ValueError as exc:
        supported = ", ".join(SUPPORTED_ROLES)
        sys.stderr.write(f"ERROR: {exc}\n")
        sys.stderr.write(f"Try one of: {supported}\n")
        return 2

    configure_logging()
    run_id = str(uuid.uuid4())
    logger = logging.getLogger("runtime")

    logger.info(
        "runtime initialized",
        extra={"role": role.name, "service": role.name, "run_id": run_id},
    )

    if role.name == "score" and args.answers is None:
        sys.stderr.write("ERROR: --answers is required for the score role\n")
        return 2

    if args.dry_run_startup:
        logger.info(
            "dry-run startup complete",
            extra={"role": role.name, "service": role.name, "run_id": run_id},
        )
        return 0

    if role.name == "score":
        return _run_score(args.answers, role_name=role.name)

    if args.reload:
        uvicorn.run(
            "statusscore.main:create_runtime_app",
            host=args.host,
            port=args.port,
            log_level="warning",
            reload=True,
            factory=True,
        )
    else:
        app = build_app(run_id=run_id, container=build_runtime_container(role))
        uvicorn.run(app, host=args.host, port=args.port, log_level="warning")
    return 0


def _run_score(answers_path: Path, *, role_name: str) -> int:
    try:
        answers = load_answers(answers_path)
        validate_answers(answers)
    except (OSError, yaml.YAMLError, DomainValidationError) as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        return 2

    container = build_runtime_container(validate_role(role_name))
    try:
        payload = asyncio.run(score_once(container, answers))
    except ScoringError as exc:
        sys.stderr.write(f"ERROR: {exc.message}\n")
        return 1
    if payload is None:
        sys.stderr.write("ERROR: calculation did not complete\n")
        return 1
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
