from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from statusscore.clients.http_transport import build_http_transport
from statusscore.clients.stub import StubEntitlementGate, StubScoringTransport
from statusscore.domain.contracts import EntitlementGate, ResultStore, ScoringTransport, Telemetry
from statusscore.domain.scoring_chain import ScoringChainSpec, load_chain_spec
from statusscore.repositories.result_store import InMemoryResultStore, JsonFileResultStore
from statusscore.roles import RuntimeRole
from statusscore.services.pipeline_controller import PipelineController
from statusscore.services.scoring_client import ScoringClient
from statusscore.services.telemetry import LoggingTelemetry
from statusscore.settings import ScoringSettings, scoring_settings_from_env


@dataclass
class RuntimeContainer:
    role: RuntimeRole
    settings: ScoringSettings
    chain: ScoringChainSpec
    transport: ScoringTransport
    entitlements: EntitlementGate
    store: ResultStore
    telemetry: Telemetry
    controller: PipelineController
    on_shutdown: Callable[[], Awaitable[None]] | None


def build_runtime_container(
    role: RuntimeRole,
    *,
    settings: ScoringSettings | None = None,
    transport: ScoringTransport | None = None,
    entitlements: EntitlementGate | None = None,
) -> RuntimeContainer:
    settings = settings or scoring_settings_from_env()
    chain = load_chain_spec()
    on_shutdown: Callable[[], Awaitable[None]] | None = None
    if transport is None:
        if settings.stub_mode:
            transport = StubScoringTransport()
        else:
            http_transport = build_http_transport(settings)
            transport = http_transport
            on_shutdown = http_transport.aclose

    store: ResultStore
    if settings.results_path:
        store = JsonFileResultStore(path=Path(settings.results_path))
    else:
        store = InMemoryResultStore()
    telemetry = LoggingTelemetry()
    client = ScoringClient(transport=transport, settings=settings, chain=chain)

    return RuntimeContainer(
        role=role,
        settings=settings,
        chain=chain,
        transport=transport,
        entitlements=entitlements or StubEntitlementGate(),
        store=store,
        telemetry=telemetry,
        controller=PipelineController(client=client, store=store, telemetry=telemetry),
        on_shutdown=on_shutdown,
    )
