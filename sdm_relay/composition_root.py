"""
Composition Root

Architectural Intent:
- Dependency injection composition root for the relay
- Single place where adapters, the store and use cases are wired together
- No adapter instantiation should occur outside this module (except CLI)

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- Factory function creates and wires all dependencies from RelayConfig
- Falls back to the stub Service Desk when no SDM endpoint is configured
- Store creation errors propagate: the relay must not start without a store
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from sdm_relay.application.keyed_lock import KeyedLock
from sdm_relay.application.use_cases.close_ticket import CloseTicket
from sdm_relay.application.use_cases.open_ticket import OpenTicket
from sdm_relay.application.use_cases.sync_problem import SyncProblem
from sdm_relay.domain.ports.service_desk_port import ServiceDeskPort
from sdm_relay.domain.services.retry_policy import (
    RetryPolicy,
    exponential_backoff,
    no_backoff,
)
from sdm_relay.domain.value_objects.credentials import ServiceDeskCredentials
from sdm_relay.domain.value_objects.ticket_template import TicketTemplate
from sdm_relay.infrastructure.adapters.sdm_soap_adapter import SdmSoapAdapter
from sdm_relay.infrastructure.adapters.stub_service_desk import StubServiceDesk
from sdm_relay.infrastructure.config import RelayConfig, SDMConfig
from sdm_relay.infrastructure.event_bus import EventBus
from sdm_relay.infrastructure.repositories.json_association_store import (
    JsonAssociationStore,
)
from sdm_relay.infrastructure.telemetry.otel_exporter import (
    OTELExporter,
    create_exporter,
)

logger = logging.getLogger(__name__)


@dataclass
class RelayContainer:
    """DI container holding all wired dependencies."""

    config: RelayConfig
    service_desk: ServiceDeskPort
    store: JsonAssociationStore
    event_bus: EventBus
    telemetry: OTELExporter
    retry_policy: RetryPolicy
    open_ticket: OpenTicket
    close_ticket: CloseTicket
    sync_problem: SyncProblem

    def shutdown(self) -> None:
        """Release the telemetry pipeline and the backend HTTP session."""
        self.telemetry.shutdown()
        if isinstance(self.service_desk, SdmSoapAdapter):
            self.service_desk.close()


def build_template(sdm: SDMConfig) -> TicketTemplate:
    return TicketTemplate(
        operator_userid=sdm.operator_userid,
        default_category=sdm.default_category,
        group=sdm.group,
        type=sdm.type,
        urgency=sdm.urgency,
        impact=sdm.impact,
        root_cause=sdm.root_cause,
        title_prefix=sdm.title_prefix,
    )


def build_retry_policy(config: RelayConfig) -> RetryPolicy:
    retry = config.retry
    if retry.backoff_seconds > 0:
        backoff = exponential_backoff(retry.backoff_seconds, retry.backoff_max_seconds)
    else:
        backoff = no_backoff
    return RetryPolicy(retry.max_attempts, backoff=backoff)


def build_service_desk(sdm: SDMConfig) -> Union[SdmSoapAdapter, StubServiceDesk]:
    if sdm.endpoint:
        return SdmSoapAdapter(sdm.endpoint, timeout_seconds=sdm.timeout_seconds)
    logger.warning("No SDM endpoint configured, using the stub Service Desk")
    return StubServiceDesk(sdm.username, sdm.password)


def create_container(
    config: Optional[RelayConfig] = None,
    service_desk: Optional[ServiceDeskPort] = None,
) -> RelayContainer:
    """Create and wire all dependencies."""
    config = config or RelayConfig()
    if config.sdm.endpoint and not config.sdm.username:
        raise ValueError("sdm.username is required when sdm.endpoint is set")
    if config.sdm.endpoint and not config.sdm.root_cause:
        raise ValueError("sdm.root_cause is required when sdm.endpoint is set")

    desk = service_desk or build_service_desk(config.sdm)
    store = JsonAssociationStore.open(config.store.path)
    event_bus = EventBus()
    telemetry = create_exporter(
        endpoint=config.telemetry.endpoint, insecure=config.telemetry.insecure
    )
    telemetry.subscribe(event_bus)

    retry_policy = build_retry_policy(config)
    credentials = ServiceDeskCredentials(
        username=config.sdm.username or "stub",
        password=config.sdm.password,
    )
    template = build_template(config.sdm)

    open_ticket = OpenTicket(
        desk, store, retry_policy, credentials, template, event_bus
    )
    close_ticket = CloseTicket(
        desk, store, retry_policy, credentials, template, event_bus
    )
    sync_problem = SyncProblem(open_ticket, close_ticket, KeyedLock())

    return RelayContainer(
        config=config,
        service_desk=desk,
        store=store,
        event_bus=event_bus,
        telemetry=telemetry,
        retry_policy=retry_policy,
        open_ticket=open_ticket,
        close_ticket=close_ticket,
        sync_problem=sync_problem,
    )
