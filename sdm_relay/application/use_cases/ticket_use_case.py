"""
Ticket Use Case Base

Architectural Intent:
- Shared wiring for the open and close use cases
- Collaborators are injected; nothing reaches for process-wide singletons
"""

import logging
from typing import Optional
from sdm_relay.domain.events.event_base import DomainEvent
from sdm_relay.domain.ports.association_store_port import AssociationStorePort
from sdm_relay.domain.ports.event_bus_port import EventBusPort
from sdm_relay.domain.ports.service_desk_port import RemoteError, ServiceDeskPort
from sdm_relay.domain.services.retry_policy import RetryPolicy
from sdm_relay.domain.value_objects.credentials import ServiceDeskCredentials
from sdm_relay.domain.value_objects.ticket_template import TicketTemplate

logger = logging.getLogger(__name__)


class TicketUseCase:
    def __init__(
        self,
        service_desk: ServiceDeskPort,
        store: AssociationStorePort,
        retry_policy: RetryPolicy,
        credentials: ServiceDeskCredentials,
        template: Optional[TicketTemplate] = None,
        event_bus: Optional[EventBusPort] = None,
    ):
        self.service_desk = service_desk
        self.store = store
        self.retry_policy = retry_policy
        self.credentials = credentials
        self.template = template or TicketTemplate()
        self.event_bus = event_bus

    async def _login(self) -> str:
        try:
            sid = await self.service_desk.login(
                self.credentials.username, self.credentials.password
            )
        except RemoteError as e:
            self._log_remote_failure("login", e)
            raise
        logger.debug("Got back session id for %s", self.credentials.username)
        return sid

    def _log_remote_failure(self, step: str, error: RemoteError) -> None:
        logger.error("Could not %s: %s", step, error)
        if error.body:
            logger.debug("The body was %s", error.body)

    async def _publish(self, event: DomainEvent) -> None:
        if self.event_bus is not None:
            await self.event_bus.publish([event])
