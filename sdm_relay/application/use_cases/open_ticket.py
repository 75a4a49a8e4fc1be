"""
Open Ticket Use Case

Architectural Intent:
- Opens a Service Desk request for a problem that entered the OPEN state
- Drives login -> getHandleForUserid -> createRequest under the retry policy
- Records the association only after the backend returned a ticket

Design Decisions:
- A problem with a live ticket is not opened twice; the caller gets a
  DUPLICATE outcome and no remote call is made
- A problem whose previous ticket was closed gets a new ticket and the old
  reference moves to the record's history
"""

import logging
from sdm_relay.application.dtos.sync_dtos import SyncOutcome
from sdm_relay.application.use_cases.ticket_use_case import TicketUseCase
from sdm_relay.domain.entities.association import AssociationRecord
from sdm_relay.domain.entities.problem_event import ProblemEvent
from sdm_relay.domain.events.ticket_events import (
    TicketOpenedEvent,
    TicketSyncFailedEvent,
)
from sdm_relay.domain.ports.service_desk_port import RemoteError
from sdm_relay.domain.services.retry_policy import RetryExhausted
from sdm_relay.domain.value_objects.ticket_reference import TicketReference

logger = logging.getLogger(__name__)


class OpenTicket(TicketUseCase):
    async def execute(self, event: ProblemEvent) -> SyncOutcome:
        problem_id = str(event.problem_id)
        existing = self.store.lookup(problem_id)
        if existing is not None and existing.is_live:
            logger.info(
                "Problem %s already has open ticket %s, not opening another",
                problem_id,
                existing.ticket.number,
            )
            return SyncOutcome.duplicate(existing.ticket.number)

        title = event.ticket_title(self.template.title_prefix)
        try:
            ticket, attempts = await self.retry_policy.attempt(
                lambda: self._create_flow(event, title), "open a ticket"
            )
        except RetryExhausted as e:
            message = (
                f"Could not open ticket after {e.attempts} tries, "
                f"error: {e.last_error}"
            )
            logger.error("Problem %s: %s", problem_id, message)
            await self._publish(
                TicketSyncFailedEvent(
                    aggregate_id=problem_id,
                    operation="open",
                    attempts=e.attempts,
                    error_message=str(e.last_error),
                )
            )
            return SyncOutcome.failed(message, e.attempts)

        if existing is not None:
            record = existing.reopen(ticket)
        else:
            record = AssociationRecord.opened(problem_id, ticket)

        try:
            self.store.upsert(record)
        except OSError as e:
            message = f"Opened ticket {ticket.number} but could not record it: {e}"
            logger.error("Problem %s: %s", problem_id, message)
            await self._publish(
                TicketSyncFailedEvent(
                    aggregate_id=problem_id,
                    operation="record",
                    attempts=attempts,
                    error_message=str(e),
                )
            )
            return SyncOutcome.failed(message, attempts, ticket.number)

        logger.info("Opened ticket: %s", ticket.number)
        await self._publish(
            TicketOpenedEvent(
                aggregate_id=problem_id,
                ticket_number=ticket.number,
                attempts=attempts,
            )
        )
        return SyncOutcome.opened(ticket.number, attempts)

    async def _create_flow(self, event: ProblemEvent, title: str) -> TicketReference:
        sid = await self._login()

        try:
            handle = await self.service_desk.get_handle_for_userid(
                sid, self.template.operator_userid
            )
        except RemoteError as e:
            self._log_remote_failure("get handle", e)
            raise
        logger.debug("Got back handle %s", handle)

        attributes = self.template.create_attributes(
            customer_handle=handle,
            description=event.details_text,
            summary=title,
            category=event.category,
        )
        try:
            return await self.service_desk.create_request(sid, handle, attributes)
        except RemoteError as e:
            self._log_remote_failure("create request", e)
            raise
