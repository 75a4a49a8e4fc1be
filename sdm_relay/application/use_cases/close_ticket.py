"""
Close Ticket Use Case

Architectural Intent:
- Closes the Service Desk request recorded for a problem that was RESOLVED
- Drives login -> updateObject under the retry policy
- The association is kept (marked closed) as evidence a ticket existed
"""

import logging
from sdm_relay.application.dtos.sync_dtos import SyncOutcome
from sdm_relay.application.use_cases.ticket_use_case import TicketUseCase
from sdm_relay.domain.entities.problem_event import ProblemEvent
from sdm_relay.domain.events.ticket_events import (
    TicketClosedEvent,
    TicketSyncFailedEvent,
)
from sdm_relay.domain.ports.service_desk_port import RemoteError
from sdm_relay.domain.services.retry_policy import RetryExhausted

logger = logging.getLogger(__name__)


class CloseTicket(TicketUseCase):
    async def execute(self, event: ProblemEvent) -> SyncOutcome:
        problem_id = str(event.problem_id)
        record = self.store.lookup(problem_id)
        if record is None:
            logger.info("No ticket associated with problem %s, nothing to close", problem_id)
            return SyncOutcome.ignored(f"No ticket associated with problem {problem_id}")

        ticket = record.ticket
        try:
            _, attempts = await self.retry_policy.attempt(
                lambda: self._close_flow(ticket.handle), f"close ticket {ticket.number}"
            )
        except RetryExhausted as e:
            message = (
                f"Could not close ticket {ticket.number} after {e.attempts} tries, "
                f"error: {e.last_error}"
            )
            logger.error("Problem %s: %s", problem_id, message)
            await self._publish(
                TicketSyncFailedEvent(
                    aggregate_id=problem_id,
                    operation="close",
                    attempts=e.attempts,
                    error_message=str(e.last_error),
                )
            )
            return SyncOutcome.failed(message, e.attempts, ticket.number)

        if record.is_live:
            try:
                self.store.upsert(record.close())
            except OSError as e:
                # the remote ticket is closed; only the local flag is stale
                logger.error(
                    "Closed ticket %s but could not mark it closed locally: %s",
                    ticket.number,
                    e,
                )

        logger.info("Closed ticket: %s", ticket.number)
        await self._publish(
            TicketClosedEvent(
                aggregate_id=problem_id,
                ticket_number=ticket.number,
                attempts=attempts,
            )
        )
        return SyncOutcome.closed(ticket.number, attempts)

    async def _close_flow(self, ticket_handle: str) -> str:
        sid = await self._login()
        try:
            return await self.service_desk.update_object(
                sid, ticket_handle, self.template.close_attributes()
            )
        except RemoteError as e:
            self._log_remote_failure("update request", e)
            raise
