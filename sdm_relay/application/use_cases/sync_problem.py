"""
Sync Problem Use Case

Architectural Intent:
- Entry point of the ticket lifecycle engine
- Classifies the problem state and dispatches to OpenTicket or CloseTicket
- Serializes all handling of the same problem id, so overlapping OPEN and
  RESOLVED notifications cannot interleave their store updates
- Holds no state across requests besides what the association store keeps
"""

import logging
from typing import Optional
from sdm_relay.application.dtos.sync_dtos import SyncOutcome
from sdm_relay.application.keyed_lock import KeyedLock
from sdm_relay.application.use_cases.close_ticket import CloseTicket
from sdm_relay.application.use_cases.open_ticket import OpenTicket
from sdm_relay.domain.entities.problem_event import ProblemEvent, ProblemState

logger = logging.getLogger(__name__)


class SyncProblem:
    def __init__(
        self,
        open_ticket: OpenTicket,
        close_ticket: CloseTicket,
        locks: Optional[KeyedLock] = None,
    ):
        self.open_ticket = open_ticket
        self.close_ticket = close_ticket
        self.locks = locks or KeyedLock()

    async def execute(self, event: ProblemEvent) -> SyncOutcome:
        logger.debug("Parsed problem: %s", event)

        state = event.state
        if state is ProblemState.UNKNOWN:
            logger.info(
                "Ignoring problem %s in unsupported state %r",
                event.problem_id,
                event.raw_state,
            )
            return SyncOutcome.ignored(
                f"Ignoring problem {event.problem_id} in state {event.raw_state}"
            )

        async with self.locks.hold(str(event.problem_id)):
            if state is ProblemState.OPEN:
                return await self.open_ticket.execute(event)
            return await self.close_ticket.execute(event)
