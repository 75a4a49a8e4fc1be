"""
Ticket Lifecycle Events

Published by the lifecycle use cases once the Service Desk call sequence has
finished. The aggregate id is always the problem id.
"""

from dataclasses import dataclass
from typing import Any
from sdm_relay.domain.events.event_base import DomainEvent


@dataclass(frozen=True)
class TicketOpenedEvent(DomainEvent):
    ticket_number: str = ""
    attempts: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "ticket_number": self.ticket_number,
            "attempts": self.attempts,
        }


@dataclass(frozen=True)
class TicketClosedEvent(DomainEvent):
    ticket_number: str = ""
    attempts: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "ticket_number": self.ticket_number,
            "attempts": self.attempts,
        }


@dataclass(frozen=True)
class TicketSyncFailedEvent(DomainEvent):
    operation: str = ""
    attempts: int = 0
    error_message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "operation": self.operation,
            "attempts": self.attempts,
            "error_message": self.error_message,
        }
