"""
Domain Events Package

Architectural Intent:
- Contains domain events published by the ticket lifecycle
- Events are the primary mechanism for cross-boundary communication
"""

from sdm_relay.domain.events.event_base import DomainEvent
from sdm_relay.domain.events.ticket_events import (
    TicketOpenedEvent,
    TicketClosedEvent,
    TicketSyncFailedEvent,
)

__all__ = [
    "DomainEvent",
    "TicketOpenedEvent",
    "TicketClosedEvent",
    "TicketSyncFailedEvent",
]
