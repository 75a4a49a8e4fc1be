"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external dependencies
- Ports define what the domain needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from sdm_relay.domain.ports.service_desk_port import (
    ServiceDeskPort,
    RemoteError,
    AuthenticationError,
)
from sdm_relay.domain.ports.association_store_port import AssociationStorePort
from sdm_relay.domain.ports.event_bus_port import EventBusPort

__all__ = [
    "ServiceDeskPort",
    "RemoteError",
    "AuthenticationError",
    "AssociationStorePort",
    "EventBusPort",
]
