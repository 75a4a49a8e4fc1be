"""
Relay Telemetry Infrastructure

Architectural Intent:
- OpenTelemetry integration for observability
- Ticket lifecycle metrics export
"""

from sdm_relay.infrastructure.telemetry.otel_exporter import (
    OTELExporter,
    OTELConfig,
    create_exporter,
)

__all__ = [
    "OTELExporter",
    "OTELConfig",
    "create_exporter",
]
