"""
OpenTelemetry Exporter for the relay

Architectural Intent:
- Exports ticket lifecycle metrics to OTLP-compatible backends
- Subscribes to the event bus, so use cases never call telemetry directly

Security:
- Endpoint defaults to empty string (must be explicitly configured)
- Non-localhost http:// endpoints rejected unless insecure=True
- Validation in __post_init__ prevents accidental plaintext export
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Optional, Any
from urllib.parse import urlparse
import logging
from datetime import datetime, UTC

from sdm_relay.domain.events.ticket_events import (
    TicketClosedEvent,
    TicketOpenedEvent,
    TicketSyncFailedEvent,
)
from sdm_relay.domain.ports.event_bus_port import EventBusPort

logger = logging.getLogger(__name__)


@dataclass
class OTELConfig:
    endpoint: str = ""
    service_name: str = "sdm-relay"
    environment: str = "production"
    export_interval_ms: int = 5000
    insecure: bool = False
    buffer_size: int = 1000

    def __post_init__(self) -> None:
        if self.buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")
        if self.endpoint:
            parsed = urlparse(self.endpoint)
            is_localhost = parsed.hostname in ("localhost", "127.0.0.1", "::1")
            if parsed.scheme == "http" and not is_localhost and not self.insecure:
                raise ValueError(
                    f"Non-localhost HTTP endpoint '{self.endpoint}' requires "
                    "insecure=True or use https://. "
                    "Set insecure=True to explicitly allow plaintext export."
                )


class OTELExporter:
    """
    OpenTelemetry exporter for ticket lifecycle metrics.

    The most recent values are also kept in a bounded local buffer, which is
    what the relay reports when no endpoint is configured.
    """

    def __init__(self, config: OTELConfig):
        self.config = config
        self._initialized = False
        self._metrics_buffer: deque[dict[str, Any]] = deque(maxlen=config.buffer_size)
        self._meter: Any = None
        self._provider: Any = None
        self._counters: dict[str, Any] = {}

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def buffered_metrics(self) -> list[dict[str, Any]]:
        return list(self._metrics_buffer)

    def initialize(self) -> None:
        """Initialize the OpenTelemetry SDK and OTLP metric exporter."""
        if not self.config.endpoint:
            logger.info("OTEL endpoint not configured, telemetry disabled")
            return

        from opentelemetry import metrics
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource, SERVICE_NAME
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
            OTLPMetricExporter,
        )

        try:
            resource = Resource(
                attributes={
                    SERVICE_NAME: self.config.service_name,
                    "environment": self.config.environment,
                }
            )
            metric_reader = PeriodicExportingMetricReader(
                OTLPMetricExporter(
                    endpoint=self.config.endpoint, insecure=self.config.insecure
                ),
                export_interval_millis=self.config.export_interval_ms,
            )
            self._provider = MeterProvider(
                resource=resource, metric_readers=[metric_reader]
            )
            metrics.set_meter_provider(self._provider)
            self._meter = metrics.get_meter(__name__)
            self._initialized = True
            logger.info("OTEL metrics exported to %s", self.config.endpoint)
        except Exception as e:
            logger.error("Failed to initialize OTEL: %s", e)
            self._initialized = False

    def shutdown(self) -> None:
        if self._provider is not None:
            self._provider.shutdown()
            self._provider = None
        self._initialized = False

    def _get_counter(self, name: str, unit: str = "") -> Any:
        """Get or create a counter for a metric name."""
        if name not in self._counters and self._meter:
            self._counters[name] = self._meter.create_counter(name, unit=unit)
        return self._counters.get(name)

    def record_metric(
        self,
        name: str,
        value: float,
        unit: str = "",
        attributes: Optional[dict[str, str]] = None,
    ) -> None:
        """Add value to a counter."""
        self._metrics_buffer.append(
            {
                "name": name,
                "value": value,
                "unit": unit,
                "attributes": attributes or {},
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

        if self._initialized:
            counter = self._get_counter(name, unit)
            if counter:
                counter.add(value, attributes=attributes or {})

    # -- event handlers ------------------------------------------------------

    async def on_ticket_opened(self, event: TicketOpenedEvent) -> None:
        self.record_metric("sdm_relay.ticket.opened", 1)
        self.record_metric(
            "sdm_relay.ticket.attempts", event.attempts, attributes={"operation": "open"}
        )

    async def on_ticket_closed(self, event: TicketClosedEvent) -> None:
        self.record_metric("sdm_relay.ticket.closed", 1)
        self.record_metric(
            "sdm_relay.ticket.attempts", event.attempts, attributes={"operation": "close"}
        )

    async def on_ticket_failed(self, event: TicketSyncFailedEvent) -> None:
        self.record_metric(
            "sdm_relay.ticket.failed", 1, attributes={"operation": event.operation}
        )

    def subscribe(self, event_bus: EventBusPort) -> None:
        event_bus.subscribe(TicketOpenedEvent, self.on_ticket_opened)
        event_bus.subscribe(TicketClosedEvent, self.on_ticket_closed)
        event_bus.subscribe(TicketSyncFailedEvent, self.on_ticket_failed)


def create_exporter(
    endpoint: Optional[str] = None,
    insecure: bool = False,
    service_name: str = "sdm-relay",
) -> OTELExporter:
    """Factory function to create and initialize an OTEL exporter."""
    config = OTELConfig(
        endpoint=endpoint or "",
        service_name=service_name,
        insecure=insecure,
    )
    exporter = OTELExporter(config)
    exporter.initialize()
    return exporter
