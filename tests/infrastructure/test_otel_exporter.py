"""Tests for OTELExporter."""

import pytest
from unittest.mock import MagicMock, patch

from sdm_relay.domain.events.ticket_events import (
    TicketClosedEvent,
    TicketOpenedEvent,
    TicketSyncFailedEvent,
)
from sdm_relay.infrastructure.event_bus import EventBus
from sdm_relay.infrastructure.telemetry.otel_exporter import (
    OTELConfig,
    OTELExporter,
    create_exporter,
)


class TestOTELConfig:
    def test_default_empty_endpoint(self):
        assert OTELConfig().endpoint == ""

    def test_localhost_http_allowed(self):
        config = OTELConfig(endpoint="http://localhost:4317")
        assert config.endpoint == "http://localhost:4317"

    def test_remote_https_allowed(self):
        config = OTELConfig(endpoint="https://remote.example.com:4317")
        assert config.endpoint == "https://remote.example.com:4317"

    def test_remote_http_rejected(self):
        with pytest.raises(ValueError, match="insecure=True"):
            OTELConfig(endpoint="http://remote.example.com:4317")

    def test_remote_http_with_insecure(self):
        config = OTELConfig(endpoint="http://remote.example.com:4317", insecure=True)
        assert config.insecure is True


class TestOTELExporter:
    def test_record_metric_buffers(self):
        exporter = OTELExporter(OTELConfig())
        exporter.record_metric("sdm_relay.ticket.opened", 1)
        metrics = exporter.buffered_metrics
        assert len(metrics) == 1
        assert metrics[0]["name"] == "sdm_relay.ticket.opened"
        assert metrics[0]["value"] == 1

    def test_not_initialized_without_endpoint(self):
        exporter = create_exporter(endpoint="")
        assert exporter.initialized is False

    def test_initialize_wires_otlp_exporter(self):
        with patch(
            "opentelemetry.exporter.otlp.proto.grpc.metric_exporter.OTLPMetricExporter"
        ) as otlp, patch(
            "opentelemetry.sdk.metrics.export.PeriodicExportingMetricReader"
        ), patch("opentelemetry.sdk.metrics.MeterProvider") as provider, patch(
            "opentelemetry.metrics.set_meter_provider"
        ), patch("opentelemetry.metrics.get_meter"):
            exporter = create_exporter(endpoint="http://localhost:4317", insecure=True)
            assert exporter.initialized is True
            otlp.assert_called_once_with(endpoint="http://localhost:4317", insecure=True)
            exporter.shutdown()
            provider.return_value.shutdown.assert_called_once()
        assert exporter.initialized is False

    def test_counter_used_when_initialized(self):
        exporter = OTELExporter(OTELConfig())
        exporter._meter = MagicMock()
        exporter._initialized = True
        exporter.record_metric("sdm_relay.ticket.closed", 1, attributes={"a": "b"})
        counter = exporter._meter.create_counter.return_value
        counter.add.assert_called_once_with(1, attributes={"a": "b"})


class TestEventSubscription:
    @pytest.mark.asyncio
    async def test_lifecycle_events_recorded(self):
        bus = EventBus()
        exporter = OTELExporter(OTELConfig())
        exporter.subscribe(bus)

        await bus.publish([
            TicketOpenedEvent(aggregate_id="P1", ticket_number="INC001", attempts=2),
            TicketClosedEvent(aggregate_id="P1", ticket_number="INC001", attempts=1),
            TicketSyncFailedEvent(aggregate_id="P2", operation="open", attempts=50),
        ])

        names = [m["name"] for m in exporter.buffered_metrics]
        assert names == [
            "sdm_relay.ticket.opened",
            "sdm_relay.ticket.attempts",
            "sdm_relay.ticket.closed",
            "sdm_relay.ticket.attempts",
            "sdm_relay.ticket.failed",
        ]
        assert exporter.buffered_metrics[1]["value"] == 2
        assert exporter.buffered_metrics[-1]["attributes"] == {"operation": "open"}


class TestBuffer:
    @pytest.mark.asyncio
    async def test_buffer_keeps_only_latest_values(self):
        bus = EventBus()
        exporter = create_exporter()
        exporter.subscribe(bus)

        for n in range(5000):
            await bus.publish([
                TicketOpenedEvent(aggregate_id=f"P{n}", ticket_number=f"INC{n}", attempts=n)
            ])

        metrics = exporter.buffered_metrics
        assert len(metrics) == 1000
        assert metrics[-1]["name"] == "sdm_relay.ticket.attempts"
        assert metrics[-1]["value"] == 4999

    def test_custom_buffer_size(self):
        exporter = OTELExporter(OTELConfig(buffer_size=2))
        for n in range(5):
            exporter.record_metric("sdm_relay.ticket.opened", n)
        assert [m["value"] for m in exporter.buffered_metrics] == [3, 4]

    def test_invalid_buffer_size(self):
        with pytest.raises(ValueError, match="buffer_size"):
            OTELConfig(buffer_size=0)
