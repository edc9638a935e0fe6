"""
OpenTelemetry Exporter for Shipyard

Architectural Intent:
- Exports pipeline telemetry to OTLP-compatible backends
- Subscribes to pipeline domain events: one metric point and one span
  per finished stage, one metric point per finished run

Security:
- Endpoint defaults to empty string (must be explicitly configured)
- Non-localhost http:// endpoints rejected unless insecure=True
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Any
from urllib.parse import urlparse
import logging
from datetime import datetime, UTC

from shipyard.domain.events.event_base import DomainEvent
from shipyard.domain.events.pipeline_events import (
    PipelineFailedEvent,
    PipelineSucceededEvent,
    StageFinishedEvent,
)
from shipyard.domain.ports.event_bus_port import EventBusPort

logger = logging.getLogger(__name__)


@dataclass
class OTELConfig:
    endpoint: str = ""
    service_name: str = "shipyard"
    environment: str = "development"
    enable_traces: bool = True
    enable_metrics: bool = True
    insecure: bool = False

    def __post_init__(self) -> None:
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
    """OpenTelemetry exporter for pipeline runs."""

    def __init__(self, config: OTELConfig):
        self.config = config
        self._initialized = False
        self._metrics_buffer: list[dict[str, Any]] = []
        self._meter: Any = None
        self._histograms: dict[str, Any] = {}
        self._counters: dict[str, Any] = {}

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Initialize OpenTelemetry SDK and exporters."""
        if not self.config.endpoint:
            logger.info("OTEL endpoint not configured, telemetry disabled")
            return

        try:
            from opentelemetry import trace
            from opentelemetry.sdk.trace import TracerProvider
            from opentelemetry.sdk.trace.export import BatchSpanProcessor
            from opentelemetry.sdk.resources import Resource, SERVICE_NAME
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )
            from opentelemetry import metrics
            from opentelemetry.sdk.metrics import MeterProvider
            from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
            from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
                OTLPMetricExporter,
            )

            resource = Resource(
                attributes={
                    SERVICE_NAME: self.config.service_name,
                    "environment": self.config.environment,
                }
            )

            if self.config.enable_traces:
                trace.set_tracer_provider(TracerProvider(resource=resource))
                span_processor = BatchSpanProcessor(
                    OTLPSpanExporter(
                        endpoint=self.config.endpoint, insecure=self.config.insecure
                    )
                )
                trace.get_tracer_provider().add_span_processor(span_processor)

            if self.config.enable_metrics:
                metric_reader = PeriodicExportingMetricReader(
                    OTLPMetricExporter(
                        endpoint=self.config.endpoint, insecure=self.config.insecure
                    )
                )
                provider = MeterProvider(
                    resource=resource, metric_readers=[metric_reader]
                )
                metrics.set_meter_provider(provider)
                self._meter = metrics.get_meter(__name__)

            self._initialized = True

        except ImportError:
            logger.warning("OpenTelemetry SDK not installed, telemetry disabled")
            self._initialized = False
        except Exception as e:
            logger.error("Failed to initialize OTEL: %s", e)
            self._initialized = False

    def _histogram(self, name: str, unit: str) -> Any:
        if name not in self._histograms and self._meter:
            self._histograms[name] = self._meter.create_histogram(name, unit=unit)
        return self._histograms.get(name)

    def _counter(self, name: str) -> Any:
        if name not in self._counters and self._meter:
            self._counters[name] = self._meter.create_counter(name)
        return self._counters.get(name)

    def _buffer(self, name: str, value: float, unit: str, attributes: dict[str, str]) -> None:
        self._metrics_buffer.append(
            {
                "name": name,
                "value": value,
                "unit": unit,
                "attributes": attributes,
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

    def record_stage(
        self,
        build_id: str,
        stage: str,
        status: str,
        elapsed_seconds: float,
    ) -> None:
        """Record the duration and status of a finished stage."""
        attributes = {"build_id": build_id, "stage": stage, "status": status}
        self._buffer("shipyard.stage.duration", elapsed_seconds, "s", attributes)

        if self._initialized:
            histogram = self._histogram("shipyard.stage.duration", "s")
            if histogram:
                histogram.record(elapsed_seconds, attributes=attributes)
            self._emit_span(f"stage {stage}", attributes)

    def record_run(self, build_id: str, outcome: str, failed_stage: str = "") -> None:
        """Count a finished run by outcome."""
        attributes = {"outcome": outcome}
        if failed_stage:
            attributes["failed_stage"] = failed_stage
        self._buffer("shipyard.run.completed", 1.0, "", {"build_id": build_id, **attributes})

        if self._initialized:
            counter = self._counter("shipyard.run.completed")
            if counter:
                counter.add(1, attributes=attributes)

    def _emit_span(self, name: str, attributes: dict[str, str]) -> None:
        try:
            from opentelemetry import trace

            tracer = trace.get_tracer(__name__)
            span = tracer.start_span(name, attributes=attributes)
            span.end()
        except Exception as e:
            logger.debug("Span %s not emitted: %s", name, e)

    async def handle_event(self, event: DomainEvent) -> None:
        if isinstance(event, StageFinishedEvent):
            self.record_stage(event.aggregate_id, event.stage, event.status, event.elapsed_seconds)
        elif isinstance(event, PipelineSucceededEvent):
            self.record_run(event.aggregate_id, "success")
        elif isinstance(event, PipelineFailedEvent):
            self.record_run(event.aggregate_id, "failure", event.failed_stage)

    def subscribe(self, event_bus: EventBusPort) -> None:
        for event_type in (StageFinishedEvent, PipelineSucceededEvent, PipelineFailedEvent):
            event_bus.subscribe(event_type, self.handle_event)

    async def export(self) -> None:
        """Flush buffered telemetry."""
        if not self._initialized:
            return

        # With the SDK initialized, metrics are exported by the
        # PeriodicExportingMetricReader; force a flush before exit.
        try:
            from opentelemetry import metrics, trace

            provider = metrics.get_meter_provider()
            if hasattr(provider, "force_flush"):
                provider.force_flush()
            tracer_provider = trace.get_tracer_provider()
            if hasattr(tracer_provider, "force_flush"):
                tracer_provider.force_flush()
        except Exception as e:
            logger.warning("Telemetry flush failed: %s", e)

        exported_count = len(self._metrics_buffer)
        self._metrics_buffer.clear()
        if exported_count:
            logger.debug("Flushed %d buffered metrics", exported_count)


async def create_exporter(
    endpoint: Optional[str] = None,
    service_name: str = "shipyard",
    insecure: bool = False,
) -> OTELExporter:
    """Factory function to create OTEL exporter."""
    config = OTELConfig(
        endpoint=endpoint or "",
        service_name=service_name,
        insecure=insecure,
    )
    exporter = OTELExporter(config)
    await exporter.initialize()
    return exporter
