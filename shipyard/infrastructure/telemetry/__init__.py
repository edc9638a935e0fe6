"""
Shipyard Telemetry Infrastructure

Architectural Intent:
- OpenTelemetry integration for pipeline observability
"""

from shipyard.infrastructure.telemetry.otel_exporter import (
    OTELExporter,
    OTELConfig,
    create_exporter,
)

__all__ = [
    "OTELExporter",
    "OTELConfig",
    "create_exporter",
]
