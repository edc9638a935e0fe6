"""
Centralized Logging

Architectural Intent:
- Provides structured JSON logging for all Shipyard components
- Centralizes log configuration to avoid scattered print() calls
- Supports configurable log levels via CLI flags (--verbose, --debug)
- Pipeline code attaches the run it is working on through `extra`
  (build_id, stage, phase); both formatters render whatever is present
"""

import json
import logging
import sys
from datetime import datetime, UTC
from typing import Any

RUN_CONTEXT_FIELDS = ("build_id", "stage", "phase")


def run_context(record: logging.LogRecord) -> dict[str, Any]:
    context = {}
    for name in RUN_CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value is None:
            continue
        context[name] = value if isinstance(value, (int, float, str)) else str(value)
    return context


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(run_context(record))
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


class PipelineFormatter(logging.Formatter):
    """Human-readable formatter that tags lines with the build and stage."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s [%(levelname)s] %(name)s%(run_tag)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        context = run_context(record)
        parts = []
        if "build_id" in context:
            parts.append(f"#{context['build_id']}")
        parts.extend(str(context[name]) for name in ("stage", "phase") if name in context)
        record.run_tag = f" ({' '.join(parts)})" if parts else ""
        return super().format(record)


def level_from_name(name: str, default: int = logging.WARNING) -> int:
    level = logging.getLevelName(name.upper()) if name else default
    return level if isinstance(level, int) else default


def configure_logging(
    level: int = logging.INFO,
    json_format: bool = False,
) -> None:
    """Configure logging for the Shipyard application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, etc.)
        json_format: If True, use JSON structured output. Otherwise human-readable.
    """
    root = logging.getLogger("shipyard")
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_format else PipelineFormatter())

    root.addHandler(handler)
