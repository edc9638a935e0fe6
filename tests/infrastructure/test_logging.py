"""Tests for centralized logging."""

import json
import logging

from shipyard.domain.value_objects.build_id import BuildId
from shipyard.infrastructure.logging import (
    JSONFormatter,
    PipelineFormatter,
    configure_logging,
    level_from_name,
)


class TestJSONFormatter:
    def test_format(self):
        record = logging.LogRecord(
            "shipyard.test", logging.INFO, __file__, 1, "stage %s passed", ("build",), None
        )
        entry = json.loads(JSONFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "shipyard.test"
        assert entry["message"] == "stage build passed"
        assert "timestamp" in entry

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys
            record = logging.LogRecord(
                "shipyard", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]

    def test_run_context_included(self):
        record = logging.LogRecord(
            "shipyard.orchestration", logging.INFO, __file__, 1, "stage done", (), None
        )
        record.build_id = BuildId(42)
        record.stage = "push-image"
        entry = json.loads(JSONFormatter().format(record))

        assert entry["build_id"] == "42"
        assert entry["stage"] == "push-image"
        assert "phase" not in entry


class TestPipelineFormatter:
    def test_tags_build_and_stage(self):
        record = logging.LogRecord(
            "shipyard.orchestration", logging.WARNING, __file__, 1, "timed out", (), None
        )
        record.build_id = BuildId(7)
        record.stage = "deploy-to-cluster"

        line = PipelineFormatter().format(record)

        assert "shipyard.orchestration (#7 deploy-to-cluster): timed out" in line

    def test_plain_record_untagged(self):
        record = logging.LogRecord("shipyard", logging.INFO, __file__, 1, "ready", (), None)
        assert PipelineFormatter().format(record).endswith("[INFO] shipyard: ready")


class TestConfigureLogging:
    def test_sets_level_and_single_handler(self):
        configure_logging(level=logging.DEBUG)
        configure_logging(level=logging.INFO)

        root = logging.getLogger("shipyard")
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, PipelineFormatter)

    def test_json_format(self):
        configure_logging(level=logging.INFO, json_format=True)
        handler = logging.getLogger("shipyard").handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)


class TestLevelFromName:
    def test_known(self):
        assert level_from_name("debug") == logging.DEBUG

    def test_unknown_falls_back(self):
        assert level_from_name("chatty") == logging.WARNING
        assert level_from_name("", logging.ERROR) == logging.ERROR
