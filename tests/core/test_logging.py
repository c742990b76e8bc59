"""Tests for roster.core.logging — structlog configuration and context binding."""

import json

import pytest
import structlog

from roster.core.logging import (
    LogContext,
    ServiceStamp,
    build_processors,
    configure_logging,
    get_logger,
)


class TestConfigureLogging:
    def test_json_output(self, capsys):
        configure_logging(level="INFO", json_format=True, service="roster-test")
        get_logger("roster.tests").info("collection_loaded", source="cache", count=2)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "collection_loaded"
        assert event["source"] == "cache"
        assert event["count"] == 2
        assert event["service"] == "roster-test"
        assert event["level"] == "info"
        assert event["logger"] == "roster.tests"
        assert "timestamp" in event

    def test_level_filtering(self, capsys):
        configure_logging(level="WARNING", json_format=True)
        logger = get_logger("roster.tests")
        logger.info("hidden")
        logger.warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_module_logger_created_before_configure(self, capsys):
        import roster.engine.reconciler as reconciler

        configure_logging(level="INFO", json_format=True)
        reconciler.logger.info("load_started")

        event = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert event["logger"] == "roster.engine.reconciler"
        assert "logger_name" not in event

    def test_unnamed_logger_has_no_logger_field(self, capsys):
        configure_logging(level="INFO", json_format=True)
        get_logger().info("anonymous")

        event = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert "logger" not in event


class TestLogContext:
    def test_binds_and_unbinds(self):
        structlog.contextvars.clear_contextvars()
        with LogContext(operation="update", record_id=3):
            assert structlog.contextvars.get_contextvars() == {"operation": "update", "record_id": 3}
        assert structlog.contextvars.get_contextvars() == {}

    def test_nested_context_restores_outer_values(self):
        structlog.contextvars.clear_contextvars()
        with LogContext(operation="create"):
            with LogContext(operation="delete", record_id=4):
                assert structlog.contextvars.get_contextvars()["operation"] == "delete"
            assert structlog.contextvars.get_contextvars() == {"operation": "create"}

    @pytest.mark.asyncio
    async def test_async_form(self):
        structlog.contextvars.clear_contextvars()
        async with LogContext(operation="load"):
            assert structlog.contextvars.get_contextvars() == {"operation": "load"}
        assert structlog.contextvars.get_contextvars() == {}


class TestLevels:
    def test_unknown_level(self):
        with pytest.raises(ValueError, match="unknown log level"):
            configure_logging(level="chatty")

    def test_console_renderer_without_json(self):
        processors = build_processors(json_format=False, service="svc")
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert any(isinstance(p, ServiceStamp) and p.service == "svc" for p in processors)
