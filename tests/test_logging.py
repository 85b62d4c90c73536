"""
Unit tests for logging configuration.
"""

import asyncio
import json
import logging
import tempfile
from pathlib import Path

import pytest

from funnelsort.utils.logging_config import (
    JSONFormatter,
    LoggingConfig,
    Timer,
    get_correlation_id,
    get_logger,
    new_correlation_id,
    set_correlation_id,
    setup_logging,
)


def make_record(msg="hello", **extra):
    record = logging.LogRecord("funnelsort.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationId:
    """Tests for correlation ID helpers."""

    def test_set_and_get(self):
        set_correlation_id("abc12345")
        assert get_correlation_id() == "abc12345"

    def test_new_id(self):
        first = new_correlation_id()
        second = new_correlation_id()

        assert first != second
        assert get_correlation_id() == second
        assert len(second) == 8

    @pytest.mark.asyncio
    async def test_tasks_keep_their_own_id(self):
        async def task():
            own = new_correlation_id()
            await asyncio.sleep(0.01)
            return own, get_correlation_id()

        results = await asyncio.gather(*(task() for _ in range(5)))

        for own, seen in results:
            assert own == seen
        assert len({own for own, _ in results}) == 5


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_fields(self):
        set_correlation_id("cid00001")
        data = json.loads(JSONFormatter().format(make_record(folder="05_Raw_Media", stage="Fallback")))

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["logger"] == "funnelsort.test"
        assert data["correlation_id"] == "cid00001"
        assert data["folder"] == "05_Raw_Media"
        assert data["stage"] == "Fallback"


class TestSetupLogging:
    """Tests for setup_logging and get_logger."""

    def test_get_logger_hierarchy(self):
        assert get_logger("funnelsort.orchestrator").name == "funnelsort.orchestrator"
        assert get_logger("tools").name == "funnelsort.tools"

    def test_file_output(self):
        with tempfile.TemporaryDirectory() as d:
            config = LoggingConfig(level="DEBUG", log_dir=Path(d), console_output=False, file_output=True)
            setup_logging(config)
            try:
                get_logger("funnelsort.test").info("written to file")
                for handler in logging.getLogger("funnelsort").handlers:
                    handler.flush()

                lines = (Path(d) / "funnelsort.log").read_text(encoding="utf-8").splitlines()
                assert json.loads(lines[-1])["message"] == "written to file"
            finally:
                root = logging.getLogger("funnelsort")
                for handler in root.handlers:
                    handler.close()
                root.handlers.clear()

    def test_from_dict(self):
        config = LoggingConfig.from_dict({"level": "WARNING", "json_format": True})

        assert config.level == "WARNING"
        assert config.json_format is True
        assert config.file_output is False


class TestTimer:
    """Tests for Timer."""

    def test_elapsed(self):
        with Timer(get_logger("funnelsort.test"), "nap") as timer:
            pass

        assert timer.elapsed >= 0
