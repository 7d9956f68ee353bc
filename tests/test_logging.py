"""
Tests for logging setup.
"""

import json
import logging
import logging.handlers

from linestream.utils.logging import JSONFormatter, get_logger, setup_logging


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord(
        "linestream.test", logging.INFO, __file__, 10, "hello %s", ("world",), None
    )
    record.chunk_index = 3
    record.handle = object()

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "hello world"
    assert data["level"] == "INFO"
    assert data["logger"] == "linestream.test"
    assert data["chunk_index"] == 3
    assert isinstance(data["handle"], str)


def test_setup_logging_writes_rotating_files(tmp_path, restore_root_logging):
    result = setup_logging(app_name="linestream-test", log_level="DEBUG", log_dir=tmp_path)

    assert set(result["loggers"]) == {"main"}
    assert result["config"]["log_level"] == "DEBUG"

    get_logger("linestream.test").error("something_failed", reason="test")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "something_failed" in (tmp_path / "linestream-test.log").read_text()
    assert "something_failed" in (tmp_path / "linestream-test-errors.log").read_text()


def test_setup_logging_without_directory(restore_root_logging):
    result = setup_logging(log_level="warning", enable_json=False)

    root = logging.getLogger()
    assert result["log_dir"] is None
    assert root.level == logging.WARNING
    assert not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
