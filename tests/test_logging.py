"""Tests for logging configuration."""

import json
import logging
import sys

import pytest

from financehub.utils.logging import JsonFormatter, configure_logging, parse_level_overrides


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name in ("sfh.ai", "sfh.console"):
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestLevelOverrides:

    def test_parses_pairs_and_skips_garbage(self):
        assert parse_level_overrides("sfh.ai=debug, werkzeug=INFO,broken,x=LOUD") == {
            "sfh.ai": "DEBUG",
            "werkzeug": "INFO",
        }

    def test_empty(self):
        assert parse_level_overrides(None) == {}


class TestConfigureLogging:

    def test_file_output_with_json_format(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LOG_LEVELS", raising=False)
        log_file = tmp_path / "logs" / "app.log"
        configure_logging(level="info", output="file", file_path=str(log_file), log_format="json")
        logging.getLogger("sfh.test").info('quoted "value"')
        for handler in logging.getLogger().handlers:
            handler.flush()
        record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert record["message"] == 'quoted "value"'
        assert record["name"] == "sfh.test"

    def test_env_and_explicit_overrides(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVELS", "sfh.ai=DEBUG")
        configure_logging(level="WARNING", output="stdout", levels={"sfh.console": "ERROR"})
        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("sfh.ai").level == logging.DEBUG
        assert logging.getLogger("sfh.console").level == logging.ERROR
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_json_formatter_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.getLogger("sfh.test").makeRecord(
                "sfh.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )
        data = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in data["exc"]
