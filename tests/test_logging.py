"""Tests for lincli.utils.logging module."""

import importlib
import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

import lincli.utils.logging as logging_mod


def _reload():
    logging_mod._logger = None
    logging_mod._logged_once_keys.clear()
    importlib.reload(logging_mod)


def _read_log(log_file):
    for handler in logging_mod._logger.handlers:
        handler.flush()
    return log_file.read_text()


@pytest.fixture(autouse=True)
def restore_logging_module():
    yield
    with patch.dict(os.environ, {}, clear=False):
        os.environ.pop("LIN_LOG", None)
        os.environ.pop("LIN_LOG_FILE", None)
        _reload()
        logging_mod.setup_logging()


@pytest.fixture
def enabled_log(tmp_path):
    log_file = tmp_path / "lin.log"
    with patch.dict(os.environ, {"LIN_LOG": "true", "LIN_LOG_FILE": str(log_file)}):
        _reload()
        logging_mod.setup_logging()
        yield log_file


class TestLogging:
    def test_log_disabled_by_default(self):
        with patch.dict(os.environ, {}, clear=True):
            _reload()

            assert logging_mod.LOG_ENABLED is False

    @pytest.mark.parametrize("value", ["true", "1", "YES"])
    def test_log_enabled_with_env_var(self, value):
        with patch.dict(os.environ, {"LIN_LOG": value}):
            _reload()

            assert logging_mod.LOG_ENABLED is True

    def test_log_file_default_path(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("LIN_LOG_FILE", None)
            _reload()

            assert logging_mod.LOG_FILE == Path.home() / ".lin.log"

    def test_setup_logging_disabled_uses_null_handler(self):
        with patch.dict(os.environ, {"LIN_LOG": "false"}):
            _reload()
            logger = logging_mod.setup_logging()

        assert logger.name == "lincli"
        assert logger.level == logging.WARNING
        assert all(isinstance(h, logging.NullHandler) for h in logger.handlers)

    def test_get_logger_returns_same_instance(self):
        _reload()

        assert logging_mod.get_logger() is logging_mod.get_logger()

    def test_log_message_when_enabled(self, enabled_log):
        logging_mod.log_message("Test message")

        assert "Test message" in _read_log(enabled_log)

    def test_log_message_when_disabled(self, tmp_path):
        log_file = tmp_path / "off.log"
        with patch.dict(os.environ, {"LIN_LOG": "false", "LIN_LOG_FILE": str(log_file)}):
            _reload()
            logging_mod.log_message("Test message")

        assert not log_file.exists()

    def test_module_loggers_propagate_to_file(self, enabled_log):
        logging.getLogger("lincli.cache").debug("Cached abc with TTL 60s")

        assert "lincli.cache: Cached abc with TTL 60s" in _read_log(enabled_log)

    def test_log_query(self, enabled_log):
        logging_mod.log_query("Teams", {"first": 100})
        logging_mod.log_query("Teams", {"first": 100}, cached=True)

        content = _read_log(enabled_log)
        assert "QUERY[API]: Teams VARIABLES: {'first': 100}" in content
        assert "QUERY[CACHE]: Teams" in content


class TestLogOnce:
    def test_logs_once_per_key(self, enabled_log):
        logging_mod.log_once("legacy-config", "Using legacy config path")
        logging_mod.log_once("legacy-config", "Using legacy config path")

        assert _read_log(enabled_log).count("Using legacy config path") == 1

    def test_different_keys(self, enabled_log):
        logging_mod.log_once("a", "first")
        logging_mod.log_once("b", "second")

        content = _read_log(enabled_log)
        assert "first" in content
        assert "second" in content
