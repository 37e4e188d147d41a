import logging
import logging.handlers

import pytest

from quota_probe.logging_config import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        handler.close()
    root.handlers = handlers
    root.setLevel(level)


def _console_handlers(root):
    return [h for h in root.handlers if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)]


def test_user_friendly_console_shows_warnings_only(restore_root_logger):
    setup_logging(user_friendly=True)

    consoles = _console_handlers(restore_root_logger)
    assert len(consoles) == 1
    assert consoles[0].level == logging.WARNING
    assert restore_root_logger.level == logging.INFO


def test_debug_lowers_console_level(restore_root_logger):
    setup_logging(debug=True)

    assert _console_handlers(restore_root_logger)[0].level == logging.DEBUG
    assert restore_root_logger.level == logging.DEBUG


def test_repeated_setup_replaces_handlers(restore_root_logger):
    setup_logging()
    setup_logging()

    assert len(restore_root_logger.handlers) == 1


def test_log_file_receives_debug_output(restore_root_logger, tmp_path):
    log_file = tmp_path / "logs" / "probe.log"

    setup_logging(log_file=str(log_file))
    logging.getLogger("quota_probe.test").debug("written to file")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert "written to file" in log_file.read_text()
    file_handlers = [h for h in restore_root_logger.handlers if isinstance(h, logging.FileHandler)]
    assert file_handlers[0].level == logging.DEBUG


def test_log_file_is_truncated_unless_append_requested(restore_root_logger, tmp_path, monkeypatch):
    log_file = tmp_path / "probe.log"
    log_file.write_text("previous run\n")

    setup_logging(log_file=str(log_file))
    assert "previous run" not in log_file.read_text()

    log_file.write_text("previous run\n")
    monkeypatch.setenv("QUOTA_PROBE_LOG_APPEND", "1")
    setup_logging(log_file=str(log_file))
    assert "previous run" in log_file.read_text()


def test_settings_supply_defaults(restore_root_logger, monkeypatch):
    monkeypatch.setenv("QUOTA_PROBE_DEBUG", "true")

    setup_logging()

    assert _console_handlers(restore_root_logger)[0].level == logging.DEBUG
    assert logging.getLogger("aiohttp").level == logging.WARNING
