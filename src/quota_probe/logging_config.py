"""
Centralized logging configuration for quota-probe.

Library modules only ever call ``logging.getLogger(__name__)``; nothing is
emitted until an application (the CLI, or an embedding host) calls
``setup_logging``. The setup installs:
- Console output on stderr (WARNING in user-friendly mode, INFO otherwise,
  DEBUG when debug is enabled)
- Optional file output, truncated on each start unless append is requested
"""

import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Optional

from quota_probe.config import env_bool

_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)
_TECHNICAL_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as exc:  # Best-effort cleanup operation
            _MODULE_LOGGER.debug("Handler close failed for logger '%s': %s", logger.name, exc)
    logger.handlers = []


def _build_console_handler(user_friendly: bool, debug: bool) -> logging.Handler:
    if user_friendly:
        formatter = logging.Formatter("%(message)s")
    else:
        formatter = logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    if debug:
        console_handler.setLevel(logging.DEBUG)
    elif user_friendly:
        console_handler.setLevel(logging.WARNING)
    else:
        console_handler.setLevel(logging.INFO)

    return console_handler


def _configure_file_handler(log_file: Optional[str]) -> Optional[logging.Handler]:
    if not log_file:
        return None

    log_path = Path(log_file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_mode = "a" if env_bool("QUOTA_PROBE_LOG_APPEND", or_value=False) else "w"

    handler_cls = getattr(logging.handlers, "WatchedFileHandler", logging.FileHandler)
    file_handler = handler_cls(log_path, mode=file_mode)
    file_handler.setFormatter(logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT))
    file_handler.setLevel(logging.DEBUG)
    return file_handler


def _suppress_noisy_third_parties() -> None:
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.client").setLevel(logging.WARNING)


def setup_logging(
    user_friendly: bool = False,
    *,
    debug: Optional[bool] = None,
    log_file: Optional[str] = None,
) -> None:
    """Configure the root logger for console (and optionally file) output."""

    from quota_probe.config import get_probe_settings

    with _config_lock:
        settings = get_probe_settings()
        effective_debug = settings.debug if debug is None else debug
        effective_log_file = log_file if log_file is not None else settings.log_file

        root_logger = logging.getLogger()
        _close_handlers(root_logger)

        root_logger.addHandler(_build_console_handler(user_friendly, effective_debug))

        file_handler = _configure_file_handler(effective_log_file)
        if file_handler:
            root_logger.addHandler(file_handler)

        root_logger.setLevel(logging.DEBUG if effective_debug or file_handler else logging.INFO)
        _suppress_noisy_third_parties()


__all__ = ["setup_logging"]
