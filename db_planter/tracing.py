"""
Diagnostic trace channel.

Tracing is switched on by the ``DB_PLANTER_DEBUG`` environment variable and
writes one line per call to ``DB_PLANTER_TRACE_FILE`` (default
``/tmp/db_planter.log``). With the variable unset ``trace`` returns after a
single check.
"""

import logging
import os

from .constants import TRACE_ENV_VAR, TRACE_FILE_ENV_VAR, DEFAULT_TRACE_FILE


TRACE_ENABLED = bool(os.environ.get(TRACE_ENV_VAR))

_trace_logger = logging.getLogger("db_planter.trace")
_trace_logger.propagate = False
_handler_installed = False


def _install_handler() -> None:
    global _handler_installed
    path = os.environ.get(TRACE_FILE_ENV_VAR, DEFAULT_TRACE_FILE)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    _trace_logger.addHandler(handler)
    _trace_logger.setLevel(logging.DEBUG)
    _handler_installed = True


def trace(message: str) -> None:
    """Append a line to the trace file when tracing is enabled."""
    if not TRACE_ENABLED:
        return
    if not _handler_installed:
        _install_handler()
    _trace_logger.debug(message)
