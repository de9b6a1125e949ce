"""Logging module for the gateway."""

from .recorder import log_error_event, set_error_files_enabled, wait_for_pending_logs
from .setup import LOGGER_NAME, logger, setup_logging

__all__ = [
    "LOGGER_NAME",
    "logger",
    "setup_logging",
    "log_error_event",
    "set_error_files_enabled",
    "wait_for_pending_logs",
]
