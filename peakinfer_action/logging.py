"""Logging utilities for the PeakInfer action."""

from __future__ import annotations

import logging
import sys

_LOGGER_NAME = "peakinfer_action"

_WORKFLOW_COMMANDS = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def escape_workflow_command(value: str) -> str:
    """Escape a message for a GitHub workflow command line."""
    return str(value).replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommandFormatter(logging.Formatter):
    """Render records as `::warning::msg` style commands the runner understands."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = _WORKFLOW_COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{escape_workflow_command(message)}"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the peakinfer_action hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(*, debug: bool = False) -> logging.Logger:
    """Configure the package logger to write workflow commands to stdout."""
    level = logging.DEBUG if debug else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(WorkflowCommandFormatter("%(message)s"))
    logger.addHandler(stream_handler)

    return logger


__all__ = ["WorkflowCommandFormatter", "configure_logging", "escape_workflow_command", "get_logger"]
