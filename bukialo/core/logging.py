"""Structured logging configuration for application and audit events."""

import json
import logging
import sys
from typing import Any
from uuid import UUID

from bukialo.core.config_file import Settings, get_settings

# Logger for operator changes to automations
audit_logger = logging.getLogger("bukialo.audit")

# Logger for application events
app_logger = logging.getLogger("bukialo")

HUMAN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(settings: Settings | None = None) -> None:
    """
    Attach a console handler to the application logger.

    Safe to call more than once; the handler is only added the first time.

    Args:
        settings: Settings to read LOG_LEVEL and LOG_FORMAT from (defaults to cached settings).
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    app_logger.setLevel(level)
    if app_logger.handlers:
        return

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    if settings.LOG_FORMAT == "json":
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(HUMAN_FORMAT, datefmt=DATE_FORMAT))
    app_logger.addHandler(console_handler)


def log_automation_change(
    user_id: UUID | str | None,
    action: str,
    automation_id: UUID | str,
    details: dict[str, Any] | None = None,
) -> None:
    """
    Log an operator change to an automation.

    Args:
        user_id: User who made the change (None for system changes).
        action: Action performed (create, update, delete, toggle, execute).
        automation_id: Automation affected.
        details: Additional details (optional).
    """
    message = f"Automation change - action={action}, automation_id={automation_id}, user_id={user_id}"
    if details:
        message += f", details={details}"

    audit_logger.info(message)
