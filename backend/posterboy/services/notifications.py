import logging
from enum import Enum as PyEnum
from typing import Protocol

logger = logging.getLogger(__name__)


class Severity(str, PyEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notifier(Protocol):
    def notify(self, title: str, message: str, severity: Severity) -> None: ...


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Default sink: notifications become log records."""

    def notify(self, title: str, message: str, severity: Severity) -> None:
        logger.log(_LOG_LEVELS[severity], "%s: %s", title, message)
