"""
Centralized Logging Framework
Category-aware structured logging for agent turns, tool dispatch and workflows.
"""
import sys
import json
import time
import logging
import traceback
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum


ROOT_LOGGER_NAME = "agentcore"


class LogCategory(str, Enum):
    """Log categories for filtering and routing"""
    AGENT = "agent"
    TOOL = "tool"
    RETRIEVAL = "retrieval"
    MODEL = "model"
    PERSISTENCE = "persistence"
    WORKFLOW = "workflow"
    AUDIT = "audit"
    ERROR = "error"


# Record attributes copied into formatted output when present
CONTEXT_FIELDS = ("category", "duration_ms")


def _exception_summary(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    if not record.exc_info or record.exc_info[0] is None:
        return None
    exc_type, exc, tb = record.exc_info
    return {
        "type": exc_type.__name__,
        "message": str(exc),
        "traceback": "".join(traceback.format_exception(exc_type, exc, tb))
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for log shippers"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}"
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)
        if getattr(record, "extra_data", None):
            log_data["data"] = record.extra_data

        exception = _exception_summary(record)
        if exception:
            log_data["exception"] = exception

        return json.dumps(log_data, ensure_ascii=False, default=str)


class DevelopFormatter(logging.Formatter):
    """Single-line console output; extra data and tracebacks follow indented"""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        line = f"{timestamp} {record.levelname:<8} {record.name}: {record.getMessage()}"

        tags = [f"{name}={getattr(record, name)}" for name in CONTEXT_FIELDS if hasattr(record, name)]
        if tags:
            line = f"{line} ({' '.join(tags)})"

        if getattr(record, "extra_data", None):
            line = f"{line}\n    {json.dumps(record.extra_data, ensure_ascii=False, default=str)}"

        exception = _exception_summary(record)
        if exception:
            line = f"{line}\n{exception['traceback'].rstrip()}"

        return line


class AppLogger:
    """
    Category-aware wrapper around a standard library logger.

    Every instance logs below the ``agentcore`` namespace so a single
    ``setup_logging`` call controls the whole package.
    """

    def __init__(self, name: str = ROOT_LOGGER_NAME):
        if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        self.name = name
        self._logger = logging.getLogger(name)

    @staticmethod
    def _build_extra(
        category: Optional[LogCategory] = None,
        duration_ms: Optional[float] = None,
        extra_data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Build the ``extra`` mapping attached to the log record"""
        result: Dict[str, Any] = {}
        if category:
            result["category"] = category.value
        if duration_ms is not None:
            result["duration_ms"] = round(duration_ms, 2)
        if extra_data:
            result["extra_data"] = extra_data
        return result

    def debug(
        self,
        message: str,
        category: Optional[LogCategory] = None,
        extra_data: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Log debug message"""
        self._logger.debug(message, extra=self._build_extra(category, extra_data=extra_data), **kwargs)

    def info(
        self,
        message: str,
        category: Optional[LogCategory] = None,
        duration_ms: Optional[float] = None,
        extra_data: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Log info message"""
        self._logger.info(message, extra=self._build_extra(category, duration_ms, extra_data), **kwargs)

    def warning(
        self,
        message: str,
        category: Optional[LogCategory] = None,
        extra_data: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Log warning message"""
        self._logger.warning(message, extra=self._build_extra(category, extra_data=extra_data), **kwargs)

    def error(
        self,
        message: str,
        category: Optional[LogCategory] = None,
        extra_data: Optional[Dict[str, Any]] = None,
        exc_info: bool = False,
        **kwargs
    ):
        """Log error message"""
        extra = self._build_extra(category or LogCategory.ERROR, extra_data=extra_data)
        self._logger.error(message, extra=extra, exc_info=exc_info, **kwargs)


class Stopwatch:
    """Monotonic timer used for action and turn durations"""

    def __init__(self):
        self._start = time.perf_counter()

    @property
    def elapsed(self) -> float:
        """Elapsed seconds"""
        return time.perf_counter() - self._start

    @property
    def elapsed_ms(self) -> float:
        """Elapsed milliseconds"""
        return self.elapsed * 1000


def setup_logging(level: str = "INFO", json_format: bool = False) -> logging.Logger:
    """
    Configure the ``agentcore`` logger namespace.

    Args:
        level: Log level name
        json_format: Use JSON lines instead of the development formatter

    Returns:
        The configured package root logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Replace handlers installed by a previous call
    for handler in list(root.handlers):
        if getattr(handler, "_agentcore_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if json_format else DevelopFormatter())
    handler._agentcore_handler = True
    root.addHandler(handler)

    return root


def get_logger(name: str = ROOT_LOGGER_NAME) -> AppLogger:
    """Get an application logger"""
    return AppLogger(name)
