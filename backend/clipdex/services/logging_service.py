"""Structured logging service."""

import json
import logging
import traceback
from datetime import datetime
from typing import Any, Dict

from clipdex.config import settings


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage()
        }
        entry.update(getattr(record, "context", {}))

        if record.exc_info:
            entry["traceback"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(entry, default=str)


class StructuredLogger:
    """
    JSON logger for the API.

    Keyword arguments become top-level fields of the record::

        logger.info("Clip uploaded", clip_id=clip.id, video_id=video_id)
    """

    def __init__(self, name: str, level: str = "INFO"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.propagate = False

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)

    def _log(self, level: int, message: str, context: Dict[str, Any], exc_info: bool = False):
        self.logger.log(level, message, exc_info=exc_info, extra={"context": context})

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        """Log an error; ``exc_info=True`` attaches the active traceback."""
        self._log(logging.ERROR, message, kwargs, exc_info=exc_info)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, kwargs)


# Global instance
logger = StructuredLogger("clipdex", level=settings.LOG_LEVEL)
