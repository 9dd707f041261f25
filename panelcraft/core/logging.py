import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from panelcraft.core.request_context import (
    get_character_id,
    get_panel_id,
    get_request_id,
)
from panelcraft.core.settings import settings


class ContextFilter(logging.Filter):
    """Populate log records with the request/panel/character being processed."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "unknown"
        record.panel_id = get_panel_id() or ""
        record.character_id = get_character_id() or ""
        return True


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per record: level, logger, message and context ids.

    Event details travel inside the ``key=value`` message, so record extras
    are not copied into the payload.
    """

    _CONTEXT_FIELDS = ("panel_id", "character_id")

    def format(self, record: logging.LogRecord) -> str:
        log_payload: dict[str, str] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "unknown"),
        }
        for field in self._CONTEXT_FIELDS:
            value = getattr(record, field, "")
            if value:
                log_payload[field] = value
        if record.exc_info:
            log_payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_payload, default=str)


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Install the structured formatter on the root logger.

    Existing root handlers are replaced so repeated calls do not duplicate output.
    """
    level_name = (level or settings.log_level).upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    formatter = StructuredJsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S%z")

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.addFilter(ContextFilter())
    root_logger.addHandler(stream_handler)

    log_file = log_file or settings.log_file
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(ContextFilter())
        root_logger.addHandler(file_handler)
