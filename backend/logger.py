"""Structured logging configuration for the Touchline Football Analyst."""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

# Attributes passed through ``extra=`` that are copied into the JSON payload
PIPELINE_FIELDS = ("conversation_id", "stage", "strategy", "error_code", "error_details")


class JSONFormatter(logging.Formatter):
    """JSON formatter that keeps pipeline context attached to each record."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in PIPELINE_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO") -> None:
    """Replace root handlers with a single structured JSON handler."""
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.setLevel(getattr(logging, log_level))
    root_logger.addHandler(handler)
