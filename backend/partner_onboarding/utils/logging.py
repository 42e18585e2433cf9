"""
Structured JSON logging. Every record carries the current request id (set by
RequestIDMiddleware) so service-level log lines can be joined to the request
that caused them.
"""
import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Extras copied from `extra=` into the JSON payload when present
CONTEXT_FIELDS = (
    "request_id",
    "partner_id",
    "stage",
    "from_stage",
    "to_stage",
    "approval_id",
    "actor",
    "status",
    "duration_ms",
    "error_code",
    "path",
    "method",
)


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            request_id = request_id_var.get()
            if request_id is not None:
                record.request_id = request_id
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # UUIDs, datetimes and enums fall back to str()
        return json.dumps(payload, default=str)


def configure_logging(level: int = logging.INFO) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestContextFilter())
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    # The request id middleware already logs one line per request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
