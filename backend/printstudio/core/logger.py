"""JSON logging for render batches and catalog syncs.

Every record is one JSON object on stderr. Records written through a
`TaskLogger` also carry the batch's `trace_id`, so the dispatch, per-variant
outcome and upload lines of one artwork can be grepped together; keyword
arguments land as top-level fields next to the standard ones.
"""

import json
import logging
import os
import sys
import uuid
from datetime import datetime, timezone

LOGGER_NAME = "printstudio"

# keys the formatter owns; props never overwrite them
_RESERVED = frozenset({"timestamp", "level", "message", "module", "func", "line", "trace_id", "exception"})


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "trace_id"):
            log_record["trace_id"] = record.trace_id

        for key, value in (getattr(record, "props", None) or {}).items():
            log_record[f"props.{key}" if key in _RESERVED else key] = value

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


def setup_logger(name: str = LOGGER_NAME):
    logger = logging.getLogger(name)
    level_name = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not logger.handlers:
        # stderr, same stream uvicorn writes its access log to
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

    return logger


logger = setup_logger()


class TaskLogger:
    """Logger for one render batch or catalog sync.

    `trace_id` ties together everything logged for the batch; pass the sync
    job's id down to `render_variants` so a product's render lines share it.
    `bind()` returns a child carrying fixed fields (artwork or product id)
    that are added to every record; per-call keywords win on a clash.
    """

    def __init__(self, trace_id: str = None, **context):
        self.trace_id = trace_id or str(uuid.uuid4())
        self.context = context
        self.logger = logger

    def bind(self, **context) -> "TaskLogger":
        return TaskLogger(self.trace_id, **{**self.context, **context})

    def _extra(self, kwargs):
        return {"trace_id": self.trace_id, "props": {**self.context, **kwargs}}

    def info(self, message: str, **kwargs):
        self.logger.info(message, extra=self._extra(kwargs))

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, extra=self._extra(kwargs))

    def error(self, message: str, **kwargs):
        self.logger.error(message, extra=self._extra(kwargs))
