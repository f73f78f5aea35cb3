from __future__ import annotations

import json
import logging
import re
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Optional

# request-scoped fields every log line carries
_LOG_CONTEXT: ContextVar[Dict[str, Optional[str]]] = ContextVar("log_context", default={})

_CONTEXT_FIELDS = ("request_id", "property_id", "user_id")

_SENSITIVE_PATTERNS = [
    re.compile(r"(authorization\s*[:=]\s*bearer\s+)([^\s\"]+)", re.IGNORECASE),
    re.compile(r"(token\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(password\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(secret\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
]


def bind_log_context(**fields: Optional[str]) -> None:
    """Merge non-empty request fields into the current log context."""
    current = dict(_LOG_CONTEXT.get())
    current.update({key: value for key, value in fields.items() if key in _CONTEXT_FIELDS and value is not None})
    _LOG_CONTEXT.set(current)


def reset_log_context() -> None:
    _LOG_CONTEXT.set({})


def log_context() -> Dict[str, Optional[str]]:
    return dict(_LOG_CONTEXT.get())


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        context = _LOG_CONTEXT.get()
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": self._mask(record.getMessage()),
            "duration_ms": getattr(record, "duration_ms", None),
        }
        for field in _CONTEXT_FIELDS:
            payload[field] = getattr(record, field, None) or context.get(field)
        for field in ("endpoint", "method", "status_code"):
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self._mask(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False, default=str)

    def _mask(self, value: str) -> str:
        masked = value
        for pattern in _SENSITIVE_PATTERNS:
            masked = pattern.sub(r"\1***", masked)
        return masked


def configure_logging(level: str = "INFO") -> None:
    level = (level or "INFO").upper()
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(level)
