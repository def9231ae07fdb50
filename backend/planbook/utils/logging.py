"""
Structured logging for the planning book.

Every record is stamped with the id of the HTTP request that produced it, so a
batch save, the history rows it wrote and the alerts it raised can be traced
back to one call. Outside a request the id is ``"-"``.
"""
import json
import logging
import logging.config
from contextvars import ContextVar, Token
from datetime import datetime, timezone

NO_REQUEST = "-"

_request_id: ContextVar[str] = ContextVar("planbook_request_id", default=NO_REQUEST)


def bind_request_id(request_id: str) -> Token:
    return _request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    _request_id.reset(token)


def current_request_id() -> str:
    return _request_id.get()


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = current_request_id()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` keys and ``request_id`` become top-level fields."""

    RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.WARNING:
            payload["location"] = f"{record.module}:{record.funcName}:{record.lineno}"

        payload.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in self.RESERVED and not key.startswith("_")
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    level = log_level.upper()
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_context": {"()": "planbook.utils.logging.RequestContextFilter"},
        },
        "formatters": {
            "standard": {"format": "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"},
            "json": {"()": "planbook.utils.logging.JsonFormatter"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "json" if log_format.lower() == "json" else "standard",
                "filters": ["request_context"],
                "level": level,
            },
        },
        "loggers": {
            "sqlalchemy.engine": {"level": "WARNING"},
            "uvicorn.access": {"level": "WARNING"},
            "planbook": {"level": level},
        },
        "root": {"handlers": ["default"], "level": level},
    })
