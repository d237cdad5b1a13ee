"""Structured logging setup with per-request correlation ids."""
import logging, sys, json
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterable, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_RESERVED = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

# Chatty client libraries; their INFO lines duplicate ours
NOISY_LOGGERS = ("httpx", "httpcore", "redis", "uvicorn.access")


class RequestIdFilter(logging.Filter):
    """Stamps records emitted inside a request with that request's id."""

    def filter(self, record):
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record):
        base = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RESERVED or value is None:
                continue
            base[key] = value
        return json.dumps(base, default=str)


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    log_file: Optional[str] = None,
    plain_format: str = "%(asctime)s %(levelname)s %(name)s %(message)s",
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Install a single handler on the root logger.

    Does nothing when the root logger already has handlers, so repeated
    imports of the application module and test runners keep their own setup.

    Args:
        level: Root log level name
        json_output: JSON lines when True, plain_format otherwise
        log_file: Write to this file instead of stdout
        plain_format: Format string used when json_output is False
        quiet: Logger names raised to WARNING
    """
    root = logging.getLogger()
    if root.handlers:
        return
    root.setLevel(level)

    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(plain_format))
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
