import json
import logging
import sys

from .config import Config


PLAIN_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

# Chatty libraries that only get through at WARNING or above
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


class JsonFormatter(logging.Formatter):
    """Emits each record as a single JSON line for log collectors."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "where": f"{record.module}:{record.lineno}",
            "msg": record.getMessage(),
        }

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _build_formatter(environment: str) -> logging.Formatter:
    if environment == "local":
        return logging.Formatter(PLAIN_FORMAT)
    return JsonFormatter()


def configure_logging() -> None:
    """
    Route every storefront logger to stdout.

    Readable lines in local development, JSON everywhere else. Safe to call
    more than once; the root logger keeps a single handler.
    """
    level = logging.getLevelName(Config.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter(Config.ENVIRONMENT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
