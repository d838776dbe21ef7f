"""Central logging configuration for the media records service.

Applies a root stdout handler so every module logger emits without
per-module setup. Events are logged as dotted names (`store.put`,
`media.patch.applied`) with structured fields passed via `extra=`; the
formatter appends those fields as `key=value` pairs.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict

# Attributes every LogRecord carries; anything else came in through `extra=`
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class EventFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {k: v for k, v in vars(record).items() if k not in _RESERVED and not k.startswith("_")}
        if not fields:
            return line
        return line + " " + " ".join(f"{k}={v!r}" for k, v in sorted(fields.items()))


def _dict_config(level: str) -> Dict[str, Any]:
    console = {"level": level, "handlers": ["console"], "propagate": False}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "event": {
                "()": EventFormatter,
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "event",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {name: dict(console) for name in ("uvicorn", "uvicorn.error", "uvicorn.access")},
    }


def configure_logging(level: str = "INFO") -> None:
    """Configure application-wide logging once.

    If the root logger already has handlers only its level is adjusted, so
    reloaders and test runners do not get duplicate output.
    """
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    dictConfig(_dict_config(level))


__all__ = ["EventFormatter", "configure_logging"]
