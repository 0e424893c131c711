"""Diagnostic logging setup.

Log records go to stderr so stdout carries nothing but measurement lines.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Iterable, Sequence

# Record attributes passed through ``extra=`` by the serial and scheduler code.
CONTEXT_KEYS = (
    "device",
    "interval",
    "cycle",
    "command",
    "received",
)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_configured = False


class ContextualFormatter(logging.Formatter):
    """Formatter that appends session context to each message.

    Any of ``extra_keys`` present on the record is rendered as ``key=value``
    after a ``|`` separator, e.g. ``Connecting... | device=/dev/rfcomm0``.
    Records without context are formatted as usual.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or CONTEXT_KEYS)

    def _context(self, record: logging.LogRecord) -> str:
        pairs = (
            (key, getattr(record, key, None))
            for key in self._extra_keys
        )
        return " ".join(f"{key}={value}" for key, value in pairs if value is not None)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = self._context(record)
        return f"{message} | {context}" if context else message


def configure_logging(level: str | int = "INFO", force: bool = False) -> None:
    """Send diagnostics to stderr with contextual formatting.

    Measurement lines are written to stdout separately and never pass through
    logging. Repeated calls are ignored unless ``force`` is set, which the CLI
    uses to apply ``--log-level``.
    """
    global _configured
    if _configured and not force:
        return

    formatter = {
        "()": ContextualFormatter,
        "fmt": LOG_FORMAT,
        "datefmt": DATE_FORMAT,
        "extra_keys": list(CONTEXT_KEYS),
    }
    stderr_handler = {
        "class": "logging.StreamHandler",
        "stream": "ext://sys.stderr",
        "level": level,
        "formatter": "contextual",
    }
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"contextual": formatter},
            "handlers": {"stderr": stderr_handler},
            "root": {"handlers": ["stderr"], "level": level},
        }
    )

    _configured = True
