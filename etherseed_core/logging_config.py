"""
Root logger setup for the wallet runner.

Console output is either ``human`` (one coloured line per record) or
``json`` (one object per line).  An optional log file is always JSON.
Serialised extended private keys are masked before any handler sees them.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

_QUIET_LOGGERS = ("aiohttp.access", "aiohttp.client", "asyncio")

_LEVEL_COLOURS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1;31m",
}
_RESET = "\033[0m"

_XPRV_RE = re.compile(r"xprv[1-9A-HJ-NP-Za-km-z]{100,}")


class _RedactXprv(logging.Filter):
    """Replace ``xprv...`` strings in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        if "xprv" in msg:
            record.msg = _XPRV_RE.sub("xprv<redacted>", msg)
            record.args = None
        return True


class _JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class _HumanFormatter(logging.Formatter):
    """``HH:MM:SS [LEVEL  ] logger: message``, coloured on a terminal."""

    def __init__(self, colour: bool = True):
        super().__init__()
        self.colour = colour

    def format(self, record: logging.LogRecord) -> str:
        start = _LEVEL_COLOURS.get(record.levelname, "") if self.colour else ""
        end = _RESET if self.colour else ""
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        text = f"{start}{clock} [{record.levelname:<7}]{end} {record.name}: {record.getMessage()}"
        if record.exc_info and record.exc_info[1]:
            text += "\n" + self.formatException(record.exc_info)
        return text


def _console_handler(fmt: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(_JSONFormatter())
    else:
        handler.setFormatter(_HumanFormatter(colour=sys.stderr.isatty()))
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(str(path))
    handler.setFormatter(_JSONFormatter())
    return handler


def setup_logging(
    level: str = "INFO",
    fmt: str = "human",
    log_file: Optional[str] = None,
) -> None:
    """
    Replace the root logger's handlers.

    Unknown *level* names fall back to INFO.  aiohttp and asyncio stay at
    WARNING unless *level* is DEBUG.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric)
    root.handlers.clear()

    handlers = [_console_handler(fmt)]
    if log_file:
        handlers.append(_file_handler(log_file))
    for handler in handlers:
        handler.addFilter(_RedactXprv())
        root.addHandler(handler)

    quiet_level = logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
