"""Process logger writing to standard output."""

from __future__ import annotations

import json
import logging
import sys

from wavecommon.abstractions import Closable

PANIC = 45

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": PANIC,
}

_HCLOG_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
}


def level_from_string(level: str) -> int:
    """Map a level name to a logging level; unknown names give INFO."""
    return _LEVELS.get(level, logging.INFO)


def hclog_level(level: int) -> str:
    """The hclog level name for a logging level; others give ``info``."""
    return _HCLOG_NAMES.get(level, "info")


def _short_name(levelno: int) -> str:
    if levelno >= logging.CRITICAL:
        return "fatal"
    if levelno >= PANIC:
        return "panic"
    return _HCLOG_NAMES.get(levelno, logging.getLevelName(levelno).lower())


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "level": _short_name(record.levelno),
            "ts": record.created,
            "caller": f"{record.filename}:{record.lineno}",
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class _ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{self.formatTime(record)}\t{_short_name(record.levelno).upper()}\t"
            f"{record.filename}:{record.lineno}\t{record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class Logger(Closable):
    """A standard-output logger: readable when local, JSON otherwise."""

    def __init__(self, local: bool, level: str) -> None:
        self.level = level_from_string(level)
        self._log = logging.Logger("wavecommon", level=self.level)
        self._log.propagate = False
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_ConsoleFormatter() if local else _JsonFormatter())
        self._log.addHandler(handler)

    @property
    def log(self) -> logging.Logger:
        """The underlying logger."""
        return self._log

    def close(self) -> None:
        """Flush and detach all handlers."""
        for handler in list(self._log.handlers):
            handler.flush()
            handler.close()
            self._log.removeHandler(handler)

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()