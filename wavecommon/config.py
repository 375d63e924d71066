"""Service configuration loaded from environment variables."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from datetime import timedelta
from typing import Any, Mapping, TypeVar

from dotenv import load_dotenv

_C = TypeVar("_C")

_UNITS_US = {
    "ns": 0.001,
    "us": 1.0,
    "µs": 1.0,
    "μs": 1.0,
    "ms": 1000.0,
    "s": 1_000_000.0,
    "m": 60_000_000.0,
    "h": 3_600_000_000.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

_BOOLS = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``15s``, ``1h30m`` or ``-1.5h``."""
    rest = text
    sign = 1
    if rest and rest[0] in "+-":
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")
    total = 0.0
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _UNITS_US[match.group(2)]
        pos = match.end()
    return timedelta(microseconds=sign * total)


def _env(name: str, default: Any) -> Any:
    return field(default=default, metadata={"env": name})


@dataclass
class GatewayConfig:
    local: bool = _env("LOCAL", True)
    log_level: str = _env("LOG_LEVEL", "info")
    http_port: str = _env("HTTP_PORT", "8000")
    tcp_port: str = _env("TCP_PORT", "8001")
    grpc_port: str = _env("GRPC_PORT", "8002")
    ws_port: str = _env("WS_PORT", "8003")
    start_timeout: timedelta = _env("START_TIMEOUT", timedelta(seconds=15))
    shutdown_timeout: timedelta = _env("SHUTDOWN_TIMEOUT", timedelta(seconds=15))
    consul_url: str = _env("CONSUL_URL", "http://127.0.0.1:8500")


@dataclass
class ServiceConfig:
    name: str = _env("NAME", "service")
    address: str = _env("ADDRESS", "127.0.0.1")
    local: bool = _env("LOCAL", True)
    log_level: str = _env("LOG_LEVEL", "info")
    grpc_port: int = _env("GRPC_PORT", 50000)
    start_timeout: timedelta = _env("START_TIMEOUT", timedelta(seconds=15))
    shutdown_timeout: timedelta = _env("SHUTDOWN_TIMEOUT", timedelta(seconds=15))
    consul_url: str = _env("CONSUL_URL", "http://127.0.0.1:8500")


def _convert(raw: str, kind: type) -> Any:
    if kind is bool:
        if raw not in _BOOLS:
            raise ValueError(f"invalid boolean {raw!r}")
        return _BOOLS[raw]
    if kind is int:
        return int(raw)
    if kind is timedelta:
        return parse_duration(raw)
    return raw


def load(cls: type[_C], environ: Mapping[str, str] | None = None) -> _C:
    """Build ``cls`` from environment variables.

    Without ``environ``, a ``.env`` file in the working directory is loaded
    first (never overriding set variables) and ``os.environ`` is read.
    Each field is converted to the type of its default value.
    """
    if environ is None:
        load_dotenv(os.path.join(os.getcwd(), ".env"))
        environ = os.environ
    values: dict[str, Any] = {}
    for spec in fields(cls):
        name = spec.metadata.get("env")
        if name is None or name not in environ:
            continue
        try:
            values[spec.name] = _convert(environ[name], type(spec.default))
        except ValueError as exc:
            raise ValueError(
                f'failed to load config: parse error on field "{spec.name}" ({name}): {exc}'
            ) from exc
    return cls(**values)