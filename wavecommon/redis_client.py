"""Creating Redis clients that are checked on creation."""

from __future__ import annotations

from dataclasses import dataclass

import redis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from wavecommon.errors import internal

_DEFAULT_PORT = 6379
_PING_TIMEOUT = 10.0


@dataclass
class RedisOptions:
    """Connection settings; times are in seconds."""

    addr: str = "127.0.0.1:6379"
    username: str | None = None
    password: str | None = None
    max_retries: int = 5
    min_retry_backoff: float = 0.01
    max_retry_backoff: float = 1.0
    dial_timeout: float = 10.0
    ssl: bool = False


def new_redis_options(url: str) -> RedisOptions:
    """Default options pointing at ``url`` ("host:port")."""
    return RedisOptions(addr=url)


def _split_addr(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep:
        return addr, _DEFAULT_PORT
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"invalid redis address {addr!r}") from None


def new_redis_client(url: str, options: RedisOptions | None = None) -> redis.Redis:
    """A client for ``url``, or for ``options`` when given, that answered a ping.

    Failures are raised as internal errors.
    """
    opts = options if options is not None else new_redis_options(url)
    host, port = _split_addr(opts.addr)
    client = redis.Redis(
        host=host,
        port=port,
        username=opts.username,
        password=opts.password,
        socket_connect_timeout=opts.dial_timeout,
        retry=Retry(
            ExponentialBackoff(cap=opts.max_retry_backoff, base=opts.min_retry_backoff),
            opts.max_retries,
        ),
        ssl=opts.ssl,
    )
    try:
        client.ping()
    except Exception as exc:
        client.close()
        raise internal(exc) from exc
    return client