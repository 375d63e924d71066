"""Dialling and port helpers."""

from __future__ import annotations

import socket

from wavecommon.retry import STANDARD_CONFIG, Retry

_DEFAULT_KEEPALIVE = 15.0
_MAX_PORT = 65535

_NETWORKS = {
    "tcp": (socket.AF_UNSPEC, socket.SOCK_STREAM),
    "tcp4": (socket.AF_INET, socket.SOCK_STREAM),
    "tcp6": (socket.AF_INET6, socket.SOCK_STREAM),
    "udp": (socket.AF_UNSPEC, socket.SOCK_DGRAM),
    "udp4": (socket.AF_INET, socket.SOCK_DGRAM),
    "udp6": (socket.AF_INET6, socket.SOCK_DGRAM),
}


def _split_host_port(addr: str) -> tuple[str | None, int]:
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {addr!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host or None, int(port)


def _set_keepalive(sock: socket.socket, interval: float | None) -> None:
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
    seconds = max(1, int(interval or _DEFAULT_KEEPALIVE))
    for name in ("TCP_KEEPIDLE", "TCP_KEEPINTVL"):
        option = getattr(socket, name, None)
        if option is not None:
            sock.setsockopt(socket.IPPROTO_TCP, option, seconds)


def _connect(
    network: str, addr: str, timeout: float | None, keepalive: float | None
) -> socket.socket:
    try:
        family, kind = _NETWORKS[network]
    except KeyError:
        raise ValueError(f"unknown network {network!r}") from None
    host, port = _split_host_port(addr)

    last_error: OSError | None = None
    for fam, typ, proto, _, sockaddr in socket.getaddrinfo(host, port, family, kind):
        sock = socket.socket(fam, typ, proto)
        try:
            sock.settimeout(timeout if timeout else None)
            sock.connect(sockaddr)
        except OSError as exc:
            sock.close()
            last_error = exc
            continue
        sock.settimeout(None)
        if typ == socket.SOCK_STREAM:
            _set_keepalive(sock, keepalive)
        return sock
    raise last_error or OSError(f"no address found for {addr!r}")


def dial(network: str, addr: str) -> socket.socket:
    """Connect to ``addr`` ("host:port") over ``network`` (tcp, tcp4, udp, ...)."""
    return _connect(network, addr, None, None)


def dial_timeout(
    network: str, addr: str, timeout: float, check_interval: float
) -> socket.socket:
    """Connect within ``timeout`` seconds, probing keep-alive every ``check_interval``."""
    return _connect(network, addr, timeout, check_interval)


def dial_retry(
    network: str, addr: str, max_retry: int, check_interval: float
) -> socket.socket | None:
    """Connect, retrying up to ``max_retry`` times while the connection is refused.

    Returns None when no connection could be made.
    """
    retry = (
        Retry(STANDARD_CONFIG)
        .with_attempts(max_retry)
        .with_retry_if(lambda err: isinstance(err, ConnectionRefusedError))
    )
    try:
        return retry.do(lambda: _connect(network, addr, None, check_interval))
    except OSError:
        return None


def check_port_available(host: str, port: int) -> bool:
    """True if a TCP listener can be opened on ``host:port``."""
    try:
        listener = socket.create_server((host, port))
    except (OSError, OverflowError):
        return False
    listener.close()
    return True


def find_free_port(host: str, start_port: int) -> int:
    """The first port from ``start_port`` upwards that can be listened on."""
    port = start_port
    while True:
        if check_port_available(host, port):
            return port
        port += 1
        if port > _MAX_PORT:
            raise ValueError(f"port {port} is out of range")


def reserve_port(host: str, port: int) -> socket.socket:
    """Open a TCP listener on the first free port from ``port`` upwards."""
    free = find_free_port(host, port)
    return socket.create_server((host, free))