import socket
from unittest.mock import patch

import pytest

from wavecommon.netutil import (
    check_port_available,
    dial,
    dial_retry,
    dial_timeout,
    find_free_port,
    reserve_port,
)

HOST = "127.0.0.1"


@pytest.fixture
def listener():
    server = socket.create_server((HOST, 0))
    yield server
    server.close()


def _closed_port():
    server = socket.create_server((HOST, 0))
    port = server.getsockname()[1]
    server.close()
    return port


def test_port_in_use_is_not_available(listener):
    port = listener.getsockname()[1]
    assert check_port_available(HOST, port) is False


def test_find_free_port_skips_used_port(listener):
    port = listener.getsockname()[1]
    free = find_free_port(HOST, port)
    assert free > port
    assert check_port_available(HOST, free)


def test_find_free_port_out_of_range():
    with pytest.raises(ValueError, match="out of range"):
        find_free_port(HOST, 65536)


def test_reserve_port_listens(listener):
    port = listener.getsockname()[1]
    reserved = reserve_port(HOST, port)
    try:
        reserved_port = reserved.getsockname()[1]
        assert reserved_port > port
        assert check_port_available(HOST, reserved_port) is False
    finally:
        reserved.close()


def test_dial_connects(listener):
    port = listener.getsockname()[1]
    conn = dial("tcp", f"{HOST}:{port}")
    try:
        assert conn.getpeername()[1] == port
    finally:
        conn.close()


def test_dial_timeout_connects(listener):
    port = listener.getsockname()[1]
    conn = dial_timeout("tcp4", f"{HOST}:{port}", 2.0, 5.0)
    try:
        assert conn.getpeername() == (HOST, port)
        assert conn.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE) != 0
    finally:
        conn.close()


def test_dial_refused_raises():
    with pytest.raises(ConnectionRefusedError):
        dial("tcp", f"{HOST}:{_closed_port()}")


def test_dial_unknown_network():
    with pytest.raises(ValueError, match="unknown network"):
        dial("carrier-pigeon", f"{HOST}:80")


def test_dial_missing_port():
    with pytest.raises(ValueError, match="missing port"):
        dial("tcp", HOST)


@patch("wavecommon.retry.time.sleep")
def test_dial_retry_gives_none_when_refused(sleep):
    assert dial_retry("tcp", f"{HOST}:{_closed_port()}", 3, 1.0) is None
    assert sleep.call_count >= 1


def test_dial_retry_connects(listener):
    port = listener.getsockname()[1]
    conn = dial_retry("tcp", f"{HOST}:{port}", 3, 1.0)
    try:
        assert conn.getpeername()[1] == port
    finally:
        conn.close()