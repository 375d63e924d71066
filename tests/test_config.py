from datetime import timedelta

import pytest

from wavecommon.config import GatewayConfig, ServiceConfig, load, parse_duration


@pytest.mark.parametrize(
    "text, expected",
    [
        ("15s", timedelta(seconds=15)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5h", timedelta(hours=1.5)),
        ("300ms", timedelta(milliseconds=300)),
        ("-2m", -timedelta(minutes=2)),
        ("0", timedelta(0)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "10", "5x", "1h-2m", "-"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_gateway_defaults():
    cfg = load(GatewayConfig, {})
    assert cfg == GatewayConfig()
    assert cfg.local is True
    assert cfg.grpc_port == "8002"
    assert cfg.start_timeout == timedelta(seconds=15)
    assert cfg.consul_url == "http://127.0.0.1:8500"


def test_service_defaults():
    cfg = load(ServiceConfig, {})
    assert cfg.name == "service"
    assert cfg.grpc_port == 50000


def test_service_overrides():
    cfg = load(
        ServiceConfig,
        {"LOCAL": "false", "GRPC_PORT": "9000", "START_TIMEOUT": "1m", "NAME": "users"},
    )
    assert cfg.local is False
    assert cfg.grpc_port == 9000
    assert cfg.start_timeout == timedelta(minutes=1)
    assert cfg.name == "users"


@pytest.mark.parametrize(
    "environ", [{"GRPC_PORT": "abc"}, {"LOCAL": "yes"}, {"SHUTDOWN_TIMEOUT": "soon"}]
)
def test_bad_values_raise(environ):
    with pytest.raises(ValueError, match="failed to load config"):
        load(ServiceConfig, environ)


def test_load_reads_dotenv_from_cwd(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("NAME=from-dotenv\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("NAME", "placeholder")
    monkeypatch.delenv("NAME")
    assert load(ServiceConfig).name == "from-dotenv"


def test_environment_wins_over_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("ADDRESS=10.0.0.1\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ADDRESS", "192.168.0.2")
    assert load(ServiceConfig).address == "192.168.0.2"