import json
import logging
import queue
import time

import pytest
import responses
from responses import matchers

from wavecommon.consul import (
    Consul,
    ConsulClient,
    ServiceEntry,
    WatchPlan,
    with_check_interval,
    with_check_ttl,
    with_service_check,
    with_tag,
)
from wavecommon.errors import AppError, Code

BASE = "http://consul.test:8500"
LOGGER = logging.getLogger("test-consul")


def _consul(*options):
    return Consul(BASE, "users", "10.0.0.5", 50051, LOGGER, *options)


def test_register_sends_default_grpc_check():
    consul = _consul()
    with responses.RequestsMock() as rsps:
        rsps.put(f"{BASE}/v1/agent/service/register", status=200)
        result = consul.register_service()
        assert len(rsps.calls) == 1
        body = json.loads(rsps.calls[0].request.body)
    assert result is None
    assert consul.service.tags == ["v1", "http", "grpc"]
    assert body["ID"] == "users-50051"
    assert body["Name"] == "users"
    assert body["Port"] == 50051
    assert body["Tags"] == ["v1", "http", "grpc"]
    assert body["Check"] == {
        "Name": "users-50051",
        "GRPC": "10.0.0.5:50051",
        "Interval": "10s",
        "Timeout": "5s",
        "DeregisterCriticalServiceAfter": "30s",
    }


def test_options_apply_in_order():
    consul = _consul(
        with_tag("edge"),
        with_check_interval("20s"),
        with_service_check("10.0.0.5", 8080),
        with_check_ttl("60s"),
    )
    assert consul.service.tags == ["v1", "http", "grpc", "edge"]
    assert consul.service.check["HTTP"] == "http://10.0.0.5:8080/health"
    assert consul.service.check["Interval"] == "20s"
    assert consul.service.ttl == "60s"


def test_service_check_reads_settings_at_apply_time():
    consul = _consul(with_service_check("10.0.0.5", 8080), with_check_interval("20s"))
    assert consul.service.check["Interval"] == "10s"
    assert consul.service.interval == "20s"


def test_register_failure_is_internal():
    consul = _consul()
    with responses.RequestsMock() as rsps:
        rsps.put(f"{BASE}/v1/agent/service/register", status=500, body="boom")
        with pytest.raises(AppError) as info:
            consul.register_service()
    assert info.value.code == Code.INTERNAL
    assert "boom" in str(info.value)
    assert info.value.safe_error() == "internal error"


def test_stop_deregisters_and_ends_watch_queues():
    consul = _consul()
    entries = consul.watch_service("orders")
    with responses.RequestsMock() as rsps:
        rsps.put(f"{BASE}/v1/agent/service/deregister/users-50051", status=200)
        consul.stop()
        assert len(rsps.calls) == 1
    assert entries.get_nowait() is None
    assert consul.plans[0].stopped


def test_deregister_error_raises():
    client = ConsulClient(BASE)
    with responses.RequestsMock() as rsps:
        rsps.put(f"{BASE}/v1/agent/service/deregister/x", status=404, body="missing")
        with pytest.raises(RuntimeError, match="404"):
            client.deregister_service("x")


def test_health_service_parses_entries_and_index():
    client = ConsulClient("consul.test:8500")
    payload = [
        {
            "Node": {"Address": "10.0.0.1"},
            "Service": {"ID": "orders-1", "Service": "orders", "Address": "10.0.0.9", "Port": 9000, "Tags": ["v1"]},
        }
    ]
    with responses.RequestsMock() as rsps:
        rsps.get(
            f"{BASE}/v1/health/service/orders",
            json=payload,
            headers={"X-Consul-Index": "42"},
            match=[matchers.query_param_matcher({"passing": "1"})],
        )
        entries, index = client.health_service("orders", True)
    assert index == 42
    assert entries == [
        ServiceEntry(
            id="orders-1", service="orders", address="10.0.0.9", port=9000, tags=("v1",), node_address="10.0.0.1"
        )
    ]


class _FakeClient:
    def __init__(self, results):
        self.results = list(results)
        self.last = None

    def health_service(self, name, passing_only, index, wait):
        if self.results:
            result = self.results.pop(0)
            if isinstance(result, Exception):
                raise result
            self.last = result
            return result
        time.sleep(0.01)
        return self.last


def test_watch_plan_queues_only_changes():
    first = [ServiceEntry("a", "orders", "10.0.0.9", 9000)]
    second = [ServiceEntry("b", "orders", "10.0.0.8", 9001)]
    client = _FakeClient([([], 1), (first, 2), (first, 2), (second, 3)])
    entries = queue.Queue(maxsize=3)
    errors = queue.Queue()
    plan = WatchPlan(client, "orders", entries)
    plan.run(errors)
    assert entries.get(timeout=2) == first
    assert entries.get(timeout=2) == second
    plan.stop()
    assert entries.get(timeout=2) is None
    assert errors.get(timeout=2) is None


def test_watch_plan_reports_fatal_error():
    failure = ValueError("bad payload")
    plan = WatchPlan(_FakeClient([failure]), "orders", queue.Queue())
    errors = queue.Queue()
    plan.run(errors)
    assert errors.get(timeout=2) is failure