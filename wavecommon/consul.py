"""Service registration and discovery through a Consul agent."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

import requests

from wavecommon.errors import internal

_log = logging.getLogger(__name__)

_PLAN_TYPE = "service"
_RETRY_BASE = 5.0
_RETRY_MAX = 180.0
_BLOCKING_WAIT = 300.0


class ConsulClient:
    """A minimal client for the Consul agent HTTP API."""

    def __init__(self, address: str) -> None:
        if "://" not in address:
            address = f"http://{address}"
        self.address = address.rstrip("/")
        self._session = requests.Session()

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        response = self._session.request(method, f"{self.address}{path}", **kwargs)
        if response.status_code != 200:
            raise RuntimeError(
                f"Unexpected response code: {response.status_code} ({response.text})"
            )
        return response

    def register_service(self, registration: dict[str, Any]) -> None:
        """Register a service with the local agent."""
        self._request("PUT", "/v1/agent/service/register", json=registration)

    def deregister_service(self, service_id: str) -> None:
        """Remove a service from the local agent."""
        self._request("PUT", f"/v1/agent/service/deregister/{service_id}")

    def health_service(
        self,
        name: str,
        passing_only: bool = False,
        index: int = 0,
        wait: float | None = None,
    ) -> tuple[list[ServiceEntry], int]:
        """Instances of ``name`` and the index to block on next.

        With ``index`` above zero the call blocks until the catalogue changes
        or ``wait`` seconds have passed.
        """
        params: dict[str, str] = {}
        if passing_only:
            params["passing"] = "1"
        if index > 0:
            params["index"] = str(index)
        if wait is not None:
            params["wait"] = f"{wait:g}s"
        timeout = None if wait is None else wait + wait / 16 + 5
        response = self._request(
            "GET", f"/v1/health/service/{name}", params=params, timeout=timeout
        )
        entries = [ServiceEntry.from_json(item) for item in response.json() or []]
        return entries, int(response.headers.get("X-Consul-Index", "0") or 0)


@dataclass(frozen=True)
class ServiceEntry:
    """One healthy instance of a service."""

    id: str
    service: str
    address: str
    port: int
    tags: tuple[str, ...] = ()
    node_address: str = ""

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> ServiceEntry:
        service = data.get("Service") or {}
        node = data.get("Node") or {}
        return cls(
            id=service.get("ID", ""),
            service=service.get("Service", ""),
            address=service.get("Address", ""),
            port=int(service.get("Port", 0)),
            tags=tuple(service.get("Tags") or ()),
            node_address=node.get("Address", ""),
        )


class WatchPlan:
    """Watches the passing instances of a service and queues every change.

    ``None`` is put on the queues when the plan stops.
    """

    def __init__(self, client: Any, service: str, queue: queue.Queue) -> None:
        self.type = _PLAN_TYPE
        self.service = service
        self._client = client
        self._input = queue
        self._errors: queue.Queue | None = None
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None
        _log.debug("new consul plan %s", service)

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def run(self, errors: queue.Queue) -> None:
        """Start watching in the background; fatal errors go to ``errors``."""
        self._errors = errors
        self._thread = threading.Thread(target=self._watch, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop watching and mark the end of both queues."""
        self._stopped.set()
        for target in (self._input, self._errors):
            if target is None:
                continue
            try:
                target.put_nowait(None)
            except queue.Full:
                pass

    def _watch(self) -> None:
        last_index = 0
        backoff = _RETRY_BASE
        while not self._stopped.is_set():
            try:
                entries, index = self._client.health_service(
                    self.service, True, last_index, _BLOCKING_WAIT
                )
            except requests.RequestException as exc:
                _log.warning("consul watch of %s failed: %s", self.service, exc)
                if self._stopped.wait(backoff):
                    return
                backoff = min(backoff * 2, _RETRY_MAX)
                continue
            except Exception as exc:
                if not self._stopped.is_set() and self._errors is not None:
                    self._errors.put(exc)
                return
            backoff = _RETRY_BASE
            if index == last_index:
                continue
            last_index = 0 if index < last_index else index
            self._handle(entries)

    def _handle(self, entries: list[ServiceEntry]) -> None:
        if not entries:
            return
        while not self._stopped.is_set():
            try:
                self._input.put(entries, timeout=0.1)
                return
            except queue.Full:
                continue


@dataclass
class _ServiceSettings:
    name: str
    address: str
    grpc_port: int
    tags: list[str] = field(default_factory=lambda: ["v1", "http", "grpc"])
    check: dict[str, Any] | None = None
    interval: str = "10s"
    timeout: str = "5s"
    ttl: str = "15s"
    deregister_timeout: str = "30s"
    agent_self_timeout: float = 30.0
    id: str = ""


Option = Callable[["Consul"], None]


def with_service_check(addr: str, port: int) -> Option:
    """Use an HTTP health check on ``/health`` instead of the gRPC one."""

    def apply(consul: Consul) -> None:
        settings = consul.service
        consul.service.check = {
            "Name": f"{addr}-{port}",
            "HTTP": f"http://{addr}:{port}/health",
            "Interval": settings.interval or "10s",
            "Timeout": settings.timeout or "5s",
            "DeregisterCriticalServiceAfter": settings.deregister_timeout or "30s",
        }

    return apply


def with_tag(tag: str) -> Option:
    def apply(consul: Consul) -> None:
        consul.service.tags.append(tag)

    return apply


def with_check_interval(interval: str) -> Option:
    def apply(consul: Consul) -> None:
        consul.service.interval = interval

    return apply


def with_check_timeout(timeout: str) -> Option:
    def apply(consul: Consul) -> None:
        consul.service.timeout = timeout

    return apply


def with_check_deregister_timeout(timeout: str) -> Option:
    def apply(consul: Consul) -> None:
        consul.service.deregister_timeout = timeout

    return apply


def with_check_ttl(timeout: str) -> Option:
    def apply(consul: Consul) -> None:
        consul.service.ttl = timeout

    return apply


def with_self_check_timeout(timeout: float) -> Option:
    def apply(consul: Consul) -> None:
        consul.service.agent_self_timeout = timeout

    return apply


class Consul:
    """Registers one service and watches others."""

    def __init__(
        self,
        consul_url: str,
        name: str,
        address: str,
        grpc_port: int,
        logger: logging.Logger,
        *args: Option,
    ) -> None:
        self.client = ConsulClient(consul_url)
        self.consul_url = consul_url
        self.logger = logger
        self.service = _ServiceSettings(name=name, address=address, grpc_port=grpc_port)
        self.plans: list[WatchPlan] = []
        for option in args:
            option(self)
        self.service.id = f"{self.service.name}-{self.service.grpc_port}"

    def register_service(self) -> None:
        """Register the service; failures are raised as internal errors."""
        settings = self.service
        registration: dict[str, Any] = {
            "ID": settings.id,
            "Name": settings.name,
            "Address": settings.address,
            "Port": settings.grpc_port,
            "Tags": list(settings.tags),
        }
        if settings.check is not None:
            registration["Check"] = dict(settings.check)
        else:
            registration["Check"] = {
                "Name": f"{settings.name}-{settings.grpc_port}",
                "GRPC": f"{settings.address}:{settings.grpc_port}",
                "Interval": settings.interval,
                "Timeout": settings.timeout,
                "DeregisterCriticalServiceAfter": settings.deregister_timeout,
            }
        try:
            self.client.register_service(registration)
        except Exception as exc:
            raise internal(exc) from exc
        self.logger.info(
            "Service registered in Consul",
            extra={"name": settings.name, "address": settings.address, "tags": list(settings.tags)},
        )

    def watch_service(self, service_name: str) -> queue.Queue:
        """Plan a watch of ``service_name``; its changes arrive on the returned queue."""
        entries: queue.Queue = queue.Queue(maxsize=3)
        self.plans.append(WatchPlan(self.client, service_name, entries))
        return entries

    def stop(self) -> None:
        """Stop every watch and deregister the service."""
        for plan in self.plans:
            plan.stop()
        self.client.deregister_service(self.service.id)