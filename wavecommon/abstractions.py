"""Small abstract interfaces shared by services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, TypeVar

_T = TypeVar("_T")


class Requestable(ABC):
    """Something that builds itself from an incoming request."""

    @abstractmethod
    def request(self, request: Any) -> Any:
        """Build a result from ``request``; raise on failure."""


class Responseable(ABC):
    """Something that can turn itself into a response."""

    @abstractmethod
    def response(self) -> Any:
        """Return the response built from this object; raise on failure."""


class Closable(ABC):
    """A resource that must be released."""

    @abstractmethod
    def close(self) -> None:
        """Release the resource."""


class Server(ABC):
    """A server that can be started and shut down."""

    @abstractmethod
    def start(self) -> None:
        """Start serving."""

    @abstractmethod
    def shutdown(self, timeout: float | None = None) -> None:
        """Stop serving, waiting at most ``timeout`` seconds."""


def make_request(cls: type[Requestable], request: Any) -> Any:
    """Create a fresh ``cls`` and let it handle ``request``."""
    return cls().request(request)


def make_response(response: Responseable) -> Any:
    """Return the response that ``response`` produces."""
    return response.response()