"""Helpers for building lists and dicts from sequences."""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, TypeVar

_S = TypeVar("_S")
_T = TypeVar("_T")
_K = TypeVar("_K", bound=Hashable)
_V = TypeVar("_V")


def map_index(items: Iterable[_S], fn: Callable[[int, _S], _T]) -> list[_T]:
    """Apply ``fn(index, item)`` to every item."""
    return [fn(index, item) for index, item in enumerate(items)]


def to_map(
    items: Iterable[_S], key_fn: Callable[[_S], _K], value_fn: Callable[[_S], _V]
) -> dict[_K, _V]:
    """Build a dict from items; later items win on equal keys."""
    return {key_fn(item): value_fn(item) for item in items}


def no_change() -> Callable[[_S], _S]:
    """Return the identity function."""
    return lambda item: item