"""Keeping relation rows and position columns in sync."""

from __future__ import annotations

import logging
from typing import Any, Callable, Hashable, Iterable, MutableSequence, Protocol, TypeVar

_log = logging.getLogger(__name__)

_K = TypeVar("_K", bound="Keyed")
_P = TypeVar("_P", bound="Positioned")
_Q = TypeVar("_Q")


class Keyed(Protocol):
    """An item identified by a key."""

    def key(self) -> Hashable:
        """The value that identifies this item."""


class Positioned(Protocol):
    """An item with a mutable position."""

    position: int


def _by_key(items: Iterable[_K]) -> dict[Hashable, _K]:
    return {item.key(): item for item in items}


def adjust_relation(
    prev: Iterable[_K],
    next_: Iterable[_K],
    add_fn: Callable[[_K], Any],
    remove_fn: Callable[[_K], Any],
) -> None:
    """Remove what is gone or changed, then add what is new or changed.

    Items are matched by ``key()`` and compared with ``==``. The first
    exception raised by a callback stops the work and propagates.
    """
    prev_map, next_map = _by_key(prev), _by_key(next_)
    for key, prev_item in prev_map.items():
        if key not in next_map or next_map[key] != prev_item:
            remove_fn(prev_item)
    for key, next_item in next_map.items():
        if key not in prev_map or prev_map[key] != next_item:
            add_fn(next_item)


def reassign_positions(
    q: _Q, elements: MutableSequence[_P], update_fn: Callable[[_Q, _P], Any]
) -> None:
    """Sort ``elements`` by position and close gaps in the sequence.

    The list is sorted in place. When positions are already consecutive
    nothing is updated; otherwise positions from the first gap on are
    renumbered and ``update_fn(q, element)`` is called for every element.
    """
    elements.sort(key=lambda element: element.position)

    broken = next(
        (
            index
            for index, (before, current) in enumerate(zip(elements, elements[1:]), start=1)
            if current.position != before.position + 1
        ),
        None,
    )
    if broken is None:
        return

    for before, current in zip(elements[broken - 1 :], elements[broken:]):
        current.position = before.position + 1

    for element in elements:
        _log.debug("position: %d", element.position)
        update_fn(q, element)