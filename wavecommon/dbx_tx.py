"""Transactions bound to the current context and query batching."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, MutableSequence, Protocol, Sequence, TypeVar

_R = TypeVar("_R")

_current_tx: ContextVar[Any] = ContextVar("wavecommon_tx", default=None)


class Queryable(Protocol):
    """Something that runs SQL: a connection, a pool or a transaction."""

    def execute(self, sql: str, *args: Any) -> Any:
        """Run a statement and return its command status."""

    def query(self, sql: str, *args: Any) -> Any:
        """Run a query and return its rows."""

    def query_row(self, sql: str, *args: Any) -> Any:
        """Run a query and return its single row."""


class _SqlBuilder(Protocol):
    def to_sql(self) -> tuple[str, Sequence[Any]]:
        ...


@contextmanager
def with_transaction(tx: Any) -> Iterator[Any]:
    """Make ``tx`` the current transaction inside the ``with`` block."""
    token = _current_tx.set(tx)
    try:
        yield tx
    finally:
        _current_tx.reset(token)


def from_context(default: Any) -> Any:
    """The current transaction, or ``default`` when there is none."""
    tx = _current_tx.get()
    return default if tx is None else tx


def in_transaction(db: Any, fn: Callable[[Any], _R]) -> _R:
    """Run ``fn(tx)`` in a transaction begun on ``db``.

    The transaction is committed when ``fn`` returns and rolled back when it
    raises; ``fn``'s exception is re-raised, joined with any rollback error.
    """
    try:
        tx = db.begin()
    except Exception as exc:
        raise RuntimeError(f"failed to start transaction: {exc}") from exc

    with with_transaction(tx):
        try:
            result = fn(tx)
        except Exception as exc:
            try:
                tx.rollback()
            except Exception as rollback_exc:
                raise RuntimeError(
                    f"{exc}\nfailed to rollback transaction: {rollback_exc}"
                ) from exc
            raise
        try:
            tx.commit()
        except Exception as exc:
            raise RuntimeError(f"failed to commit transaction: {exc}") from exc
    return result


def queue_query(batch: MutableSequence[tuple[str, tuple[Any, ...]]], builder: _SqlBuilder) -> None:
    """Render ``builder`` to SQL and append ``(sql, args)`` to ``batch``."""
    sql, args = builder.to_sql()
    batch.append((sql, tuple(args)))