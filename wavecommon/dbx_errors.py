"""Recognising PostgreSQL errors by SQLSTATE and constraint name."""

from __future__ import annotations

from typing import Any

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
INVALID_TEXT_REPRESENTATION = "22P02"

_NO_ROWS_MESSAGE = "no rows in result set"


class NoRowsError(LookupError):
    """A query that had to return a row returned none."""

    def __init__(self, message: str = _NO_ROWS_MESSAGE) -> None:
        super().__init__(message)


def _chain(err: BaseException | None):
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = err.__cause__


def _sqlstate(err: BaseException) -> str | None:
    for attr in ("sqlstate", "pgcode"):
        value = getattr(err, attr, None)
        if isinstance(value, str):
            return value
    return None


def _constraint_name(err: BaseException) -> str:
    name: Any = getattr(err, "constraint_name", None)
    if name is None:
        name = getattr(getattr(err, "diag", None), "constraint_name", None)
    return name or ""


def _pg_error(err: BaseException | None) -> BaseException | None:
    return next((e for e in _chain(err) if _sqlstate(e) is not None), None)


def is_unique_violation(err: BaseException | None, name: str) -> bool:
    """True for a unique violation on a constraint whose name contains ``name``."""
    pg = _pg_error(err)
    return pg is not None and _sqlstate(pg) == UNIQUE_VIOLATION and name in _constraint_name(pg)


def is_foreign_key_violation(err: BaseException | None, name: str) -> bool:
    """True for a foreign-key violation on a constraint whose name contains ``name``."""
    pg = _pg_error(err)
    return (
        pg is not None
        and _sqlstate(pg) == FOREIGN_KEY_VIOLATION
        and name in _constraint_name(pg)
    )


def is_no_rows(err: BaseException | None) -> bool:
    """True when ``err`` reports an empty result."""
    if err is not None and str(err) == _NO_ROWS_MESSAGE:
        return True
    return any(isinstance(e, NoRowsError) for e in _chain(err))


def not_valid_enum_type(err: BaseException | None) -> bool:
    """True when a value could not be read as the column's type."""
    pg = _pg_error(err)
    return pg is not None and _sqlstate(pg) == INVALID_TEXT_REPRESENTATION