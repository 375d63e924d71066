"""Application errors carrying a gRPC status code."""

from __future__ import annotations

import enum
import traceback
import uuid
from dataclasses import dataclass, field
from typing import Any


class Code(enum.IntEnum):
    """gRPC status codes."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


_HTTP_STATUS = {
    Code.OK: 200,
    Code.CANCELLED: 499,
    Code.UNKNOWN: 500,
    Code.INVALID_ARGUMENT: 400,
    Code.DEADLINE_EXCEEDED: 504,
    Code.NOT_FOUND: 404,
    Code.ALREADY_EXISTS: 409,
    Code.PERMISSION_DENIED: 403,
    Code.UNAUTHENTICATED: 401,
    Code.RESOURCE_EXHAUSTED: 429,
    Code.FAILED_PRECONDITION: 400,
    Code.ABORTED: 409,
    Code.OUT_OF_RANGE: 400,
    Code.UNIMPLEMENTED: 501,
    Code.INTERNAL: 500,
    Code.UNAVAILABLE: 503,
    Code.DATA_LOSS: 500,
}


def http_status_from_code(code: int) -> int:
    """Map a gRPC code to the HTTP status a gateway answers with."""
    try:
        return _HTTP_STATUS[Code(code)]
    except ValueError:
        return 500


@dataclass(frozen=True)
class Violation:
    """One failed validation rule."""

    field_name: str
    message: str


class ValidationFailure(Exception):
    """Raised by request validation with the rules that failed."""

    def __init__(self, violations: list[Violation] | None = None) -> None:
        self.violations = list(violations or [])
        super().__init__("; ".join(f"{v.field_name}: {v.message}" for v in self.violations))


class AppError(Exception):
    """An error with a status code, an optional wrapped error and a safe message."""

    def __init__(
        self,
        code: Code,
        message: str = "",
        inner: BaseException | None = None,
        *,
        hidden: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = Code(code)
        self.message = message
        self.inner = inner
        self.hidden = hidden
        self.stack_trace = ""
        self.incident_id = ""
        if inner is not None:
            self.__cause__ = inner

    def _render(self, safe: bool) -> str:
        if self.inner is None:
            return self.message
        if safe and self.hidden:
            return self.message
        if not self.message:
            return str(self.inner)
        return f"{self.message}: {self.inner}"

    def __str__(self) -> str:
        return self._render(False)

    def safe_error(self) -> str:
        """The message with hidden inner errors left out."""
        return self._render(True)

    def grpc_status(self) -> tuple[Code, str]:
        """The status code and message sent to gRPC clients."""
        return self.code, self.message


def _find(err: BaseException | None, cls: type) -> Any:
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, cls):
            return err
        seen.add(id(err))
        err = err.__cause__
    return None


def _hidden(err: BaseException | None, code: Code, message: str) -> AppError:
    return AppError(code, message, err, hidden=True)


def wrap_internal(err: BaseException | None) -> AppError | None:
    """Like :func:`internal`, but passes ``None`` through."""
    if err is None:
        return None
    return internal(err)


def internal(err: BaseException | None) -> AppError:
    """An internal error with an incident id and the current stack trace."""
    app_err = internal_without_stack_trace(err)
    app_err.stack_trace = "".join(traceback.format_stack())
    return app_err


def internal_without_stack_trace(err: BaseException | None) -> AppError:
    """An internal error with an incident id and no stack trace."""
    app_err = _hidden(err, Code.INTERNAL, "internal error")
    app_err.incident_id = str(uuid.uuid4())
    return app_err


def ensure_internal(err: BaseException) -> BaseException:
    """Return ``err`` if it wraps an AppError, else wrap it as internal."""
    if _find(err, AppError) is None:
        return internal(err)
    return err


def bad_request(err: BaseException | None) -> AppError:
    return AppError(Code.INVALID_ARGUMENT, inner=err)


def bad_request_hidden(err: BaseException | None, message: str) -> AppError:
    return _hidden(err, Code.INVALID_ARGUMENT, message)


def validation_error(err: BaseException | None) -> AppError:
    """An invalid-argument error naming the first failed validation rule."""
    failure = _find(err, ValidationFailure)
    if failure is None:
        return AppError(Code.INVALID_ARGUMENT, inner=err)
    message = "validation error: "
    if failure.violations:
        first = failure.violations[0]
        message += f"{first.field_name}: {first.message}"
    return AppError(Code.INVALID_ARGUMENT, message, err)


def not_found(subject: str, key: str, value: Any) -> AppError:
    return AppError(Code.NOT_FOUND, f"{subject} {key}: {value} not found")


def already_exists(subject: str, key: str, value: Any) -> AppError:
    return AppError(Code.ALREADY_EXISTS, f"{subject} {key}: {value} already exists")


def unauthorized(message: str) -> AppError:
    return AppError(Code.UNAUTHENTICATED, message)


def unauthorized_hidden(err: BaseException | None, message: str) -> AppError:
    return _hidden(err, Code.UNAUTHENTICATED, message)


def forbidden(message: str) -> AppError:
    return AppError(Code.PERMISSION_DENIED, message)


def version_mismatch(subject: str, key: str, value: Any, version: int) -> AppError:
    return AppError(
        Code.INVALID_ARGUMENT,
        f"stale version {version} for {subject} {key}: {value}",
    )