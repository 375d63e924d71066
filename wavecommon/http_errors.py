"""Turning errors into JSON HTTP responses."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from wavecommon.errors import AppError, Code, http_status_from_code, internal_without_stack_trace


@dataclass(frozen=True)
class HTTPError:
    """The JSON body of an error response."""

    message: str
    incident_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if self.incident_id:
            body["incident_id"] = self.incident_id
        return body


def _find_app_error(err: BaseException) -> AppError | None:
    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        if isinstance(current, AppError):
            return current
        seen.add(id(current))
        current = current.__cause__
    return None


def _resolve(err: BaseException) -> tuple[AppError, Code, str]:
    found = _find_app_error(err)
    if found is None:
        return internal_without_stack_trace(err), Code.UNKNOWN, str(err)
    if found is err:
        code, message = found.grpc_status()
        return found, code, message
    return found, found.code, str(err)


def _code_name(code: Code) -> str:
    return "".join(part.capitalize() for part in code.name.split("_"))


def error_response(err: BaseException) -> tuple[int, HTTPError]:
    """The HTTP status and body that answer ``err``."""
    app_error, code, message = _resolve(err)
    return http_status_from_code(code), HTTPError(message, app_error.incident_id)


def make_error_handler(
    logger: logging.Logger,
) -> Callable[..., tuple[int, dict[str, str], bytes]]:
    """A handler returning ``(status, headers, body)`` for an error.

    Internal errors are logged at error level with their incident id and
    stack trace; others at debug level.
    """

    def handle(err: BaseException, method: str = "", url: str = "") -> tuple[int, dict[str, str], bytes]:
        app_error, code, message = _resolve(err)
        if code == Code.INTERNAL:
            logger.error(
                "internal error",
                extra={
                    "code": _code_name(code),
                    "incident_id": app_error.incident_id,
                    "grpc_message": message,
                    "method": method,
                    "url": url,
                    "stack_trace": app_error.stack_trace,
                },
            )
        else:
            logger.debug("client error", extra={"grpc_message": message})
        body = HTTPError(message, app_error.incident_id)
        payload = (json.dumps(body.to_dict()) + "\n").encode("utf-8")
        return http_status_from_code(code), {"Content-Type": "application/json"}, payload

    return handle