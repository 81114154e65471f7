"""Closed error taxonomy for the Contentful Management API collaborator.

Every failure that leaves ``ContentfulClient`` is an ``ApiError`` tagged
with exactly one ``ErrorKind``.  Classification happens once, here, at the
HTTP boundary; everything above it matches on ``err.kind``.

Kinds:

- ``NOT_FOUND``  -- HTTP 404.  Signals drift on read, success on delete.
- ``VALIDATION`` -- HTTP 400/422.  Carries per-field ``details``.
- ``CONFLICT``   -- HTTP 409 (version mismatch on write).
- ``TRANSPORT``  -- anything else: other statuses, unparseable bodies,
  connection failures and timeouts.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

import requests
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Category of a collaborator failure."""

    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    TRANSPORT = "transport"


class ErrorDetail(BaseModel):
    """A single field-level problem reported by the API.

    Attributes:
        path: Ordered path segments to the offending value
            (e.g. ``["fields", "title", "en-US"]``), or ``None``.
        details: Human-readable description of the problem.
        name: Validation rule name when the API provides one.
    """

    path: list[str | int] | None = None
    details: str = ""
    name: str | None = None

    model_config = {"frozen": True}


class ApiError(Exception):
    """Structured failure raised by the collaborator.

    Args:
        kind: Closed error category.
        message: Top-level message, preserved verbatim.
        details: Field-level problems in the order the API reported them.
        status_code: HTTP status, if a response was received.
        request_id: CMA request id, if present in the response body.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: list[ErrorDetail] | None = None,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details: list[ErrorDetail] = list(details or [])
        self.status_code = status_code
        self.request_id = request_id

    def __repr__(self) -> str:
        return (
            f"ApiError(kind={self.kind.value!r}, message={self.message!r}, "
            f"details={len(self.details)}, status_code={self.status_code})"
        )


class _ErrorSys(BaseModel):
    id: str | None = None
    type: str | None = None


class _ErrorDetails(BaseModel):
    errors: list[ErrorDetail] = Field(default_factory=list)


class _ErrorBody(BaseModel):
    """Shape of a CMA error response body."""

    sys: _ErrorSys = Field(default_factory=_ErrorSys)
    message: str | None = None
    details: _ErrorDetails | None = None
    request_id: str | None = Field(default=None, alias="requestId")

    model_config = {"populate_by_name": True}


def kind_for_status(status_code: int) -> ErrorKind:
    """Map an HTTP status code onto the closed error enumeration."""
    match status_code:
        case 404:
            return ErrorKind.NOT_FOUND
        case 409:
            return ErrorKind.CONFLICT
        case 400 | 422:
            return ErrorKind.VALIDATION
        case _:
            return ErrorKind.TRANSPORT


def error_from_response(response: requests.Response) -> ApiError:
    """Build an ``ApiError`` from a non-2xx CMA response.

    The message falls back to the error id (``sys.id``) and then to the
    HTTP reason phrase when the body carries no ``message``.  A body that
    does not look like a CMA error is classified as ``TRANSPORT`` with the
    raw status line as message.
    """
    status = response.status_code
    reason = response.reason or ""

    try:
        payload: Any = response.json()
    except ValueError:
        payload = None

    if not isinstance(payload, dict):
        logger.debug("Unstructured error body for HTTP %s", status)
        return ApiError(
            ErrorKind.TRANSPORT,
            f"HTTP {status}: {reason}".rstrip(": "),
            status_code=status,
        )

    body = _ErrorBody.model_validate(payload)
    message = body.message or body.sys.id or reason or f"HTTP {status}"
    details = body.details.errors if body.details else []

    return ApiError(
        kind_for_status(status),
        message,
        details=details,
        status_code=status,
        request_id=body.request_id,
    )


def error_from_exception(exc: requests.RequestException) -> ApiError:
    """Wrap a ``requests`` failure (connection, timeout, ...) as TRANSPORT."""
    return ApiError(ErrorKind.TRANSPORT, str(exc))


def is_not_found(err: BaseException) -> bool:
    """Return ``True`` if *err* is a collaborator NOT_FOUND failure."""
    return isinstance(err, ApiError) and err.kind is ErrorKind.NOT_FOUND
