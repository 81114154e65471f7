"""Diagnostics returned by reconciler operations, and error translation.

``translate_error`` is the single place where a failure becomes
user-visible output.  Its contract:

- ``None`` -> ``[]``
- a collaborator ``ApiError`` -> one WARNING per field-level detail
  (``"<detail> (<path.joined.by.dots>)"``, in input order), then exactly one
  ERROR carrying the top-level message
- anything else -> a single ERROR with ``str(err)``
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel

from ..core.errors import ApiError, ErrorDetail, ErrorKind


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class Diagnostic(BaseModel):
    """A severity-tagged message for the caller.

    Attributes:
        severity: WARNING is informational, ERROR means the operation failed.
        summary: Human-readable text.
    """

    severity: Severity
    summary: str

    model_config = {"frozen": True}

    @classmethod
    def error(cls, summary: str) -> Diagnostic:
        return cls(severity=Severity.ERROR, summary=summary)

    @classmethod
    def warning(cls, summary: str) -> Diagnostic:
        return cls(severity=Severity.WARNING, summary=summary)


def format_detail(detail: ErrorDetail) -> str:
    """Render one field-level detail as ``"<detail> (<a.b.c>)"``."""
    path = ".".join(str(segment) for segment in detail.path or [])
    return f"{detail.details} ({path})"


def translate_error(err: BaseException | None) -> list[Diagnostic]:
    """Convert a failure into an ordered diagnostic list.

    Args:
        err: The failure, or ``None`` for success.

    Returns:
        ``[]`` for ``None``; otherwise warnings (if any) followed by exactly
        one error.
    """
    match err:
        case None:
            return []
        case ApiError(kind=ErrorKind.CONFLICT):
            return [Diagnostic.error(err.message)]
        case ApiError():
            warnings = [
                Diagnostic.warning(format_detail(detail))
                for detail in err.details
            ]
            return [*warnings, Diagnostic.error(err.message)]
        case _:
            return [Diagnostic.error(str(err))]


def has_error(diagnostics: Iterable[Diagnostic]) -> bool:
    """Return ``True`` if any diagnostic has ERROR severity."""
    return any(d.severity is Severity.ERROR for d in diagnostics)
