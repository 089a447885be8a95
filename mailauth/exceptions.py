"""
Exception classes for the email authentication checker.

Only conditions that stop a check before any DNS work is done are raised
as exceptions.  Missing records and malformed records are never raised;
they are folded into a ``fail`` RecordResult by the validators.
"""

from __future__ import annotations


class CheckerError(Exception):
    """Base exception carrying an error code and the HTTP status to answer with."""

    status_code: int = 500

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict[str, str]:
        """Return the caller-visible error body."""
        return {"error": self.message}


class InputError(CheckerError):
    """Raised when the requested domain is missing or malformed."""

    status_code = 400


class AdmissionRejected(CheckerError):
    """Raised when a source address has used up its request window."""

    status_code = 429
