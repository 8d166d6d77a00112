"""Error taxonomy shared by the import pipeline, stores and HTTP layer."""

from __future__ import annotations

from typing import Dict, Optional


class EcosprayError(RuntimeError):
    """Base class for errors that map onto an HTTP error envelope."""

    status_code = 500

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InputValidationError(EcosprayError):
    """Raised when request input is missing or malformed."""

    status_code = 400


class InvalidTableError(InputValidationError):
    """Raised when a table name is outside the schema registry."""


class EmptySourceError(InputValidationError):
    """Raised when a source yields no importable text files."""


class UnauthorizedError(EcosprayError):
    """Raised when an admin request lacks the expected bearer token."""

    status_code = 401


class UpstreamError(EcosprayError):
    """Raised when a remote service is unreachable or rejects a call."""

    status_code = 500


class UpstreamTimeoutError(UpstreamError):
    """Raised when a remote call exceeds its per-call timeout."""

    status_code = 504


class ExtractionParseError(EcosprayError):
    """Raised when the model answered but not with schema-shaped JSON."""

    status_code = 502

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class ContentWriteError(UpstreamError):
    """Raised when one or more content categories failed to write."""

    def __init__(
        self,
        failures: Dict[str, str],
        counts: Dict[str, int],
    ) -> None:
        categories = ", ".join(sorted(failures))
        detail = "; ".join(f"{name}: {reason}" for name, reason in sorted(failures.items()))
        super().__init__(f"Failed to write {categories} ({detail})")
        self.failures = dict(failures)
        self.counts = dict(counts)


def upstream_status(status: Optional[int]) -> Optional[int]:
    """Return the upstream status when it is usable as an error status."""
    if status is not None and 400 <= status <= 599:
        return status
    return None


__all__ = [
    "ContentWriteError",
    "EcosprayError",
    "EmptySourceError",
    "ExtractionParseError",
    "InputValidationError",
    "InvalidTableError",
    "UnauthorizedError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "upstream_status",
]
