"""Typed failures raised by the extraction core.

The API layer maps each class to an HTTP status; nothing in the core
catches these to substitute a different result.
"""

from __future__ import annotations

# Upstream bodies can be large HTML error pages; keep enough to diagnose.
MAX_BODY_SNIPPET = 500


class ExtractionError(Exception):
    """Base class for all extraction failures."""


class ValidationError(ExtractionError):
    """Caller-supplied input is missing or malformed (e.g. blank text)."""


class ConfigurationError(ExtractionError):
    """The model strategy was invoked without its credential configured."""


class UpstreamError(ExtractionError):
    """The generation service failed or returned output we could not parse.

    Attributes:
        status_code: HTTP status returned by the service, if any.
        body: Truncated response body (never contains the credential).
    """

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body[:MAX_BODY_SNIPPET]

    def __str__(self) -> str:
        base = super().__str__()
        if self.body:
            return f"{base}: {self.body}"
        return base
