"""Remote data gateway error hierarchy.

Callers generally catch GatewayError and turn it into a local "unavailable"
display for one widget. The subclasses exist so a timeout can be told apart
from the backend being down or answering with garbage.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Any failure talking to the backend."""

    def __init__(self, message: str, endpoint: str | None = None):
        super().__init__(message)
        self.message = message
        self.endpoint = endpoint


class GatewayTimeout(GatewayError):
    """The backend didn't answer within the call's timeout."""


class GatewayUnavailable(GatewayError):
    """Connection-level failure (refused, DNS, reset, ...)."""


class GatewayHTTPError(GatewayError):
    """Backend answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status: int | None = None,
        detail: str | None = None,
    ):
        super().__init__(message, endpoint)
        self.status = status
        self.detail = detail


class SchemaError(GatewayError):
    """Backend payload doesn't match the structure we read."""
