from __future__ import annotations


class ConsoleError(Exception):
    """Base exception for all console-service errors."""


class ApiTransportError(ConsoleError):
    """Network level failures (connection refused, DNS, timeouts)."""


class ApiResponseError(ConsoleError):
    """Non-2xx responses, or 2xx bodies that do not match the expected shape.

    The message comes from the response body when present.
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ClientValidationError(ConsoleError):
    """Input rejected before any request is sent."""


class PaymentDeclinedError(ConsoleError):
    """Card payment rejected by the processor, carrying the decline code."""

    def __init__(self, code: str | None, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class RequestCancelledError(ConsoleError):
    """Work discarded because the owning view scope was closed."""
