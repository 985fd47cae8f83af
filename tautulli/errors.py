"""Tautulli client exception hierarchy."""

from typing import Optional


class TautulliError(Exception):
    """Base exception for all Tautulli client errors."""


class ContextError(TautulliError):
    """A request was made without a usable cancellation context."""

    def __init__(self, message: str = "context must be non-nil"):
        super().__init__(message)


class ContextCanceledError(ContextError):
    def __init__(self, message: str = "context canceled"):
        super().__init__(message)


class DeadlineExceededError(ContextError):
    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


class EncodingError(TautulliError):
    """Parameters could not be encoded into a query string."""


class ConfigurationError(TautulliError):
    """Invalid configuration or missing settings."""


class TransportError(TautulliError):
    """The HTTP round trip itself failed (connection, DNS, protocol)."""

    def __init__(self, method: str, url: str, detail: str, cause_type: Optional[type] = None):
        self.method = method
        self.url = url
        self.detail = detail
        # Only the type is kept; the original exception text may hold secrets
        self.cause_type = cause_type
        super().__init__(f"{method} {url}: {detail}")


class DecodeError(TautulliError):
    """A successful response body could not be decoded."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class AcceptedError(TautulliError):
    """The server answered 202 Accepted.

    Not a real failure: the job was scheduled on the Tautulli side and the
    result should be available soon, so the request can be repeated later.
    ``raw`` holds the response body.
    """

    def __init__(self, raw: bytes = b""):
        super().__init__("job scheduled on Tautulli side; try again later")
        self.raw = raw

    def __eq__(self, other):
        if not isinstance(other, AcceptedError):
            return NotImplemented
        return self.raw == other.raw

    def __hash__(self):
        return hash((AcceptedError, self.raw))

    def __repr__(self):
        return f"AcceptedError(raw={self.raw!r})"


class FieldError(TautulliError):
    """A single structured error reported by the API.

    Error bodies are not always consistent; sometimes the body is just a
    string, in which case only ``message`` is set.
    """

    def __init__(self, resource: str = "", field: str = "", code: str = "", message: str = ""):
        self.resource = resource
        self.field = field
        self.code = code
        self.message = message
        super().__init__(str(self))

    def __str__(self):
        if not (self.resource or self.field or self.code):
            return self.message
        return f"{self.code} error caused by {self.field} field on {self.resource} resource"


class ErrorResponse(TautulliError):
    """The server rejected the request with a non-2xx status."""

    def __init__(self, response, method: str, url: str, status: int, error: Optional[FieldError] = None):
        self.response = response
        self.method = method
        self.url = url
        self.status = status
        self.error = error
        super().__init__(str(self))

    @property
    def message(self) -> str:
        return self.error.message if self.error else ""

    def __str__(self):
        text = f"{self.method} {self.url}: {self.status}"
        if self.message:
            text += f" {self.message}"
        return text


class CommandError(TautulliError):
    """The API answered 200 but reported ``result: error`` in its envelope."""

    def __init__(self, command: str, message: Optional[str]):
        self.command = command
        self.message = message or "Unknown error"
        super().__init__(f"Tautulli API error for {command}: {self.message}")
