"""Error taxonomy for storage operations.

Every failure surfaced by the storage client is one of three kinds:

- ``TransportError``: the request never completed a round-trip (DNS, connect,
  timeout, stream write failure). Safe to consider for caller-driven retry.
- ``ServiceError``: the service answered with a non-2xx status. Carries the
  status line verbatim, e.g. ``"404 Not Found"``.
- ``ProtocolError``: the service answered 2xx but the body did not have the
  expected shape.

Callers can branch on the exception class or on ``error.kind``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from http import HTTPStatus


class ErrorKind(str, enum.Enum):
    TRANSPORT = "transport"
    SERVICE = "service"
    PROTOCOL = "protocol"


class StorageError(RuntimeError):
    """Base class for all storage client failures."""

    kind: ErrorKind


class TransportError(StorageError):
    """Raised when a request does not complete a round-trip."""

    kind = ErrorKind.TRANSPORT


class DeadlineExceededError(TransportError):
    """Raised when a per-call timeout expires before the call completes."""


@dataclass(frozen=True, slots=True)
class ErrorBody:
    """Parsed XML error document returned alongside a non-2xx status."""

    tag: str
    message: str | None = None
    fields: dict[str, str] = field(default_factory=dict)


class ServiceError(StorageError):
    """Raised when the service answers with a non-success status.

    Attributes:
        status: Status line, ``"<code> <reason phrase>"``.
        status_code: Numeric HTTP status.
        body: Parsed XML error body, if the service sent one.
        method: HTTP method of the failed request.
        url: Request URL (without credentials).
    """

    kind = ErrorKind.SERVICE

    def __init__(
        self,
        status: str,
        *,
        status_code: int,
        body: ErrorBody | None = None,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        self.status = status
        self.status_code = status_code
        self.body = body
        self.method = method
        self.url = url
        message = status
        if method and url:
            message = f"{method} {url}: {status}"
        if body is not None and body.message:
            message = f"{message} ({body.message})"
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == HTTPStatus.NOT_FOUND


class ProtocolError(StorageError):
    """Raised when a successful response body does not have the expected shape."""

    kind = ErrorKind.PROTOCOL


class MalformedDocumentError(ProtocolError):
    """Raised when a response body is not well-formed XML."""


class MissingFieldError(ProtocolError):
    """Raised when a required field is absent from a response document."""

    def __init__(self, document: str, field_name: str) -> None:
        self.document = document
        self.field = field_name
        super().__init__(f"{document} document is missing required field '{field_name}'")


class InvalidFieldError(ProtocolError):
    """Raised when a response field is present but cannot be interpreted."""

    def __init__(self, document: str, field_name: str, value: str) -> None:
        self.document = document
        self.field = field_name
        self.value = value
        super().__init__(
            f"{document} document has invalid value {value!r} for field '{field_name}'"
        )


class UnexpectedPayloadError(ProtocolError):
    """Raised when a ranged read returns a payload of the wrong length."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} payload bytes, received {actual}")
