"""Byte-range requests and partial-content responses."""

from __future__ import annotations

import re
from dataclasses import dataclass
from http import HTTPStatus

from mdsclient.infra.storage.errors import ProtocolError, UnexpectedPayloadError

_CONTENT_RANGE_RE = re.compile(r"^\s*bytes\s+(\d+)-(\d+)/(\d+|\*)\s*$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ByteRange:
    """Zero-based byte span of an object.

    ``ByteRange(start)`` reads from ``start`` to the end of the object;
    ``ByteRange(start, end)`` reads ``start`` through ``end`` inclusive.
    A missing range (``None`` at call sites) reads the whole object.
    """

    start: int
    end: int | None = None

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"Range start must be non-negative, got {self.start}")
        if self.end is not None and self.end < self.start:
            raise ValueError(
                f"Range end ({self.end}) must not precede start ({self.start})"
            )

    @property
    def length(self) -> int | None:
        if self.end is None:
            return None
        return self.end - self.start + 1

    def header(self) -> str:
        if self.end is None:
            return f"bytes={self.start}-"
        return f"bytes={self.start}-{self.end}"


def range_header(byte_range: ByteRange | None) -> dict[str, str]:
    if byte_range is None:
        return {}
    return {"Range": byte_range.header()}


def parse_content_range(value: str | None) -> tuple[int, int, int | None] | None:
    """Parse ``Content-Range: bytes <first>-<last>/<total|*>``."""
    if not value:
        return None
    match = _CONTENT_RANGE_RE.match(value)
    if match is None:
        return None
    first, last, total = match.groups()
    return int(first), int(last), None if total == "*" else int(total)


def extract_payload(
    byte_range: ByteRange | None,
    status_code: int,
    body: bytes,
    content_range: str | None = None,
) -> bytes:
    """Return exactly the requested span of a successful read response.

    Raises:
        UnexpectedPayloadError: If a partial payload has the wrong length.
        ProtocolError: If the partial response does not start at the
            requested offset.
    """
    if byte_range is None:
        return body

    if status_code != HTTPStatus.PARTIAL_CONTENT:
        # Range ignored by the server; the body is the whole object.
        return _slice_full_body(byte_range, body)

    expected = byte_range.length
    announced = parse_content_range(content_range)
    if announced is not None:
        first, last, _ = announced
        if first != byte_range.start:
            raise ProtocolError(
                f"Partial content starts at byte {first}, requested {byte_range.start}"
            )
        if expected is None:
            expected = last - first + 1

    if expected is not None and len(body) != expected:
        raise UnexpectedPayloadError(expected, len(body))
    return body


def _slice_full_body(byte_range: ByteRange, body: bytes) -> bytes:
    size = len(body)
    if byte_range.start > size:
        raise ProtocolError(
            f"Range start {byte_range.start} is past the end of a {size}-byte object"
        )
    if byte_range.end is None:
        return body[byte_range.start :]
    if byte_range.end >= size:
        raise UnexpectedPayloadError(byte_range.length or 0, size - byte_range.start)
    return body[byte_range.start : byte_range.end + 1]
