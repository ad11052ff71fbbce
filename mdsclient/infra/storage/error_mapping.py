"""Classification of HTTP outcomes into the storage error taxonomy."""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import Iterator

import httpx

from mdsclient.common.logging import mask_secrets
from mdsclient.infra.storage.errors import (
    DeadlineExceededError,
    ServiceError,
    TransportError,
)
from mdsclient.infra.storage.xml_codec import decode_error_body


def status_line(status_code: int, reason_phrase: str | None = None) -> str:
    """Format ``"<code> <reason>"`` using the standard reason phrase.

    Non-standard codes fall back to the phrase sent on the wire.
    """
    phrase = httpx.codes.get_reason_phrase(status_code) or (reason_phrase or "")
    return f"{status_code} {phrase}".rstrip()


def raise_for_status(response: httpx.Response) -> None:
    """Raise ``ServiceError`` for any non-2xx response.

    Expects the response body to have been read.
    """
    if response.is_success:
        return

    body = decode_error_body(response.content)
    request = response.request
    raise ServiceError(
        status_line(response.status_code, response.reason_phrase),
        status_code=response.status_code,
        body=body,
        method=request.method,
        url=mask_secrets(str(request.url)),
    )


@contextmanager
def translate_transport_errors(method: str, url: str) -> Iterator[None]:
    """Re-raise network-level failures as ``TransportError``.

    ``asyncio.CancelledError`` is never translated.
    """
    safe_url = mask_secrets(url)
    try:
        yield
    except asyncio.TimeoutError as exc:
        raise DeadlineExceededError(f"{method} {safe_url}: deadline exceeded") from exc
    except httpx.TimeoutException as exc:
        raise TransportError(
            f"{method} {safe_url}: timed out ({type(exc).__name__})"
        ) from exc
    except httpx.TransportError as exc:
        raise TransportError(
            f"{method} {safe_url}: {type(exc).__name__}: {exc}"
        ) from exc
