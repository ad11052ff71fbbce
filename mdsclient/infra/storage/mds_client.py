"""Media storage (MDS) client implementation.

This module talks to the storage service over plain HTTP: payloads are sent and
received as raw byte streams, control responses are XML documents.

Dependencies:
    - httpx
    - prometheus_client
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import contextmanager
from typing import (
    Any,
    AsyncIterable,
    AsyncIterator,
    BinaryIO,
    Iterable,
    Iterator,
    TypeVar,
    Union,
)
from urllib.parse import quote

import httpx

from mdsclient.common.config import Config
from mdsclient.common.logging import mask_secrets
from mdsclient.infra.observability.metrics import (
    LATENCY,
    REQUESTS,
    TRANSPORT_ERROR_STATUS,
)
from mdsclient.infra.storage.client import DownloadInfo, UploadInfo
from mdsclient.infra.storage.error_mapping import (
    raise_for_status,
    translate_transport_errors,
)
from mdsclient.infra.storage.errors import ProtocolError, TransportError
from mdsclient.infra.storage.ranges import ByteRange, extract_payload, range_header
from mdsclient.infra.storage.urls import build_read_url
from mdsclient.infra.storage.xml_codec import decode_download_info, decode_upload_info

logger = logging.getLogger(__name__)

PING_PATH = "/ping"
UPLOAD_PATH = "/upload-{namespace}/{key}"
GET_PATH = "/get-{namespace}/{key}"
DOWNLOAD_INFO_PATH = "/downloadinfo-{namespace}/{key}"
DELETE_PATH = "/delete-{namespace}/{key}"

UPLOAD_CHUNK_SIZE = 64 * 1024

UploadBody = Union[
    bytes,
    bytearray,
    memoryview,
    BinaryIO,
    Iterable[bytes],
    AsyncIterable[bytes],
]

T = TypeVar("T")


class MdsStorageClient:
    """Client for the media storage service.

    One instance holds an immutable ``Config`` and a single reusable
    ``httpx.AsyncClient``, and may serve concurrent calls. Each operation maps
    to exactly one request; nothing is retried.

    Every operation accepts a keyword-only ``timeout`` (seconds) bounding the
    whole call. Cancelling the awaiting task aborts the in-flight request.
    """

    def __init__(
        self,
        config: Config,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Connection parameters.
            http_client: Transport to use instead of building one. An injected
                client is not closed by ``aclose()``.
        """
        self._config = config
        self._owns_http_client = http_client is None
        self._http = http_client or self._build_http_client(config)

        logger.info(
            "Initialized storage client",
            extra={
                "extra": {
                    "host": config.host,
                    "upload_port": config.upload_port,
                    "read_port": config.read_port,
                }
            },
        )

    @staticmethod
    def _build_http_client(config: Config) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=config.timeout)

    @property
    def config(self) -> Config:
        return self._config

    async def __aenter__(self) -> "MdsStorageClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def ping(self, *, timeout: float | None = None) -> None:
        """Check that the service is reachable and healthy.

        Raises:
            TransportError: If the service cannot be reached.
            ServiceError: If the probe returns a non-2xx status.
        """
        request = self._build_request("GET", self._config.read_base_url() + PING_PATH)
        response = await self._send("ping", request, timeout=timeout)
        raise_for_status(response)

    async def upload(
        self,
        namespace: str,
        key: str,
        size: int,
        body: UploadBody,
        *,
        timeout: float | None = None,
    ) -> UploadInfo:
        """Stream exactly ``size`` bytes to ``namespace/key``.

        Args:
            namespace: Target namespace.
            key: Object name within the namespace.
            size: Number of bytes ``body`` provides.
            body: Bytes, a binary file object, or a (sync or async) iterable
                of byte chunks.

        Returns:
            The decoded upload acknowledgement. Use ``info.key`` to address
            the stored object afterwards.

        Raises:
            ValueError: If ``body`` does not provide exactly ``size`` bytes.
                Detected before sending for bytes and seekable files,
                otherwise the stream is aborted.
            TransportError: If the request could not be completed or the
                body could not be read.
            ServiceError: If the service rejects the upload.
            ProtocolError: If the acknowledgement cannot be decoded.
        """
        if size < 0:
            raise ValueError(f"Upload size must be non-negative, got {size}")

        url = self._object_url(self._config.upload_base_url(), UPLOAD_PATH, namespace, key)
        request = self._build_request(
            "POST",
            url,
            headers={
                "Content-Length": str(size),
                "Content-Type": "application/octet-stream",
            },
            content=_upload_content(body, size),
        )
        response = await self._send("upload", request, timeout=timeout)
        raise_for_status(response)

        with self._protocol_errors_logged("upload", url):
            info = decode_upload_info(response.content)

        logger.info(
            "Uploaded object",
            extra={
                "extra": {
                    "namespace": namespace,
                    "key": info.key,
                    "size_bytes": info.size,
                    "written": info.written,
                    "groups": info.groups,
                }
            },
        )
        return info

    async def get_file(
        self,
        namespace: str,
        key: str,
        byte_range: ByteRange | None = None,
        *,
        timeout: float | None = None,
    ) -> bytes:
        """Read an object, or a span of it.

        Args:
            namespace: Namespace of the object.
            key: Storage key as returned in ``UploadInfo.key``.
            byte_range: ``None`` for the whole object, ``ByteRange(start)``
                for ``start`` to the end, ``ByteRange(start, end)`` for an
                inclusive span.

        Raises:
            TransportError: If the request could not be completed.
            ServiceError: ``"404 Not Found"`` for a missing object,
                ``"416 Requested Range Not Satisfiable"`` for a bad range.
            ProtocolError: If a partial payload is not exactly the
                requested span.
        """
        url = self._object_url(self._config.read_base_url(), GET_PATH, namespace, key)
        headers = {"Accept-Encoding": "identity"}
        headers.update(range_header(byte_range))
        request = self._build_request("GET", url, headers=headers)
        response = await self._send("get_file", request, timeout=timeout)
        raise_for_status(response)

        with self._protocol_errors_logged("get_file", url):
            return extract_payload(
                byte_range,
                response.status_code,
                response.content,
                response.headers.get("Content-Range"),
            )

    async def download_info(
        self,
        namespace: str,
        key: str,
        *,
        timeout: float | None = None,
    ) -> DownloadInfo:
        """Resolve the download descriptor of an object.

        Raises:
            TransportError: If the request could not be completed.
            ServiceError: If the descriptor cannot be obtained.
            ProtocolError: If the descriptor cannot be decoded.
        """
        url = self._object_url(
            self._config.read_base_url(), DOWNLOAD_INFO_PATH, namespace, key
        )
        request = self._build_request("GET", url)
        response = await self._send("download_info", request, timeout=timeout)
        raise_for_status(response)

        with self._protocol_errors_logged("download_info", url):
            return decode_download_info(response.content)

    async def read_url(
        self,
        namespace: str,
        key: str,
        prefer_direct: bool,
        *,
        timeout: float | None = None,
    ) -> str:
        """Return a URL any HTTP client can fetch the object from.

        With ``prefer_direct`` the URL names the storage node and carries no
        signature; it only works from inside the storage network. Otherwise
        the URL is signed and time-limited, safe to hand out.
        """
        info = await self.download_info(namespace, key, timeout=timeout)
        url = build_read_url(info, direct=prefer_direct, scheme=self._config.scheme)
        logger.debug(
            "Built read URL",
            extra={
                "extra": {
                    "namespace": namespace,
                    "key": key,
                    "direct": prefer_direct,
                    "url": mask_secrets(url),
                }
            },
        )
        return url

    async def delete(
        self,
        namespace: str,
        key: str,
        *,
        timeout: float | None = None,
    ) -> None:
        """Delete an object.

        Deleting an object that is already gone raises ``ServiceError`` with
        status ``"404 Not Found"``; callers decide whether that is a failure.
        """
        url = self._object_url(self._config.upload_base_url(), DELETE_PATH, namespace, key)
        request = self._build_request("DELETE", url)
        response = await self._send("delete", request, timeout=timeout)
        raise_for_status(response)
        logger.info(
            "Deleted object",
            extra={"extra": {"namespace": namespace, "key": key}},
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: Any = None,
    ) -> httpx.Request:
        request_headers = {"Authorization": self._config.auth_header}
        if headers:
            request_headers.update(headers)
        return self._http.build_request(
            method, url, headers=request_headers, content=content
        )

    @staticmethod
    def _object_url(base_url: str, template: str, namespace: str, key: str) -> str:
        if not namespace:
            raise ValueError("namespace is required")
        if not key:
            raise ValueError("key is required")
        if key.startswith("/"):
            raise ValueError(f"key must not start with '/': {key!r}")
        path = template.format(
            namespace=quote(namespace, safe=""),
            key=quote(key, safe="/"),
        )
        return base_url + path

    async def _send(
        self,
        operation: str,
        request: httpx.Request,
        *,
        timeout: float | None,
    ) -> httpx.Response:
        """Send one request, recording metrics and a structured log line."""
        url = mask_secrets(str(request.url))
        start = time.perf_counter()
        try:
            with translate_transport_errors(request.method, url):
                if timeout is None:
                    response = await self._http.send(request)
                else:
                    response = await asyncio.wait_for(self._http.send(request), timeout)
        except TransportError as exc:
            elapsed = time.perf_counter() - start
            REQUESTS.labels(operation, TRANSPORT_ERROR_STATUS).inc()
            LATENCY.labels(operation).observe(elapsed)
            logger.error(
                "mds_request_failed method=%s operation=%s duration_ms=%.3f url=%s",
                request.method,
                operation,
                round(elapsed * 1000, 3),
                url,
                extra={
                    "extra": {
                        "method": request.method,
                        "operation": operation,
                        "url": url,
                        "duration_ms": round(elapsed * 1000, 3),
                        "error": str(exc),
                    }
                },
            )
            raise

        elapsed = time.perf_counter() - start
        status_code = response.status_code
        REQUESTS.labels(operation, str(status_code)).inc()
        LATENCY.labels(operation).observe(elapsed)

        level = logging.INFO
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING

        duration_ms = round(elapsed * 1000, 3)
        logger.log(
            level,
            "mds_request method=%s operation=%s status=%s duration_ms=%.3f url=%s",
            request.method,
            operation,
            status_code,
            duration_ms,
            url,
            extra={
                "extra": {
                    "method": request.method,
                    "operation": operation,
                    "url": url,
                    "status": status_code,
                    "duration_ms": duration_ms,
                    "response_bytes": len(response.content),
                }
            },
        )
        return response

    @contextmanager
    def _protocol_errors_logged(self, operation: str, url: str) -> Iterator[None]:
        try:
            yield
        except ProtocolError as exc:
            logger.error(
                "Unexpected response body",
                extra={
                    "extra": {
                        "operation": operation,
                        "url": mask_secrets(url),
                        "error": str(exc),
                    }
                },
            )
            raise


# ---------------------------------------------------------------------------
# Upload body adapters
# ---------------------------------------------------------------------------


def _upload_content(body: UploadBody, size: int) -> bytes | AsyncIterator[bytes]:
    """Normalize an upload body into something httpx can stream."""
    if isinstance(body, str):
        raise TypeError("Upload body must be bytes, not str")

    if isinstance(body, (bytes, bytearray, memoryview)):
        data = bytes(body)
        if len(data) != size:
            raise ValueError(
                f"Upload body has {len(data)} bytes, declared size is {size}"
            )
        return data

    if hasattr(body, "read"):
        remaining = _remaining_length(body)
        if remaining is not None and remaining != size:
            raise ValueError(
                f"Upload file has {remaining} bytes left, declared size is {size}"
            )
        return _exact_size(_read_chunks(body, size), size)

    if isinstance(body, AsyncIterable):
        return _exact_size(body, size)

    if isinstance(body, Iterable):
        return _exact_size(_iterate(body), size)

    raise TypeError(f"Unsupported upload body type: {type(body).__name__}")


def _remaining_length(fileobj: BinaryIO) -> int | None:
    """Bytes left in a seekable file, or None if it cannot be determined."""
    try:
        if not fileobj.seekable():
            return None
        position = fileobj.tell()
        end = fileobj.seek(0, 2)
        fileobj.seek(position)
    except (AttributeError, OSError, ValueError):
        return None
    return end - position


async def _read_chunks(fileobj: BinaryIO, size: int) -> AsyncIterator[bytes]:
    """Read ``fileobj`` off the event loop, then probe once past ``size``."""
    remaining = size
    while remaining > 0:
        chunk = await asyncio.to_thread(fileobj.read, min(UPLOAD_CHUNK_SIZE, remaining))
        if not chunk:
            return
        remaining -= len(chunk)
        yield chunk
    extra = await asyncio.to_thread(fileobj.read, 1)
    if extra:
        yield extra


async def _iterate(chunks: Iterable[T]) -> AsyncIterator[T]:
    for chunk in chunks:
        yield chunk


async def _exact_size(chunks: AsyncIterable[bytes], size: int) -> AsyncIterator[bytes]:
    """Pass chunks through, aborting as soon as the total diverges from ``size``.

    Raises:
        ValueError: If the source provides more or fewer than ``size`` bytes.
        TransportError: If reading the source fails.
    """
    sent = 0
    try:
        async for chunk in chunks:
            if not chunk:
                continue
            sent += len(chunk)
            if sent > size:
                raise ValueError(f"Upload body exceeds declared size of {size} bytes")
            yield bytes(chunk)
    except OSError as exc:
        raise TransportError(
            f"Upload body could not be read after {sent} bytes: {exc}"
        ) from exc
    if sent != size:
        raise ValueError(f"Upload body ended after {sent} of {size} declared bytes")
