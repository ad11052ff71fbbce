"""Media storage (MDS) protocol client.

This package implements the HTTP protocol of the media storage service:
streamed uploads, ranged reads, direct and signed read URLs, deletes, and a
typed error taxonomy for transport, service and protocol failures.
"""

from .client import CompleteInfo, DownloadInfo, UploadInfo
from .errors import (
    DeadlineExceededError,
    ErrorBody,
    ErrorKind,
    InvalidFieldError,
    MalformedDocumentError,
    MissingFieldError,
    ProtocolError,
    ServiceError,
    StorageError,
    TransportError,
    UnexpectedPayloadError,
)
from .mds_client import MdsStorageClient
from .ranges import ByteRange

__all__ = [
    "ByteRange",
    "CompleteInfo",
    "DeadlineExceededError",
    "DownloadInfo",
    "ErrorBody",
    "ErrorKind",
    "InvalidFieldError",
    "MalformedDocumentError",
    "MdsStorageClient",
    "MissingFieldError",
    "ProtocolError",
    "ServiceError",
    "StorageError",
    "TransportError",
    "UnexpectedPayloadError",
    "UploadInfo",
]
