"""Async client for the media storage (MDS) service."""

from mdsclient.common.config import Config, get_config
from mdsclient.infra.storage import (
    ByteRange,
    CompleteInfo,
    DownloadInfo,
    MdsStorageClient,
    ProtocolError,
    ServiceError,
    StorageError,
    TransportError,
    UploadInfo,
)

__all__ = [
    "ByteRange",
    "CompleteInfo",
    "Config",
    "DownloadInfo",
    "MdsStorageClient",
    "ProtocolError",
    "ServiceError",
    "StorageError",
    "TransportError",
    "UploadInfo",
    "get_config",
]
