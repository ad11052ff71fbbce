"""Storage client data types.

This module defines the records exchanged with the media storage service:
upload acknowledgements, per-node write results and download descriptors.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CompleteInfo:
    """One storage node's write acknowledgement."""

    addr: str
    path: str
    group: int
    status: int

    @property
    def succeeded(self) -> bool:
        return self.status == 0


@dataclass(frozen=True, slots=True)
class UploadInfo:
    """Result of a successful upload.

    ``key`` is the storage key assigned by the service, in the form
    ``"<group>/<name>"``. It is the key to pass to subsequent reads and
    deletes, not the key given to the upload call.
    """

    id: str
    obj: str
    key: str
    size: int
    groups: int
    complete: tuple[CompleteInfo, ...]
    written: int

    @property
    def group(self) -> int | None:
        """Replication group prefix of ``key``, if it is numeric."""
        prefix, sep, _ = self.key.partition("/")
        if not sep or not prefix.isdigit():
            return None
        return int(prefix)

    @property
    def name(self) -> str:
        """Object name part of ``key``."""
        _, sep, name = self.key.partition("/")
        return name if sep else self.key


@dataclass(frozen=True, slots=True)
class DownloadInfo:
    """Descriptor for reading an object directly from a storage node."""

    host: str
    path: str
    ts: str
    region: int
    sign: str
