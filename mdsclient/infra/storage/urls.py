"""Read URLs derived from a download descriptor."""

from __future__ import annotations

from urllib.parse import urlencode

from mdsclient.infra.storage.client import DownloadInfo


def _base(info: DownloadInfo, scheme: str) -> str:
    path = info.path if info.path.startswith("/") else f"/{info.path}"
    return f"{scheme}://{info.host}{path}"


def direct_url(info: DownloadInfo, scheme: str = "http") -> str:
    """URL naming the storage node directly.

    Only fetchable from a network position that can reach ``info.host``.
    """
    return _base(info, scheme)


def signed_url(info: DownloadInfo, scheme: str = "http") -> str:
    """Publicly fetchable URL bounded by the descriptor's timestamp token.

    The tokens are forwarded as-is; region ``-1`` means no region pinning.
    """
    query = urlencode(
        [("ts", info.ts), ("region", str(info.region)), ("sign", info.sign)],
        safe=":",
    )
    return f"{_base(info, scheme)}?{query}"


def build_read_url(info: DownloadInfo, *, direct: bool, scheme: str = "http") -> str:
    if direct:
        return direct_url(info, scheme)
    return signed_url(info, scheme)
