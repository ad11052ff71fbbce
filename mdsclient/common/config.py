from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

DEFAULT_SCHEME = "http"
DEFAULT_TIMEOUT = 30.0
SUPPORTED_SCHEMES: tuple[str, ...] = ("http", "https")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _require(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise ValueError(f"{name} must be set to configure the storage client.")
    return value


def _as_port(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer port, got {value!r}.") from exc


@dataclass(frozen=True, slots=True)
class Config:
    """Connection parameters for the storage service.

    ``auth_header`` is the full ``Authorization`` header value, e.g.
    ``"Basic <base64 credentials>"``.
    """

    host: str
    upload_port: int
    read_port: int
    auth_header: str
    scheme: str = DEFAULT_SCHEME
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("host is required.")
        for name in ("upload_port", "read_port"):
            port = getattr(self, name)
            if not 0 < port < 65536:
                raise ValueError(f"{name} must be within 1..65535, got {port}.")
        if not self.auth_header:
            raise ValueError("auth_header is required.")
        if self.scheme not in SUPPORTED_SCHEMES:
            raise ValueError(
                f"scheme must be one of {', '.join(SUPPORTED_SCHEMES)}, got {self.scheme!r}."
            )
        if self.timeout <= 0:
            raise ValueError("timeout must be positive.")

    def __repr__(self) -> str:
        return (
            f"Config(host={self.host!r}, upload_port={self.upload_port}, "
            f"read_port={self.read_port}, auth_header='***', "
            f"scheme={self.scheme!r}, timeout={self.timeout})"
        )

    def upload_base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.upload_port}"

    def read_base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.read_port}"

    @classmethod
    def from_environment(cls) -> "Config":
        _load_env_file()
        return cls(
            host=_require("MDS_HOST"),
            upload_port=_as_port("MDS_UPLOAD_PORT", _require("MDS_UPLOAD_PORT")),
            read_port=_as_port("MDS_READ_PORT", _require("MDS_READ_PORT")),
            auth_header=_require("MDS_AUTH_HEADER"),
            scheme=os.environ.get("MDS_SCHEME", DEFAULT_SCHEME).strip().lower(),
            timeout=float(os.environ.get("MDS_TIMEOUT", DEFAULT_TIMEOUT)),
        )


@lru_cache(maxsize=1)
def get_config() -> Config:
    return Config.from_environment()
