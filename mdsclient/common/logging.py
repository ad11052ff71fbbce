import json
import logging
import re
from logging.config import dictConfig

_SECRET_PATTERNS = (
    re.compile(r"(?i)(authorization\s*:\s*)(basic|bearer|oauth)?\s*[^\s,]+"),
    re.compile(r"(?i)\b(sign|token|secret|password|auth_header)=([^&\s]+)"),
)


def setup_logging(level: str = "INFO") -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
            },
            "root": {
                "level": level.upper(),
                "handlers": ["console"],
            },
            "loggers": {
                # httpx logs every request at INFO with the full URL, including
                # signing tokens.
                "httpx": {"level": "WARNING"},
                "httpcore": {"level": "WARNING"},
            },
        }
    )


def mask_secrets(text: str) -> str:
    """Replace credential-like values (auth headers, signing tokens) with ``***``."""
    masked = _SECRET_PATTERNS[0].sub(lambda m: m.group(1) + "***", text)
    return _SECRET_PATTERNS[1].sub(lambda m: f"{m.group(1)}=***", masked)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            payload.update(record.extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)
