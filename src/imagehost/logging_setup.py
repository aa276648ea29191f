from __future__ import annotations

import json
import logging
import logging.config

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_STANDARD_LOGRECORD_ATTRS = {
    "name",
    "msg",
    "message",
    "asctime",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}
_NOISY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "google", "multipart")

DEFAULT_CONSOLE_FORMAT = (
    "%(asctime)s %(levelname)s [%(request_id)s] "
    "%(module)s %(pathname)s:%(lineno)d %(message)s"
)


class LoggingSettings(BaseSettings):
    """Environment overrides for console logging."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str | None = None
    console_log_format: str | None = None

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str | None) -> str | None:
        return str(value).upper() if value else None


class _RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id") or getattr(record, "request_id") in (None, ""):
            record.request_id = "-"
        return True


class _JsonExtraFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = _extract_extras(record)
        if not extras:
            return base
        extras_json = json.dumps(extras, indent=2, default=str, sort_keys=True)
        return f"{base}\n{extras_json}"


def _extract_extras(record: logging.LogRecord) -> dict[str, object]:
    extras: dict[str, object] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOGRECORD_ATTRS:
            continue
        if key == "request_id":
            continue
        extras[key] = value
    return extras


def _install_request_filter() -> None:
    root = logging.getLogger()
    for handler in root.handlers:
        if any(isinstance(f, _RequestIdFilter) for f in handler.filters):
            continue
        handler.addFilter(_RequestIdFilter())


def configure_logging(*, log_level: str = "INFO") -> None:
    """Configure root logging with a consistent format.

    Format includes `request_id` plus `module:lineno`. `LOG_LEVEL` and
    `CONSOLE_LOG_FORMAT` (via env or `.env`) override the defaults.
    """
    settings = LoggingSettings()
    console_level_name = settings.log_level or str(log_level).upper()
    console_fmt = settings.console_log_format or DEFAULT_CONSOLE_FORMAT

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": "imagehost.logging_setup._JsonExtraFormatter",
                    "format": console_fmt,
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": console_level_name,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {"level": "DEBUG", "handlers": ["console"]},
        }
    )

    _install_request_filter()
    logging.captureWarnings(True)

    # Reduce noisy third-party SDK logs by default.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
