"""Configuration models."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class GCSPlatformConfig(BaseModel):
    """Google Cloud Storage platform configuration."""

    bucket: str
    project: str | None = None
    credentials_env: str = "GOOGLE_APPLICATION_CREDENTIALS"
    public_host: str = "storage.googleapis.com"
    signed_urls: bool = False
    signed_url_ttl_s: int = Field(default=3600, ge=1, le=7 * 24 * 3600)


class S3PlatformConfig(BaseModel):
    """S3-compatible platform configuration (AWS S3, R2, MinIO)."""

    bucket: str
    region: str | None = None
    endpoint_url: str | None = None
    access_key_id_env: str = "AWS_ACCESS_KEY_ID"
    secret_access_key_env: str = "AWS_SECRET_ACCESS_KEY"
    public_base_url: str | None = None
    presign_ttl_s: int = Field(default=3600, ge=1)
    cache_control: str | None = "public, max-age=31536000"


class LocalPlatformConfig(BaseModel):
    """Local filesystem platform configuration.

    The defaults point at the built-in server, which speaks plain HTTP. With
    ``upload.secure_urls`` on, returned URLs use https and only load behind a
    TLS-terminating proxy.
    """

    root: str = "./storage"
    public_base_url: str = "http://localhost:8080/media"
    serve_mount: str | None = "/media"

    @field_validator("serve_mount")
    @classmethod
    def _normalize_mount(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = "/" + value.strip("/")
        if cleaned == "/":
            raise ValueError("serve_mount must not be the site root")
        return cleaned


class PlatformConfig(BaseModel):
    """Hosting platform selection.

    Note: Backend names are validated against the plugin registry at runtime.
    This allows third-party platforms via entry points.
    """

    model_config = {"extra": "allow"}  # Allow third-party platform configs

    backend: str = "gcs"
    gcs: GCSPlatformConfig | None = None
    s3: S3PlatformConfig | None = None
    local: LocalPlatformConfig | None = None

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value

    @model_validator(mode="after")
    def _validate_builtin_backends(self) -> PlatformConfig:
        """Validate that built-in backends have their required config."""
        match self.backend:
            case "gcs" | "s3" | "local":
                if getattr(self, self.backend) is None:
                    raise ValueError(
                        f"platform.{self.backend} is required when backend={self.backend}. "
                        f"Add 'platform.{self.backend}' section to your config."
                    )
            case _:
                # Third-party backend - validation happens at plugin load time
                pass
        return self

    def backend_settings(self) -> dict[str, Any] | BaseModel:
        """Return the backend-specific settings block."""
        settings = getattr(self, self.backend, None)
        if settings is None and self.model_extra:
            settings = self.model_extra.get(self.backend)
        if settings is None:
            raise ValueError(
                f"Missing '{self.backend}' config in platform section. "
                f"Add 'platform.{self.backend}' to your config."
            )
        return settings


class UploadConfig(BaseModel):
    """Upload pipeline settings."""

    form_field: str = Field(default="image", min_length=1)
    temp_prefix: str = "image/temp"
    create_subdir: str = "create"
    secure_urls: bool = True
    warn_on_overwrite: bool = True
    cleanup_orphans: bool = False

    @field_validator("temp_prefix", "create_subdir")
    @classmethod
    def _validate_relative(cls, value: str) -> str:
        cleaned = value.strip("/")
        path = PurePosixPath(cleaned)
        if "\\" in cleaned or ".." in path.parts:
            raise ValueError(f"must be a relative path without '..': {value}")
        return cleaned


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class UIConfig(BaseModel):
    """Root page configuration."""

    index_template: str | None = None


class Config(BaseModel):
    """Main configuration."""

    version: int = 1
    server: ServerConfig = Field(default_factory=ServerConfig)
    platform: PlatformConfig
    upload: UploadConfig = Field(default_factory=UploadConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
