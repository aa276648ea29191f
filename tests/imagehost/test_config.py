"""Tests for configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import BaseModel

from imagehost.config import (
    ConfigError,
    ConfigErrorCode,
    available_platforms,
    load_config,
    load_config_from_dict,
)
from imagehost.interfaces import BlobResolver, ObjectStore, URLResolver
from imagehost.models.config import GCSPlatformConfig, LocalPlatformConfig
from imagehost.plugins.registry import PluginType, get_plugin_names, plugin


def _gcs_config() -> dict[str, object]:
    return {"platform": {"backend": "gcs", "gcs": {"bucket": "yourbucketname.appspot.com"}}}


def test_load_config_from_dict_defaults() -> None:
    """Omitted sections fall back to the documented defaults."""
    # Given a minimal GCS config
    # When loading it
    config = load_config_from_dict(_gcs_config())

    # Then defaults are applied
    assert config.platform.backend == "gcs"
    assert isinstance(config.platform.gcs, GCSPlatformConfig)
    assert config.upload.form_field == "image"
    assert config.upload.temp_prefix == "image/temp"
    assert config.upload.create_subdir == "create"
    assert config.upload.secure_urls is True
    assert config.server.port == 8080
    assert config.ui.index_template is None


def test_backend_name_is_case_insensitive() -> None:
    """Backend names are normalized to lowercase."""
    data = {"platform": {"backend": "LOCAL", "local": {}}}

    config = load_config_from_dict(data)

    assert config.platform.backend == "local"
    assert isinstance(config.platform.local, LocalPlatformConfig)


def test_missing_platform_section_fails_validation() -> None:
    """A built-in backend requires its own settings block."""
    # Given a GCS backend without a gcs section
    data = {"platform": {"backend": "gcs"}}

    # When loading the config
    with pytest.raises(ConfigError) as exc_info:
        load_config_from_dict(data)

    # Then a validation error names the missing section
    assert exc_info.value.code == ConfigErrorCode.VALIDATION_FAILED
    assert "platform.gcs is required" in str(exc_info.value)


def test_unknown_backend_is_rejected() -> None:
    """Backends without registered plugins are rejected with the valid names."""
    data = {"platform": {"backend": "ftp", "ftp": {"host": "x"}}}

    with pytest.raises(ConfigError) as exc_info:
        load_config_from_dict(data)

    assert exc_info.value.code == ConfigErrorCode.PLUGIN_NAMES_INVALID
    assert "gcs" in str(exc_info.value)


def test_invalid_upload_prefix_is_rejected() -> None:
    """Upload prefixes must stay relative."""
    data = _gcs_config() | {"upload": {"temp_prefix": "../outside"}}

    with pytest.raises(ConfigError) as exc_info:
        load_config_from_dict(data)

    assert exc_info.value.code == ConfigErrorCode.VALIDATION_FAILED
    assert "upload -> temp_prefix" in str(exc_info.value)


def test_builtin_platforms_are_available() -> None:
    """gcs, s3 and local each provide all three collaborators."""
    load_config_from_dict(_gcs_config())

    assert {"gcs", "local", "s3"} <= set(available_platforms())


class _AcmeSettings(BaseModel):
    endpoint: str


def _register_acme() -> None:
    if "acme" in get_plugin_names(PluginType.OBJECT_STORE):
        return

    @plugin(plugin_type=PluginType.OBJECT_STORE, name="acme")
    class _AcmeStore:
        config_cls = _AcmeSettings

        @classmethod
        def create(cls, config: _AcmeSettings) -> ObjectStore:
            raise NotImplementedError

    @plugin(plugin_type=PluginType.BLOB_RESOLVER, name="acme")
    class _AcmeBlobs:
        config_cls = _AcmeSettings

        @classmethod
        def create(cls, config: _AcmeSettings) -> BlobResolver:
            raise NotImplementedError

    @plugin(plugin_type=PluginType.URL_RESOLVER, name="acme")
    class _AcmeURLs:
        config_cls = _AcmeSettings

        @classmethod
        def create(cls, config: _AcmeSettings) -> URLResolver:
            raise NotImplementedError


def test_third_party_platform_config_preserved() -> None:
    """Extra platform sections are validated by the plugin's own model."""
    # Given a registered third-party platform
    _register_acme()

    # When loading a config that selects it
    config = load_config_from_dict(
        {"platform": {"backend": "acme", "acme": {"endpoint": "https://acme.test"}}}
    )

    # Then its settings pass through untouched
    assert config.platform.backend_settings() == {"endpoint": "https://acme.test"}

    # Then invalid settings are reported as plugin config errors
    with pytest.raises(ConfigError) as exc_info:
        load_config_from_dict({"platform": {"backend": "acme", "acme": {}}})
    assert exc_info.value.code == ConfigErrorCode.PLUGIN_CONFIG_INVALID


def test_load_config_from_yaml_file(tmp_path: Path) -> None:
    """YAML files are parsed and validated."""
    # Given a YAML config file
    path = tmp_path / "config.yaml"
    path.write_text(
        """
platform:
  backend: s3
  s3:
    bucket: images
    region: us-east-1
upload:
  form_field: photo
  secure_urls: false
"""
    )

    # When loading it
    config = load_config(path)

    # Then all fields are parsed
    assert config.platform.backend == "s3"
    assert config.platform.s3 is not None
    assert config.platform.s3.bucket == "images"
    assert config.upload.form_field == "photo"
    assert config.upload.secure_urls is False


def test_load_config_file_not_found() -> None:
    """Missing files raise FILE_NOT_FOUND."""
    with pytest.raises(ConfigError) as exc_info:
        load_config(Path("/nonexistent/config.yaml"))

    assert exc_info.value.code == ConfigErrorCode.FILE_NOT_FOUND


@pytest.mark.parametrize(
    ("content", "code"),
    [
        ("invalid: yaml: content: [", ConfigErrorCode.YAML_INVALID),
        ("", ConfigErrorCode.EMPTY_FILE),
        ("- just\n- a list\n", ConfigErrorCode.ROOT_NOT_MAPPING),
    ],
)
def test_load_config_rejects_bad_files(tmp_path: Path, content: str, code: ConfigErrorCode) -> None:
    """Malformed files map to stable error codes."""
    # Given a malformed YAML file
    path = tmp_path / "config.yaml"
    path.write_text(content)

    # When loading the config
    with pytest.raises(ConfigError) as exc_info:
        load_config(path)

    # Then the matching code is reported
    assert exc_info.value.code == code


@pytest.mark.skipif(os.name != "posix", reason="POSIX file modes only")
def test_permissive_config_mode_warns(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    """World-readable config files produce a warning."""
    path = tmp_path / "config.yaml"
    path.write_text("platform:\n  backend: local\n  local: {}\n")
    path.chmod(0o644)

    load_config(path)

    assert "permissions are too permissive" in caplog.text


def test_load_example_config() -> None:
    """The shipped example config loads successfully."""
    # Given the example config file on disk
    example_path = Path(__file__).parent.parent.parent / "config" / "example.yaml"
    if not example_path.exists():
        pytest.skip("Example config not found")

    # When loading the config
    config = load_config(example_path)

    # Then expected fields are present
    assert config.platform.backend == "gcs"
    assert config.platform.gcs is not None
    assert config.platform.gcs.bucket == "yourbucketname.appspot.com"
    assert config.upload.form_field == "image"
