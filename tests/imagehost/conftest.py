"""Shared pytest fixtures for ImageHost tests."""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

# Add src to sys.path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path.resolve()) not in sys.path:
    sys.path.insert(0, str(src_path.resolve()))

import pytest
from fastapi import FastAPI

from imagehost.api.server import create_app
from imagehost.app import Application
from imagehost.models.config import Config, UploadConfig
from imagehost.pipeline import RequestContext, UploadPipeline
from imagehost.plugins.platforms import Platform
from imagehost.ui import IndexTemplate
from tests.imagehost.mocks import MockBlobResolver, MockObjectStore, MockURLResolver


def make_config(**overrides: Any) -> Config:
    """Build a Config with a GCS platform section and optional overrides."""
    data: dict[str, Any] = {"platform": {"backend": "gcs", "gcs": {"bucket": "test-bucket"}}}
    data.update(overrides)
    return Config.model_validate(data)


@pytest.fixture
def build_config() -> Callable[..., Config]:
    """Factory for Config instances with a GCS platform section."""
    return make_config


@pytest.fixture
def upload_config() -> UploadConfig:
    return UploadConfig()


@pytest.fixture
def request_context(upload_config: UploadConfig) -> RequestContext:
    return RequestContext(request_id="req-test", upload=upload_config)


@pytest.fixture
def mock_store() -> MockObjectStore:
    return MockObjectStore()


@pytest.fixture
def mock_blob_resolver() -> MockBlobResolver:
    return MockBlobResolver()


@pytest.fixture
def mock_url_resolver() -> MockURLResolver:
    return MockURLResolver()


@pytest.fixture
def pipeline(
    mock_store: MockObjectStore,
    mock_blob_resolver: MockBlobResolver,
    mock_url_resolver: MockURLResolver,
) -> UploadPipeline:
    return UploadPipeline(mock_store, mock_blob_resolver, mock_url_resolver)


@pytest.fixture
def make_app(
    mock_store: MockObjectStore,
    mock_blob_resolver: MockBlobResolver,
    mock_url_resolver: MockURLResolver,
) -> Callable[..., FastAPI]:
    """Factory building a FastAPI app wired to the mock platform."""

    def _make(
        config: Config | None = None,
        index_page: IndexTemplate | None = None,
    ) -> FastAPI:
        platform = Platform(
            name="mock",
            store=mock_store,
            blob_resolver=mock_blob_resolver,
            url_resolver=mock_url_resolver,
        )
        app = Application(
            config or make_config(),
            platform=platform,
            index_page=index_page or IndexTemplate.load(),
        )
        app.build()
        return create_app(app)

    return _make
