"""Tests for the image upload endpoint."""

from __future__ import annotations

import json
from collections.abc import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from imagehost.models.config import UploadConfig
from tests.imagehost.mocks import MockBlobResolver, MockObjectStore, MockURLResolver

UPLOAD_URL = "/api/1/uploadImage"


def _client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


def test_upload_returns_key_and_secure_url(
    make_app: Callable[..., FastAPI],
    mock_store: MockObjectStore,
    mock_blob_resolver: MockBlobResolver,
) -> None:
    """A jpg upload is stored under the temp prefix and returns Key and Url."""
    # Given: An app wired to the mock platform
    client = _client(make_app())

    # When: Uploading cat.jpg in the image field
    response = client.post(UPLOAD_URL, files={"image": ("cat.jpg", b"jpeg-bytes", "image/jpeg")})

    # Then: The response is exactly {"Key", "Url"}
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    payload = json.loads(response.content)
    assert set(payload) == {"Key", "Url"}
    assert payload["Url"].startswith("https://")

    # Then: Bytes were stored with the extension-derived type, not the client header
    assert mock_store.objects["image/temp/create/cat.jpg"] == (b"jpeg-bytes", "image/jpeg")
    assert payload["Key"] == "blob:/gs/test-bucket/image/temp/create/cat.jpg"
    assert mock_blob_resolver.calls == ["/gs/test-bucket/image/temp/create/cat.jpg"]


def test_upload_echoes_request_id(make_app: Callable[..., FastAPI]) -> None:
    """A valid client X-Request-ID is echoed back."""
    client = _client(make_app())

    response = client.post(
        UPLOAD_URL,
        files={"image": ("cat.jpg", b"x", "image/jpeg")},
        headers={"X-Request-ID": "abc-123"},
    )

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "abc-123"


def test_upload_generates_request_id_for_invalid_header(make_app: Callable[..., FastAPI]) -> None:
    """Unsafe request ids are replaced with a generated one."""
    client = _client(make_app())

    response = client.post(
        UPLOAD_URL,
        files={"image": ("cat.jpg", b"x", "image/jpeg")},
        headers={"X-Request-ID": "bad id with spaces"},
    )

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] != "bad id with spaces"
    assert len(response.headers["X-Request-ID"]) == 32


def test_upload_unknown_extension_has_no_content_type(
    make_app: Callable[..., FastAPI],
    mock_store: MockObjectStore,
) -> None:
    """Unknown extensions are stored with an empty content type."""
    client = _client(make_app())

    response = client.post(
        UPLOAD_URL,
        files={"image": ("a.unknownext", b"data", "application/octet-stream")},
    )

    assert response.status_code == 200
    assert mock_store.objects["image/temp/create/a.unknownext"] == (b"data", "")


def test_upload_same_name_overwrites(
    make_app: Callable[..., FastAPI],
    mock_store: MockObjectStore,
) -> None:
    """Re-uploading a filename replaces the stored object."""
    # Given: An existing upload
    client = _client(make_app())
    client.post(UPLOAD_URL, files={"image": ("cat.jpg", b"first-version", "image/jpeg")})

    # When: Uploading different bytes under the same name
    response = client.post(UPLOAD_URL, files={"image": ("cat.jpg", b"v2", "image/jpeg")})

    # Then: The store reflects the new size
    assert response.status_code == 200
    assert mock_store.objects["image/temp/create/cat.jpg"][0] == b"v2"
    assert mock_store.write_count == 2


def test_upload_missing_field_is_400(
    make_app: Callable[..., FastAPI],
    mock_store: MockObjectStore,
) -> None:
    """A form without the image field returns 400 plain text."""
    client = _client(make_app())

    response = client.post(UPLOAD_URL, files={"photo": ("cat.jpg", b"x", "image/jpeg")})

    assert response.status_code == 400
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Failed to get uploaded image"
    assert mock_store.write_count == 0


def test_upload_non_multipart_body_is_400(make_app: Callable[..., FastAPI]) -> None:
    """A request body that is not a form has no image field."""
    client = _client(make_app())

    response = client.post(UPLOAD_URL, content=b"raw", headers={"content-type": "image/png"})

    assert response.status_code == 400
    assert response.text == "Failed to get uploaded image"


def test_upload_malformed_multipart_is_400(make_app: Callable[..., FastAPI]) -> None:
    """An unparsable multipart body is a client error."""
    client = _client(make_app())

    response = client.post(
        UPLOAD_URL,
        content=b"not really multipart",
        headers={"content-type": "multipart/form-data"},
    )

    assert response.status_code == 400
    assert response.text == "Failed to get uploaded image"


def test_upload_custom_form_field(
    make_app: Callable[..., FastAPI],
    build_config: Callable[..., object],
) -> None:
    """The accepted field name follows upload.form_field."""
    # Given: Config using "photo" as the form field
    config = build_config(upload=UploadConfig(form_field="photo").model_dump())
    client = _client(make_app(config=config))

    # When/Then: "photo" succeeds and "image" is rejected
    ok = client.post(UPLOAD_URL, files={"photo": ("cat.jpg", b"x", "image/jpeg")})
    missing = client.post(UPLOAD_URL, files={"image": ("cat.jpg", b"x", "image/jpeg")})
    assert ok.status_code == 200
    assert missing.status_code == 400


@pytest.mark.parametrize(
    ("store_kwargs", "blob_fail", "url_fail", "message"),
    [
        ({"fail_write": True}, False, False, "Failed to upload image"),
        ({"fail_stat": True}, False, False, "Failed to resolve uploaded image"),
        ({}, True, False, "Failed to get image blob key"),
        ({}, False, True, "Failed to get image url"),
    ],
)
def test_upload_collaborator_failure_is_500(
    store_kwargs: dict[str, bool],
    blob_fail: bool,
    url_fail: bool,
    message: str,
    mock_store: MockObjectStore,
    mock_blob_resolver: MockBlobResolver,
    mock_url_resolver: MockURLResolver,
    make_app: Callable[..., FastAPI],
) -> None:
    """Each failing step yields a 500 with a generic plain-text message."""
    # Given: One collaborator configured to fail
    for name, value in store_kwargs.items():
        setattr(mock_store, name, value)
    mock_blob_resolver.fail = blob_fail
    mock_url_resolver.fail = url_fail
    client = _client(make_app())

    # When: Uploading an image
    response = client.post(UPLOAD_URL, files={"image": ("cat.jpg", b"x", "image/jpeg")})

    # Then: A 500 plain-text response without internal details is returned
    assert response.status_code == 500
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == message
    assert "Simulated" not in response.text

