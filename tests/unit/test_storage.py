from __future__ import annotations

import json

import httpx
import pytest

from contractdesk.config import StorageConfig
from contractdesk.errors import StorageError
from contractdesk.infrastructure.storage import StorageClient

BASE = "https://project.supabase.co"
KEY = "service-key"


def _storage(handler) -> StorageClient:
    config = StorageConfig(url=BASE, service_key=KEY, bucket="contratos")
    return StorageClient(config, client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_list_files_skips_folders_and_builds_paths():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"name": "2024", "id": None, "metadata": None},
                {
                    "name": "CT-001.pdf",
                    "id": "f1",
                    "metadata": {"mimetype": "application/pdf", "size": 1024},
                },
            ],
        )

    files = _storage(handler).list_files("signed")

    request = seen[0]
    assert request.method == "POST"
    assert request.url == f"{BASE}/storage/v1/object/list/contratos"
    assert request.headers["apikey"] == KEY
    assert request.headers["authorization"] == f"Bearer {KEY}"
    assert json.loads(request.content)["prefix"] == "signed"

    assert len(files) == 1
    pdf = files[0]
    assert pdf.name == "CT-001.pdf"
    assert pdf.path == "signed/CT-001.pdf"
    assert pdf.bucket == "contratos"
    assert pdf.content_type == "application/pdf"
    assert pdf.url == f"{BASE}/storage/v1/object/public/contratos/signed/CT-001.pdf"


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("CT-001.pdf", ("contratos", "CT-001.pdf")),
        ("documentos/2024/CT-001.pdf", ("documentos", "2024/CT-001.pdf")),
        ("signed/CT-001.pdf", ("contratos", "signed/CT-001.pdf")),
        (
            f"{BASE}/storage/v1/object/public/contract-documents/a/b.pdf",
            ("contract-documents", "a/b.pdf"),
        ),
    ],
)
def test_resolve_path(path, expected):
    storage = _storage(lambda request: httpx.Response(200))
    assert storage.resolve_path(path) == expected


def test_download_returns_bytes():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/storage/v1/object/documentos/2024/CT-001.pdf"
        return httpx.Response(200, content=b"%PDF-1.7 body")

    assert _storage(handler).download("documentos/2024/CT-001.pdf") == b"%PDF-1.7 body"


def test_download_empty_body_is_an_error():
    with pytest.raises(StorageError, match="Empty download"):
        _storage(lambda request: httpx.Response(200, content=b"")).download("a.pdf")


def test_http_error_becomes_storage_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "not_found"})

    with pytest.raises(StorageError, match="404"):
        _storage(handler).download("missing.pdf")


def test_transport_error_becomes_storage_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(StorageError):
        _storage(handler).list_files()


def test_create_signed_url():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/storage/v1/object/sign/contratos/CT-001.pdf"
        assert json.loads(request.content) == {"expiresIn": 60}
        return httpx.Response(200, json={"signedURL": "/object/sign/contratos/CT-001.pdf?token=t"})

    url = _storage(handler).create_signed_url("CT-001.pdf", expires_in=60)

    assert url == f"{BASE}/storage/v1/object/sign/contratos/CT-001.pdf?token=t"
