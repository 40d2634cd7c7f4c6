"""Storage client for contract documents kept in Supabase storage buckets."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from contractdesk.config import StorageConfig
from contractdesk.domain.models import StorageFile
from contractdesk.errors import StorageError
from contractdesk.utils.logging import get_logger

log = get_logger(__name__)

PUBLIC_URL_MARKER = "storage/v1/object/public/"
KNOWN_BUCKETS = ("contratos", "contract-documents", "documentos")


class StorageClient:
    def __init__(self, config: StorageConfig, client: Optional[httpx.Client] = None) -> None:
        self.config = config
        self.base_url = config.url.rstrip("/") + "/storage/v1"
        self._headers = {
            "apikey": config.service_key,
            "Authorization": f"Bearer {config.service_key}",
        }
        self._client = client or httpx.Client(timeout=config.timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "StorageClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_files(
        self, folder: str = "", bucket: Optional[str] = None, limit: int = 100
    ) -> List[StorageFile]:
        """List files (not folders) directly under `folder` in the bucket."""
        bucket = bucket or self.config.bucket
        payload = {
            "prefix": folder,
            "limit": limit,
            "offset": 0,
            "sortBy": {"column": "name", "order": "asc"},
        }
        resp = self._request("POST", f"/object/list/{bucket}", json=payload)
        entries = resp.json() or []

        files: List[StorageFile] = []
        for entry in entries:
            name = entry.get("name")
            # Folders come back without an id or metadata.
            if not name or entry.get("id") is None:
                continue
            metadata: Dict[str, Any] = entry.get("metadata") or {}
            path = f"{folder.strip('/')}/{name}" if folder.strip("/") else name
            files.append(
                StorageFile(
                    id=entry.get("id"),
                    name=name,
                    bucket=bucket,
                    path=path,
                    url=self.public_url(path, bucket),
                    content_type=metadata.get("mimetype") or "application/octet-stream",
                    metadata=metadata,
                )
            )
        log.info(
            "Listed storage files",
            extra={"bucket": bucket, "folder": folder, "files": len(files)},
        )
        return files

    # ------------------------------------------------------------------
    # Download / URLs
    # ------------------------------------------------------------------

    def resolve_path(self, file_path: str, bucket: Optional[str] = None) -> Tuple[str, str]:
        """
        Split `file_path` into (bucket, object path).

        Accepts plain object paths, `bucket/path` for known buckets, and full
        public URLs.
        """
        bucket = bucket or self.config.bucket
        if PUBLIC_URL_MARKER in file_path:
            rest = file_path.split(PUBLIC_URL_MARKER, 1)[1]
            url_bucket, _, path = rest.partition("/")
            return url_bucket, path
        head, sep, tail = file_path.partition("/")
        if sep and head in KNOWN_BUCKETS:
            return head, tail
        return bucket, file_path

    def download(self, file_path: str, bucket: Optional[str] = None) -> bytes:
        bucket, path = self.resolve_path(file_path, bucket)
        log.info("Downloading document", extra={"bucket": bucket, "path": path})
        resp = self._request("GET", f"/object/{bucket}/{quote(path)}")
        if not resp.content:
            raise StorageError(f"Empty download for {bucket}/{path}")
        return resp.content

    def create_signed_url(
        self, file_path: str, bucket: Optional[str] = None, expires_in: Optional[int] = None
    ) -> str:
        bucket, path = self.resolve_path(file_path, bucket)
        expiry = expires_in or self.config.signed_url_expiry
        resp = self._request(
            "POST", f"/object/sign/{bucket}/{quote(path)}", json={"expiresIn": expiry}
        )
        signed = (resp.json() or {}).get("signedURL")
        if not signed:
            raise StorageError(f"No signed URL returned for {bucket}/{path}")
        return f"{self.base_url}{signed}"

    def public_url(self, path: str, bucket: Optional[str] = None) -> str:
        bucket = bucket or self.config.bucket
        return f"{self.base_url}/object/public/{bucket}/{quote(path)}"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = self._client.request(
                method, f"{self.base_url}{endpoint}", headers=self._headers, **kwargs
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise StorageError(
                f"Storage request {method} {endpoint} failed: "
                f"{exc.response.status_code} {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage request {method} {endpoint} failed: {exc}") from exc
        return resp


__all__ = ["StorageClient"]
