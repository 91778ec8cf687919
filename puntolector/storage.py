"""
Object storage client used by the image upload endpoints.

``SupabaseStorage`` talks to a Supabase-compatible storage REST API
with plain ``urllib`` requests: objects are written with a POST to
``/storage/v1/object/<bucket>/<path>`` and exposed at
``/storage/v1/object/public/<bucket>/<path>``. Any transport or HTTP
failure is logged and re-raised as ``StorageError`` so that the router
can report a generic upload error.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Optional

from . import settings


logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class SupabaseStorage:
    def __init__(self, base_url: str, api_key: str, timeout: int = settings.STORAGE_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _object_url(self, bucket: str, path: str = "") -> str:
        url = f"{self.base_url}/storage/v1/object/{urllib.parse.quote(bucket)}"
        if path:
            url += "/" + urllib.parse.quote(path)
        return url

    def public_url(self, bucket: str, path: str) -> str:
        return (
            f"{self.base_url}/storage/v1/object/public/"
            f"{urllib.parse.quote(bucket)}/{urllib.parse.quote(path)}"
        )

    def _send(self, method: str, url: str, data: bytes, content_type: str) -> Optional[dict]:
        if not self.base_url:
            raise StorageError("Object storage is not configured")
        request = urllib.request.Request(
            url,
            data=data,
            method=method,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "apikey": self.api_key,
                "Content-Type": content_type,
                "x-upsert": "false",
            },
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                body = response.read().decode("utf-8", errors="ignore")
        except (urllib.error.URLError, OSError) as exc:
            logger.error("Storage request %s %s failed: %s", method, url, exc)
            raise StorageError(str(exc)) from exc
        if not body:
            return None
        try:
            return json.loads(body)
        except ValueError:
            return None

    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``bucket/path`` and return its public URL."""
        self._send("POST", self._object_url(bucket, path), data, content_type)
        logger.info("Uploaded %d bytes to %s/%s", len(data), bucket, path)
        return self.public_url(bucket, path)

    def remove(self, bucket: str, path: str) -> None:
        payload = json.dumps({"prefixes": [path]}).encode("utf-8")
        self._send("DELETE", self._object_url(bucket), payload, "application/json")
        logger.info("Removed %s/%s", bucket, path)


def default_storage() -> SupabaseStorage:
    return SupabaseStorage(settings.STORAGE_URL, settings.STORAGE_KEY)
