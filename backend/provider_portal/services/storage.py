"""Object storage for onboarding uploads.

Keys:
  temp/<stored_filename>                                     → uploaded, draft still open
  Clients/<provider_id>/Incoming/<stem>_<original basename>  → relocated on completion

SupabaseStorage talks to the Supabase Storage REST API. InMemoryStorage
is used when no storage URL is configured outside production (local dev,
tests); production refuses to start storage without one.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from urllib.parse import quote

import httpx

from provider_portal.config import settings
from provider_portal.middleware.exceptions import InternalError

logger = logging.getLogger(__name__)

TEMP_PREFIX = "temp/"


def temp_key(stored_filename: str) -> str:
    return f"{TEMP_PREFIX}{stored_filename}"


def provider_key(provider_id: str, stored_filename: str, original_filename: str) -> str:
    """Permanent key, unique per upload.

    The stored-filename stem keeps two uploads named alike apart; only the
    basename of the original survives, so no path segments leak in.
    """
    stem = PurePosixPath(stored_filename).stem
    name = PurePosixPath(original_filename.replace("\\", "/")).name
    if name in ("", ".", ".."):
        name = "file"
    return f"Clients/{provider_id}/Incoming/{stem}_{name}"


class StorageError(Exception):
    """An upload, download or remove did not succeed."""


class ObjectStorage(ABC):
    @abstractmethod
    async def upload(self, key: str, data: bytes) -> None: ...

    @abstractmethod
    async def download(self, key: str) -> bytes: ...

    @abstractmethod
    async def remove(self, key: str) -> None: ...


class InMemoryStorage(ObjectStorage):
    def __init__(self):
        self.objects: dict[str, bytes] = {}

    async def upload(self, key: str, data: bytes) -> None:
        self.objects[key] = bytes(data)

    async def download(self, key: str) -> bytes:
        try:
            return self.objects[key]
        except KeyError:
            raise StorageError(f"Object not found: {key}")

    async def remove(self, key: str) -> None:
        self.objects.pop(key, None)


class SupabaseStorage(ObjectStorage):
    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self.timeout = timeout
        self.transport = transport
        self.headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
        }

    def _object_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(key, safe='/')}"

    async def upload(self, key: str, data: bytes) -> None:
        headers = {
            **self.headers,
            "Content-Type": "application/octet-stream",
            "x-upsert": "true",
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            res = await client.post(self._object_url(key), content=data, headers=headers)
        if res.status_code >= 400:
            raise StorageError(f"Upload of {key} failed: {res.status_code} {res.text}")

    async def download(self, key: str) -> bytes:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            res = await client.get(self._object_url(key), headers=self.headers)
        if res.status_code >= 400:
            raise StorageError(f"Download of {key} failed: {res.status_code} {res.text}")
        return res.content

    async def remove(self, key: str) -> None:
        url = f"{self.base_url}/storage/v1/object/{self.bucket}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            res = await client.request(
                "DELETE", url, json={"prefixes": [key]}, headers=self.headers
            )
        if res.status_code >= 400:
            raise StorageError(f"Remove of {key} failed: {res.status_code} {res.text}")


_storage: ObjectStorage | None = None


def get_storage() -> ObjectStorage:
    """FastAPI dependency. One storage client per process."""
    global _storage
    if _storage is None:
        if settings.storage_url:
            _storage = SupabaseStorage(
                settings.storage_url,
                settings.storage_service_key,
                settings.storage_bucket,
                timeout=settings.storage_timeout_seconds,
            )
        elif settings.environment == "production":
            raise InternalError("Object storage is not configured")
        else:
            logger.warning("No storage_url configured, using in-memory object storage")
            _storage = InMemoryStorage()
    return _storage
