"""Storage client and webhook notifier tests (no network)."""

import json

import httpx
import pytest

from provider_portal.config import settings
from provider_portal.middleware.exceptions import InternalError
from provider_portal.services import storage as storage_module
from provider_portal.services.notifier import WebhookNotifier
from provider_portal.services.onboarding import generate_stored_filename
from provider_portal.services.storage import (
    InMemoryStorage,
    StorageError,
    SupabaseStorage,
    provider_key,
    temp_key,
)

BASE_URL = "https://project.supabase.test"


def _storage(handler) -> SupabaseStorage:
    return SupabaseStorage(
        BASE_URL,
        "service-key",
        "onboarding-uploads",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.unit
class TestKeys:
    def test_temp_key(self):
        assert temp_key("123_abc.pdf") == "temp/123_abc.pdf"

    def test_provider_key(self):
        key = provider_key("PROV_x", "1700000000000_ab12cd.pdf", "cv.pdf")
        assert key == "Clients/PROV_x/Incoming/1700000000000_ab12cd_cv.pdf"

    def test_provider_key_distinct_for_same_original(self):
        first = provider_key("PROV_x", "1_aaaaaa.pdf", "license.pdf")
        second = provider_key("PROV_x", "1_bbbbbb.pdf", "license.pdf")
        assert first != second

    @pytest.mark.parametrize(
        "original, expected",
        [
            ("../x.pdf", "1_aa_x.pdf"),
            ("a/b/c.pdf", "1_aa_c.pdf"),
            ("..\\..\\w9.pdf", "1_aa_w9.pdf"),
            ("..", "1_aa_file"),
        ],
    )
    def test_provider_key_keeps_basename_only(self, original, expected):
        assert provider_key("PROV_x", "1_aa.pdf", original) == f"Clients/PROV_x/Incoming/{expected}"

    def test_stored_filename_keeps_extension(self):
        name = generate_stored_filename("scan.final.PNG")
        assert name.endswith(".PNG")
        assert name.split("_")[0].isdigit()

    def test_stored_filename_without_extension(self):
        assert generate_stored_filename("README").endswith(".bin")

    def test_stored_filenames_are_unique(self):
        assert generate_stored_filename("a.pdf") != generate_stored_filename("a.pdf")


@pytest.mark.unit
@pytest.mark.asyncio
class TestInMemoryStorage:
    async def test_roundtrip_and_remove(self):
        storage = InMemoryStorage()
        await storage.upload("temp/a", b"abc")
        assert await storage.download("temp/a") == b"abc"
        await storage.remove("temp/a")
        assert storage.objects == {}

    async def test_missing_object(self):
        with pytest.raises(StorageError):
            await InMemoryStorage().download("temp/nope")


@pytest.mark.unit
@pytest.mark.asyncio
class TestSupabaseStorage:
    async def test_upload_request(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Key": "ok"})

        await _storage(handler).upload("temp/1_a.pdf", b"data")

        req = seen[0]
        assert req.method == "POST"
        assert str(req.url) == f"{BASE_URL}/storage/v1/object/onboarding-uploads/temp/1_a.pdf"
        assert req.headers["authorization"] == "Bearer service-key"
        assert req.headers["apikey"] == "service-key"
        assert req.headers["x-upsert"] == "true"
        assert req.content == b"data"

    async def test_download_returns_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            return httpx.Response(200, content=b"file-bytes")

        assert await _storage(handler).download("temp/x") == b"file-bytes"

    async def test_remove_sends_prefixes(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        await _storage(handler).remove("temp/x")

        req = seen[0]
        assert req.method == "DELETE"
        assert str(req.url) == f"{BASE_URL}/storage/v1/object/onboarding-uploads"
        assert json.loads(req.content) == {"prefixes": ["temp/x"]}

    async def test_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "not_found"})

        with pytest.raises(StorageError):
            await _storage(handler).download("temp/missing")


@pytest.mark.unit
@pytest.mark.asyncio
class TestWebhookNotifier:
    async def test_posts_event_envelope(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(204)

        notifier = WebhookNotifier(
            "https://hooks.test/onboarding", transport=httpx.MockTransport(handler)
        )
        await notifier.notify("onboarding.completed", {"providerId": "PROV_1"})

        assert seen[0]["event"] == "onboarding.completed"
        assert seen[0]["data"] == {"providerId": "PROV_1"}
        assert "sentAt" in seen[0]

    async def test_server_error_is_swallowed(self, caplog):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        notifier = WebhookNotifier(
            "https://hooks.test/onboarding", transport=httpx.MockTransport(handler)
        )
        await notifier.notify("document.uploaded", {})

        assert "Webhook delivery failed" in caplog.text


@pytest.mark.unit
class TestGetStorage:
    def test_in_memory_fallback_outside_production(self, monkeypatch):
        monkeypatch.setattr(storage_module, "_storage", None)
        monkeypatch.setattr(settings, "storage_url", "")
        monkeypatch.setattr(settings, "environment", "development")
        assert isinstance(storage_module.get_storage(), InMemoryStorage)

    def test_production_requires_storage_url(self, monkeypatch):
        monkeypatch.setattr(storage_module, "_storage", None)
        monkeypatch.setattr(settings, "storage_url", "")
        monkeypatch.setattr(settings, "environment", "production")
        with pytest.raises(InternalError):
            storage_module.get_storage()
        assert storage_module._storage is None

    def test_production_uses_supabase(self, monkeypatch):
        monkeypatch.setattr(storage_module, "_storage", None)
        monkeypatch.setattr(settings, "storage_url", BASE_URL)
        monkeypatch.setattr(settings, "environment", "production")
        assert isinstance(storage_module.get_storage(), SupabaseStorage)
