import io
import json
import urllib.error

import pytest

from puntolector import storage as storage_module
from puntolector.storage import StorageError, SupabaseStorage


class _Response(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


@pytest.fixture
def requests_seen(monkeypatch):
    seen = []

    def fake_urlopen(request, timeout=None):
        seen.append(request)
        return _Response(b'{"Key": "ok"}')

    monkeypatch.setattr(storage_module.urllib.request, "urlopen", fake_urlopen)
    return seen


def test_upload_posts_object_and_returns_public_url(requests_seen):
    client = SupabaseStorage("https://example.supabase.co/", "secret")
    url = client.upload("author_photos", "1-abc.png", b"data", "image/png")

    assert url == "https://example.supabase.co/storage/v1/object/public/author_photos/1-abc.png"
    request = requests_seen[0]
    assert request.get_method() == "POST"
    assert request.full_url == "https://example.supabase.co/storage/v1/object/author_photos/1-abc.png"
    assert request.get_header("Authorization") == "Bearer secret"
    assert request.get_header("Content-type") == "image/png"
    assert request.data == b"data"


def test_remove_sends_prefixes(requests_seen):
    SupabaseStorage("https://example.supabase.co", "secret").remove("covers", "x.png")
    request = requests_seen[0]
    assert request.get_method() == "DELETE"
    assert request.full_url == "https://example.supabase.co/storage/v1/object/covers"
    assert json.loads(request.data) == {"prefixes": ["x.png"]}


def test_transport_errors_become_storage_errors(monkeypatch):
    def failing_urlopen(request, timeout=None):
        raise urllib.error.URLError("unreachable")

    monkeypatch.setattr(storage_module.urllib.request, "urlopen", failing_urlopen)
    with pytest.raises(StorageError):
        SupabaseStorage("https://example.supabase.co", "k").upload("b", "p.png", b"", "image/png")


def test_unconfigured_storage_refuses_requests():
    with pytest.raises(StorageError):
        SupabaseStorage("", "").upload("b", "p.png", b"", "image/png")
