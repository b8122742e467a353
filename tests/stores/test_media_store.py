"""Tests for the cover image gallery store."""

from __future__ import annotations

from unittest.mock import patch

from unmatched_line.client import ContentServiceClient
from unmatched_line.config import ServiceSectionConfig
from unmatched_line.errors import HTTPStatusError, Unauthorized
from unmatched_line.stores.media import CoverImageStore


def _image(image_id):
    return {"_id": image_id, "url": f"https://cdn.example/{image_id}.jpg", "uploadedBy": {"name": "Admin"}}


class TestCoverImageStore:
    def test_fetch_is_cached(self, client, cache):
        client.route("GET", "/api/cover-images", {"coverImages": [_image("c1"), _image("c2")]})
        store = CoverImageStore(client, cache)
        store.fetch()
        store.fetch()
        assert [i.id for i in store.images] == ["c1", "c2"]
        assert len(client.calls) == 1

    def test_fetch_error(self, client, cache):
        client.route("GET", "/api/cover-images", HTTPStatusError(500))
        store = CoverImageStore(client, cache)
        store.fetch()
        assert store.error == "Failed to fetch cover images"

    def test_upload_rejects_bad_counts(self, client, cache, tmp_path):
        store = CoverImageStore(client, cache)
        too_many = [tmp_path / f"{i}.jpg" for i in range(6)]
        assert store.upload([]).success is False
        result = store.upload(too_many)
        assert result.message == "Please upload between 1 and 5 images"
        assert client.calls == []

    def test_upload_prepends_and_invalidates(self, client, cache, tmp_path):
        client.route("GET", "/api/cover-images", {"coverImages": [_image("c1")]})
        client.route("POST", "/api/cover-images", {"coverImages": [_image("c9")]})
        image = tmp_path / "new.jpg"
        image.write_bytes(b"jpg")
        store = CoverImageStore(client, cache)
        store.fetch()

        result = store.upload([image])

        assert result.success is True
        assert [i.id for i in store.images] == ["c9", "c1"]
        assert len(cache) == 0
        assert client.calls_to("POST", "/api/cover-images")[0].body["files"] == [("images", image)]

    def test_upload_unauthorized(self, client, cache, tmp_path):
        client.route("POST", "/api/cover-images", Unauthorized())
        image = tmp_path / "new.jpg"
        image.write_bytes(b"jpg")
        result = CoverImageStore(client, cache).upload([image])
        assert result.auth_required is True

    def test_delete(self, client, cache):
        client.route("GET", "/api/cover-images", {"coverImages": [_image("c1"), _image("c2")]})
        client.route("DELETE", "/api/cover-images/c1", {"message": "Image deleted"})
        store = CoverImageStore(client, cache)
        store.fetch()
        result = store.delete("c1")
        assert result.message == "Image deleted"
        assert [i.id for i in store.images] == ["c2"]

    def test_upload_unreadable_file_is_failure(self, cache, tmp_path):
        client = ContentServiceClient(ServiceSectionConfig(base_url="http://content.test"))
        store = CoverImageStore(client, cache)
        with patch("urllib.request.urlopen") as mock_urlopen:
            result = store.upload([tmp_path / "missing.png"])
        assert result.success is False
        assert "missing.png" in result.message
        assert store.error == result.message
        assert store.loading is False
        mock_urlopen.assert_not_called()
