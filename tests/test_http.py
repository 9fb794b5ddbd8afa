"""Tests for the requests transport, and the resolvers driven through it."""

import json

import pytest
import requests

from sources import (AcoustIdResolver, FetchError, LookupStatus, MusicBrainzResolver,
                     ReleaseMetadata, RequestsFetch)


RELEASE_ID = "76df3287-6cda-33eb-8e9a-044b5e15ffdd"
METADATA_URL = f"https://musicbrainz.org/ws/2/release/{RELEASE_ID}?inc=artists&fmt=json"
COVER_URL = f"https://coverartarchive.org/release/{RELEASE_ID}"
IMAGE_URL = "https://coverartarchive.org/release/x/1234.jpg"


def make_response(status, body, url="https://example.org/"):
    """A real requests.Response with a canned status and body"""
    response = requests.Response()
    response.status_code = status
    response._content = body.encode("utf-8") if isinstance(body, str) else body
    response.encoding = "utf-8"
    response.url = url
    response.reason = "Not Found" if status == 404 else "OK"
    return response


@pytest.fixture
def stub_fetch(monkeypatch):
    """RequestsFetch whose session answers from a {url: response or exception} table."""
    def build(routes):
        fetch = RequestsFetch(timeout=5)
        fetch.requests = []

        def fake_get(url, **kwargs):
            fetch.requests.append((url, kwargs))
            answer = routes[url]
            if isinstance(answer, Exception):
                raise answer
            return answer

        monkeypatch.setattr(fetch.session, "get", fake_get)
        return fetch
    return build


class TestRequestsFetch:
    def test_ok_body(self, stub_fetch) -> None:
        fetch = stub_fetch({"https://a/": make_response(200, '{"a": 1}')})
        assert fetch.get_text("https://a/") == '{"a": 1}'

    def test_passes_headers_and_timeout(self, stub_fetch) -> None:
        fetch = stub_fetch({"https://a/": make_response(200, "x")})
        fetch.get_text("https://a/", headers={"User-Agent": "Test/1.0"})
        _, kwargs = fetch.requests[0]
        assert kwargs["headers"] == {"User-Agent": "Test/1.0"}
        assert kwargs["timeout"] == 5

    def test_error_status_raises_by_default(self, stub_fetch) -> None:
        fetch = stub_fetch({"https://a/": make_response(404, '{"error": "Not Found"}')})
        with pytest.raises(FetchError):
            fetch.get_text("https://a/")

    @pytest.mark.parametrize("body", ['{"error": "Not Found"}', "Not Found"])
    def test_error_status_body_when_not_raising(self, stub_fetch, body) -> None:
        fetch = stub_fetch({"https://a/": make_response(404, body)})
        assert fetch.get_text("https://a/", raise_for_status=False) == body

    @pytest.mark.parametrize("error", [requests.ConnectionError("refused"), requests.Timeout("slow")])
    def test_connection_failure_always_raises(self, stub_fetch, error) -> None:
        fetch = stub_fetch({"https://a/": error})
        with pytest.raises(FetchError):
            fetch.get_text("https://a/", raise_for_status=False)

    def test_download_writes_bytes(self, stub_fetch, tmp_path) -> None:
        fetch = stub_fetch({"https://a/img.jpg": make_response(200, b"\xff\xd8jpeg")})
        target = tmp_path / "img.jpg"
        fetch.download("https://a/img.jpg", str(target))
        assert target.read_bytes() == b"\xff\xd8jpeg"

    def test_download_error_status_raises(self, stub_fetch, tmp_path) -> None:
        fetch = stub_fetch({"https://a/img.jpg": make_response(404, "Not Found")})
        with pytest.raises(FetchError):
            fetch.download("https://a/img.jpg", str(tmp_path / "img.jpg"))


class TestMusicBrainzOverRequests:
    RELEASE = {"title": "Achtung Baby", "artist-credit": [{"name": "U2"}]}

    def test_missing_cover_art_is_ok(self, stub_fetch) -> None:
        fetch = stub_fetch({
            METADATA_URL: make_response(200, json.dumps(self.RELEASE)),
            COVER_URL: make_response(404, "Not Found"),
        })

        result = MusicBrainzResolver(RELEASE_ID, fetch=fetch).lookup()

        assert result.status == LookupStatus.OK
        assert result.payload == ReleaseMetadata("Achtung Baby", "U2", b"")

    def test_error_envelope_is_remote_rejected(self, stub_fetch) -> None:
        fetch = stub_fetch({METADATA_URL: make_response(404, '{"error": "Not Found"}')})

        result = MusicBrainzResolver(RELEASE_ID, fetch=fetch).lookup()

        assert result.status == LookupStatus.REMOTE_REJECTED
        assert [url for url, _ in fetch.requests] == [METADATA_URL]

    def test_artwork_downloaded(self, stub_fetch) -> None:
        fetch = stub_fetch({
            METADATA_URL: make_response(200, json.dumps(self.RELEASE)),
            COVER_URL: make_response(200, json.dumps({"images": [{"image": IMAGE_URL}]})),
            IMAGE_URL: make_response(200, b"\xff\xd8jpeg"),
        })

        result = MusicBrainzResolver(RELEASE_ID, fetch=fetch).lookup()

        assert result.ok
        assert result.payload.album_art == b"\xff\xd8jpeg"

    def test_connection_failure_is_network(self, stub_fetch) -> None:
        fetch = stub_fetch({METADATA_URL: requests.ConnectionError("refused")})
        assert MusicBrainzResolver(RELEASE_ID, fetch=fetch).lookup().status == LookupStatus.NETWORK


class TestAcoustIdOverRequests:
    def test_error_status_is_network(self, stub_fetch) -> None:
        resolver = AcoustIdResolver(100, "AQAA", fetch=None)
        fetch = stub_fetch({resolver.lookup_url: make_response(400, '{"status": "error"}')})
        resolver.fetch = fetch

        assert resolver.lookup().status == LookupStatus.NETWORK
        assert AcoustIdResolver.limiter.count == 0
