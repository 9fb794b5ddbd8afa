"""Shared fixtures: fake HTTP transport, fake clock and sample records."""

import pytest

from sources import AcoustIdResolver, FetchError, HttpFetch, MusicBrainzResolver, RateLimiterState
from tagger import TagRecord


class FakeFetch(HttpFetch):
    """HttpFetch serving canned bodies; an Exception value is raised."""

    def __init__(self, responses=None, downloads=None):
        self.responses = dict(responses or {})
        self.downloads = dict(downloads or {})
        self.calls = []

    def get_text(self, url, headers=None, raise_for_status=True):
        self.calls.append(("GET", url, headers))
        body = self.responses.get(url, FetchError(f"no route: {url}"))
        if isinstance(body, Exception):
            raise body
        return body

    def download(self, url, path, headers=None):
        self.calls.append(("DOWNLOAD", url, headers))
        data = self.downloads.get(url, FetchError(f"no route: {url}"))
        if isinstance(data, Exception):
            raise data
        with open(path, "wb") as f:
            f.write(data)

    def urls(self):
        return [url for _, url, _ in self.calls]


class FakeClock:
    """Manual clock whose sleep() advances time and records the waits."""

    def __init__(self, start=1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_shared_limiters():
    """Shared per-type limiters start every test at zero."""
    AcoustIdResolver.limiter.reset()
    MusicBrainzResolver.limiter.reset()
    yield
    AcoustIdResolver.limiter.reset()
    MusicBrainzResolver.limiter.reset()


@pytest.fixture
def acoustid_limiter(clock) -> RateLimiterState:
    return RateLimiterState(ceiling=3, window=1.0, clock=clock, sleep=clock.sleep)


@pytest.fixture
def musicbrainz_limiter(clock) -> RateLimiterState:
    return RateLimiterState(ceiling=50, window=1.0, windowed=True, clock=clock, sleep=clock.sleep)


@pytest.fixture
def records():
    """Three files from one album, disagreeing on title and track."""
    return [
        TagRecord(filename="01 Intro.mp3", title="Intro", artist="Bob", album="Live",
                  year=2022, track=1, genre="Jazz", duration=60, file_size=1000),
        TagRecord(filename="02 Song.mp3", title="Song", artist="Bob", album="Live",
                  year=2022, track=2, genre="Jazz", duration=200, file_size=3000),
        TagRecord(filename="03 Outro.flac", title="Outro", artist="Bob", album="Live",
                  year=2022, track=3, genre="Jazz", duration=90, file_size=2000),
    ]


@pytest.fixture
def make_fetch():
    """Factory: make_fetch(responses, downloads) -> FakeFetch"""
    return FakeFetch
