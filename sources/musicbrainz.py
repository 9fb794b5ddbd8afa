#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MusicBrainz release lookup with Cover Art Archive artwork.
Free, no authentication required, but needs user agent.

API Documentation:
https://musicbrainz.org/doc/MusicBrainz_API
https://musicbrainz.org/doc/Cover_Art_Archive/API

Rate Limits: 50 requests per second (windowed)
"""

import os
import tempfile
from dataclasses import dataclass
from typing import Optional

from .base import (FetchError, HttpFetch, LookupStatus, RateLimiterState,
                   Resolver, ResolverResult)


DEFAULT_USER_AGENT = "MusicTagger/1.0 ( https://github.com/music-tagger/music-tagger )"


@dataclass
class ReleaseMetadata:
    """Release title, first credited artist and front artwork"""
    title: str = ""
    artist: str = ""
    album_art: bytes = b""


class MusicBrainzResolver(Resolver):
    """
    Looks up one MusicBrainz release and its cover art.

    Metadata is fetched first; artwork is only attempted once metadata
    succeeded.
    """

    BASE_URL = "https://musicbrainz.org/ws/2"
    COVER_ART_URL = "https://coverartarchive.org"

    limiter = RateLimiterState(ceiling=50, window=1.0, windowed=True)

    def __init__(
        self,
        release_id: str,
        user_agent: str = DEFAULT_USER_AGENT,
        fetch: Optional[HttpFetch] = None,
        limiter: Optional[RateLimiterState] = None,
        strict_artwork: bool = True
    ):
        """
        Args:
            release_id: MusicBrainz release ID
            user_agent: User agent string (required by API)
            fetch: HTTP transport (requests-based by default)
            limiter: Rate limiter (shared class limiter by default)
            strict_artwork: Fail the whole lookup when artwork can not be
                fetched; when False the metadata is kept with empty artwork
        """
        super().__init__(fetch, limiter)
        self.release_id = release_id
        self.user_agent = user_agent
        self.strict_artwork = strict_artwork
        self.lookup_url = f"{self.BASE_URL}/release/{release_id}?inc=artists&fmt=json"
        self.lookup_url_album_art = f"{self.COVER_ART_URL}/release/{release_id}"
        self.metadata = ReleaseMetadata()

    @property
    def name(self) -> str:
        return "musicbrainz"

    def lookup(self) -> ResolverResult:
        """
        Look up the release.

        Returns:
            OK with a ReleaseMetadata, or NETWORK / REMOTE_REJECTED /
            PARSE_FAILURE
        """
        self.limiter.wait()

        response = self._get(self.lookup_url)
        if not response:
            return self._finish(LookupStatus.NETWORK)

        self.limiter.record()

        release = self._parse_json(response)
        if release is None:
            return self._finish(LookupStatus.PARSE_FAILURE)
        if release.get("error") is not None:
            self.log(f"Release {self.release_id}: {release.get('error')}")
            return self._finish(LookupStatus.REMOTE_REJECTED)

        self.metadata.title = self._get_str(release, "title")
        artist_credit = release.get("artist-credit")
        if isinstance(artist_credit, list) and artist_credit:
            self.metadata.artist = self._get_str(artist_credit[0], "name")

        if not self._fetch_album_art() and self.strict_artwork:
            return self._finish(LookupStatus.NETWORK)

        return self._finish(LookupStatus.OK, self.metadata)

    def _fetch_album_art(self) -> bool:
        """
        Fetch the first Cover Art Archive image into self.metadata.

        Returns:
            False on a transport failure; a release without artwork is
            not a failure
        """
        response = self._get(self.lookup_url_album_art)
        if not response:
            return False

        # The archive answers with either an image list or an error page
        if not response.startswith("{"):
            return True

        data = self._parse_json(response)
        images = data.get("images") if data else None
        if not isinstance(images, list) or not images:
            return True

        image_url = self._get_str(images[0], "image")
        if not image_url:
            return True

        with tempfile.TemporaryDirectory() as tmp_dir:
            path = os.path.join(tmp_dir, f"{self.release_id}.jpg")
            try:
                self.fetch.download(image_url, path, headers=self._headers())
                with open(path, 'rb') as f:
                    self.metadata.album_art = f.read()
            except (FetchError, OSError) as e:
                self.log(f"Cover art download error: {e}")
                return False

        return True

    def _get(self, url: str) -> str:
        """
        GET url, transport failures collapse into an empty body.

        Error replies (4xx/5xx) keep their body: the release error envelope
        and the archive's "no artwork" page are read like any answer.
        """
        try:
            return self.fetch.get_text(url, headers=self._headers(), raise_for_status=False)
        except FetchError as e:
            self.log(f"Lookup error: {e}")
            return ""

    def _headers(self):
        return {"User-Agent": self.user_agent}
