#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AcoustID fingerprint lookup.

How it works:
1. The caller supplies a Chromaprint fingerprint and the track duration
   (see utilities/fingerprint.py)
2. The fingerprint is looked up in the AcoustID database
3. The response envelope status decides the result

API Documentation:
https://acoustid.org/webservice

Rate Limits: 3 requests per second
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional
from urllib.parse import urlencode

from .base import (FetchError, HttpFetch, LookupStatus, RateLimiterState,
                   Resolver, ResolverResult)


DEFAULT_CLIENT_KEY = "Lz9ENGSGsX"


@dataclass
class AcoustIdMatch:
    """Successful lookup envelope"""
    status: str
    # Raw "results" array as returned by the service, not interpreted
    results: List[Any] = field(default_factory=list)


class AcoustIdResolver(Resolver):
    """
    Looks up one fingerprint in the AcoustID database.

    Build one instance per fingerprint; call lookup() once.
    """

    API_URL = "https://api.acoustid.org/v2/lookup"

    limiter = RateLimiterState(ceiling=3, window=1.0)

    def __init__(
        self,
        duration: int,
        fingerprint: str,
        client_key: str = DEFAULT_CLIENT_KEY,
        fetch: Optional[HttpFetch] = None,
        limiter: Optional[RateLimiterState] = None
    ):
        """
        Args:
            duration: Audio duration in seconds
            fingerprint: Chromaprint fingerprint string
            client_key: AcoustID application key
            fetch: HTTP transport (requests-based by default)
            limiter: Rate limiter (shared class limiter by default)
        """
        super().__init__(fetch, limiter)
        self.duration = int(duration)
        self.fingerprint = fingerprint
        params = [
            ("client", client_key),
            ("duration", str(self.duration)),
            ("meta", "recordingids"),
            ("fingerprint", fingerprint)
        ]
        self.lookup_url = f"{self.API_URL}?{urlencode(params)}"

    @property
    def name(self) -> str:
        return "acoustid"

    def lookup(self) -> ResolverResult:
        """
        Look up the fingerprint.

        Returns:
            OK with an AcoustIdMatch, or NETWORK / REMOTE_REJECTED /
            PARSE_FAILURE
        """
        self.limiter.wait()

        try:
            body = self.fetch.get_text(self.lookup_url)
        except FetchError as e:
            self.log(f"AcoustID API error: {e}")
            return self._finish(LookupStatus.NETWORK)

        self.limiter.record()

        data = self._parse_json(body)
        if data is None:
            return self._finish(LookupStatus.PARSE_FAILURE)

        status = self._get_str(data, "status", "error")
        if status != "ok":
            error = data.get("error")
            if isinstance(error, dict):
                self.log(f"AcoustID error: {error.get('message', 'Unknown error')}")
            return self._finish(LookupStatus.REMOTE_REJECTED)

        results = data.get("results")
        if not isinstance(results, list):
            results = []

        return self._finish(LookupStatus.OK, AcoustIdMatch(status=status, results=results))
