# Metadata Resolvers
# Rate-limited lookups against AcoustID and MusicBrainz / Cover Art Archive

from .base import (HttpFetch, FetchError, LookupStatus, RateLimiterState,
                   Resolver, ResolverResult, should_throttle)
from .http import RequestsFetch
from .acoustid import AcoustIdResolver, AcoustIdMatch
from .musicbrainz import MusicBrainzResolver, ReleaseMetadata

__all__ = [
    'HttpFetch',
    'FetchError',
    'LookupStatus',
    'RateLimiterState',
    'Resolver',
    'ResolverResult',
    'should_throttle',
    'RequestsFetch',
    'AcoustIdResolver',      # Fingerprint lookup, 3 requests/second
    'AcoustIdMatch',
    'MusicBrainzResolver',   # Release + cover art, 50 requests/second
    'ReleaseMetadata'
]
