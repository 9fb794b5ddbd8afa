# Tag Editing Core
# Aggregated view, advanced search and enrichment over tag records

from .record import TagRecord, TAG_FIELDS
from .aggregate import MIXED, ArtworkState, AggregatedTagView, aggregate, apply_edits
from .query import (QueryExpression, Clause, ParseResult, SearchResult,
                    parse_query, evaluate, search)
from .formats import FORMAT_STRINGS, filename_to_tag, tag_to_filename
from .enrich import download_musicbrainz_metadata, lookup_fingerprints

__all__ = [
    'TagRecord',
    'TAG_FIELDS',
    'MIXED',
    'ArtworkState',
    'AggregatedTagView',
    'aggregate',
    'apply_edits',
    'QueryExpression',
    'Clause',
    'ParseResult',
    'SearchResult',
    'parse_query',
    'evaluate',
    'search',
    'FORMAT_STRINGS',
    'filename_to_tag',
    'tag_to_filename',
    'download_musicbrainz_metadata',
    'lookup_fingerprints'
]
