#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Enrichment batches: run the resolvers over a selection, one file at a time.

Each file's lookup (including any rate-limit wait) finishes before the
next one starts. A failed lookup leaves its record exactly as it was.
"""

import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sources import (AcoustIdResolver, HttpFetch, LookupStatus,
                     MusicBrainzResolver, ReleaseMetadata)
from sources.acoustid import DEFAULT_CLIENT_KEY
from sources.musicbrainz import DEFAULT_USER_AGENT

from .record import TagRecord


ProgressCallback = Callable[[str, int, int], None]


def _new_summary(total: int) -> Dict[str, Any]:
    return {
        "total": total,
        "success": 0,
        "failed": 0,
        "skipped": 0,
        "items": []
    }


def _progress(callback: Optional[ProgressCallback], message: str, current: int, total: int) -> None:
    if callback:
        callback(message, current, total)
    else:
        print(f"[Progress] {message} ({current}/{total})")


def merge_release(record: TagRecord, release: ReleaseMetadata, overwrite: bool) -> TagRecord:
    """
    Copy release metadata into a record.

    Release title goes to album, release artist to albumartist.
    Without overwrite only empty fields are filled.
    """
    updates = {}
    if release.title and (overwrite or not record.album):
        updates["album"] = release.title
    if release.artist and (overwrite or not record.albumartist):
        updates["albumartist"] = release.artist
    if release.album_art and (overwrite or not record.album_art):
        updates["album_art"] = release.album_art
    return replace(record, **updates) if updates else record


def download_musicbrainz_metadata(
    records: Sequence[TagRecord],
    overwrite: bool = False,
    user_agent: str = DEFAULT_USER_AGENT,
    fetch: Optional[HttpFetch] = None,
    strict_artwork: bool = True,
    progress: Optional[ProgressCallback] = None
) -> Tuple[List[TagRecord], Dict[str, Any]]:
    """
    Look up every record's MusicBrainz release and merge the results.

    Args:
        records: Selected records; those without a release_id are skipped
        overwrite: Replace filled-in fields instead of only empty ones
        user_agent: MusicBrainz client identification
        fetch: HTTP transport shared by the lookups
        strict_artwork: See MusicBrainzResolver
        progress: Optional callback(message, current, total)

    Returns:
        (updated records, summary)
    """
    summary = _new_summary(len(records))
    updated = []
    start = time.time()

    for i, record in enumerate(records, 1):
        _progress(progress, f"MusicBrainz: {record.filename}", i, len(records))

        if not record.release_id:
            summary["skipped"] += 1
            summary["items"].append({"filename": record.filename, "status": "skipped"})
            updated.append(record)
            continue

        resolver = MusicBrainzResolver(
            record.release_id,
            user_agent=user_agent,
            fetch=fetch,
            strict_artwork=strict_artwork
        )
        result = resolver.lookup()

        if result.ok:
            summary["success"] += 1
            updated.append(merge_release(record, result.payload, overwrite))
        else:
            summary["failed"] += 1
            updated.append(record)
        summary["items"].append({"filename": record.filename, "status": result.status.value})

    summary["duration"] = time.time() - start
    return updated, summary


def lookup_fingerprints(
    records: Sequence[TagRecord],
    client_key: str = DEFAULT_CLIENT_KEY,
    fetch: Optional[HttpFetch] = None,
    progress: Optional[ProgressCallback] = None
) -> Dict[str, Any]:
    """
    Look up every record's fingerprint in AcoustID.

    Records without fingerprint or duration are skipped.

    Returns:
        Summary with a status per file and the raw results of matches
    """
    summary = _new_summary(len(records))
    start = time.time()

    for i, record in enumerate(records, 1):
        _progress(progress, f"AcoustID: {record.filename}", i, len(records))

        if not record.fingerprint or not record.duration:
            summary["skipped"] += 1
            summary["items"].append({"filename": record.filename, "status": "skipped"})
            continue

        resolver = AcoustIdResolver(record.duration, record.fingerprint, client_key=client_key, fetch=fetch)
        result = resolver.lookup()

        item = {"filename": record.filename, "status": result.status.value}
        if result.status == LookupStatus.OK:
            summary["success"] += 1
            item["results"] = result.payload.results
        else:
            summary["failed"] += 1
        summary["items"].append(item)

    summary["duration"] = time.time() - start
    return summary
