"""Tests for the sequential enrichment batches."""

import json
from dataclasses import replace

from sources import FetchError
from tagger import TagRecord, download_musicbrainz_metadata, lookup_fingerprints
from tagger.enrich import merge_release
from sources import ReleaseMetadata


def release_routes(release_id, title="Album", artist="Artist"):
    return {
        f"https://musicbrainz.org/ws/2/release/{release_id}?inc=artists&fmt=json":
            json.dumps({"title": title, "artist-credit": [{"name": artist}]}),
        f"https://coverartarchive.org/release/{release_id}": "Not Found",
    }


class TestMergeRelease:
    def test_overwrite(self) -> None:
        record = TagRecord(filename="a.mp3", album="Old", albumartist="Old")
        merged = merge_release(record, ReleaseMetadata("New", "Band", b"art"), overwrite=True)
        assert (merged.album, merged.albumartist, merged.album_art) == ("New", "Band", b"art")

    def test_fill_empty_only(self) -> None:
        record = TagRecord(filename="a.mp3", album="Old", album_art=b"mine")
        merged = merge_release(record, ReleaseMetadata("New", "Band", b"art"), overwrite=False)
        assert merged.album == "Old"
        assert merged.albumartist == "Band"
        assert merged.album_art == b"mine"

    def test_empty_release_fields_never_clear(self) -> None:
        record = TagRecord(filename="a.mp3", album="Old")
        assert merge_release(record, ReleaseMetadata(), overwrite=True) == record


class TestDownloadMusicBrainz:
    def test_sequential_batch(self, make_fetch) -> None:
        routes = {}
        routes.update(release_routes("r1", "One", "A"))
        routes.update(release_routes("r2", "Two", "B"))
        records = [
            TagRecord(filename="1.mp3", release_id="r1"),
            TagRecord(filename="2.mp3", release_id="r2"),
            TagRecord(filename="3.mp3"),
        ]
        progress = []

        updated, summary = download_musicbrainz_metadata(
            records, overwrite=True, fetch=make_fetch(routes),
            progress=lambda message, current, total: progress.append((current, total))
        )

        assert [r.album for r in updated] == ["One", "Two", ""]
        assert [r.albumartist for r in updated] == ["A", "B", ""]
        assert (summary["success"], summary["failed"], summary["skipped"]) == (2, 0, 1)
        assert progress == [(1, 3), (2, 3), (3, 3)]

    def test_failure_leaves_record_unchanged(self, make_fetch) -> None:
        record = TagRecord(filename="1.mp3", album="Keep", release_id="bad")
        fetch = make_fetch({
            "https://musicbrainz.org/ws/2/release/bad?inc=artists&fmt=json": FetchError("timeout")
        })

        updated, summary = download_musicbrainz_metadata([record], overwrite=True, fetch=fetch,
                                                         progress=lambda *a: None)

        assert updated == [record]
        assert summary["failed"] == 1
        assert summary["items"][0]["status"] == "network"

    def test_artwork_failure_discards_metadata(self, make_fetch) -> None:
        routes = release_routes("r1")
        routes["https://coverartarchive.org/release/r1"] = ""
        record = TagRecord(filename="1.mp3", release_id="r1")

        updated, summary = download_musicbrainz_metadata([record], overwrite=True,
                                                         fetch=make_fetch(routes),
                                                         progress=lambda *a: None)

        assert updated == [record]
        assert summary["failed"] == 1


class TestLookupFingerprints:
    def test_statuses(self, make_fetch) -> None:
        records = [
            TagRecord(filename="1.mp3", fingerprint="AQAA", duration=100),
            TagRecord(filename="2.mp3"),
        ]
        fetch = make_fetch({
            "https://api.acoustid.org/v2/lookup?client=Lz9ENGSGsX&duration=100"
            "&meta=recordingids&fingerprint=AQAA": json.dumps({"status": "ok", "results": [{"id": "x"}]})
        })

        summary = lookup_fingerprints(records, fetch=fetch, progress=lambda *a: None)

        assert summary["success"] == 1
        assert summary["skipped"] == 1
        assert summary["items"][0]["results"] == [{"id": "x"}]

    def test_does_not_modify_records(self, make_fetch) -> None:
        record = TagRecord(filename="1.mp3", fingerprint="AQAA", duration=100)
        before = replace(record)
        lookup_fingerprints([record], fetch=make_fetch(), progress=lambda *a: None)
        assert record == before
