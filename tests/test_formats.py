"""Tests for filename <-> tag conversion."""

import pytest

from tagger import TagRecord, filename_to_tag, tag_to_filename
from tagger.formats import format_fields, make_filename_safe


class TestFormatFields:
    def test_fields(self) -> None:
        assert format_fields("%track%- %title%") == ["track", "title"]

    @pytest.mark.parametrize("fmt", ["plain", "%bogus%", "%title% %title%"])
    def test_rejected(self, fmt) -> None:
        with pytest.raises(ValueError):
            format_fields(fmt)


class TestTagToFilename:
    def test_artist_title(self) -> None:
        record = TagRecord(filename="track01.mp3", artist="Bob", title="Song")
        assert tag_to_filename(record, "%artist%- %title%").filename == "Bob- Song.mp3"

    def test_track_is_zero_padded(self) -> None:
        record = TagRecord(filename="x.flac", track=5, title="Song")
        assert tag_to_filename(record, "%track%- %title%").filename == "05- Song.flac"

    def test_unsafe_characters(self) -> None:
        record = TagRecord(filename="x.mp3", title='What? / "Why"')
        assert tag_to_filename(record, "%title%").filename == "What - 'Why'.mp3"

    def test_missing_tag(self) -> None:
        record = TagRecord(filename="x.mp3", title="Song")
        assert tag_to_filename(record, "%artist%- %title%") is None


class TestFilenameToTag:
    def test_artist_title(self) -> None:
        record = TagRecord(filename="Bob - Song Name.mp3")
        converted = filename_to_tag(record, "%artist%- %title%")
        assert converted.artist == "Bob"
        assert converted.title == "Song Name"
        assert converted.filename == "Bob - Song Name.mp3"

    def test_track(self) -> None:
        converted = filename_to_tag(TagRecord(filename="07- Song.mp3"), "%track%- %title%")
        assert converted.track == 7
        assert converted.title == "Song"

    def test_no_match(self) -> None:
        assert filename_to_tag(TagRecord(filename="Song.mp3"), "%track%- %title%") is None

    def test_round_trip(self) -> None:
        record = TagRecord(filename="old.mp3", artist="Alice", title="Tune", track=12)
        renamed = tag_to_filename(record, "%track%- %title%")
        parsed = filename_to_tag(TagRecord(filename=renamed.filename), "%track%- %title%")
        assert (parsed.track, parsed.title) == (12, "Tune")


def test_make_filename_safe_collapses_spaces() -> None:
    assert make_filename_safe("a   b*") == "a b"
