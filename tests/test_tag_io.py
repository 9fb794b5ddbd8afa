"""Tests for the generic-format tag writer (mutagen replaced by a fake file)."""

from pathlib import Path

import pytest

from tagger import TagRecord
from utilities import tag_io


class FakeEasyFile(dict):
    """Easy-interface file; keys outside `supported` are rejected like EasyID3 does."""

    def __init__(self, supported=None, **existing):
        super().__init__(existing)
        self.tags = {}
        self.supported = supported
        self.saved = False

    def __setitem__(self, key, value):
        if self.supported is not None and key not in self.supported:
            raise KeyError(key)
        super().__setitem__(key, value)

    def save(self):
        self.saved = True


@pytest.fixture
def easy_file(monkeypatch):
    def install(audio):
        monkeypatch.setattr(tag_io.mutagen, "File", lambda path, easy=False: audio)
        return audio
    return install


class TestWriteGeneric:
    def test_comment_written(self, easy_file) -> None:
        audio = easy_file(FakeEasyFile())
        record = TagRecord(filename="a.ogg", title="Song", comment="Live take")

        tag_io._write_generic(Path("a.ogg"), record)

        assert audio["comment"] == "Live take"
        assert audio["title"] == "Song"
        assert audio.saved

    def test_cleared_comment_removed(self, easy_file) -> None:
        audio = easy_file(FakeEasyFile(comment=["old"]))
        tag_io._write_generic(Path("a.opus"), TagRecord(filename="a.opus"))
        assert "comment" not in audio

    def test_unsupported_comment_is_logged(self, easy_file, capsys) -> None:
        audio = easy_file(FakeEasyFile(supported=set(tag_io.EASY_KEYS.values())))

        tag_io._write_generic(Path("a.wav"), TagRecord(filename="a.wav", genre="Jazz", comment="x"))

        assert audio["genre"] == "Jazz"
        assert "comment" not in audio
        assert "'comment' not supported" in capsys.readouterr().out

    def test_unreadable_file(self, easy_file) -> None:
        easy_file(None)
        with pytest.raises(tag_io.mutagen.MutagenError):
            tag_io._write_generic(Path("a.wma"), TagRecord(filename="a.wma"))


@pytest.mark.parametrize("text, expected", [("2022-05-01", 2022), ("²０２２", None), ("", None)])
def test_year_from_date_text(text, expected) -> None:
    assert tag_io._safe_number(text) == expected
