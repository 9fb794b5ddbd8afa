#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tag record model shared by the aggregator, the search language and the
enrichment batches.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


# Editable scalar fields, in display order
TAG_FIELDS = (
    "filename",
    "title",
    "artist",
    "album",
    "year",
    "track",
    "albumartist",
    "genre",
    "comment",
)

NUMERIC_FIELDS = ("year", "track")


@dataclass
class TagRecord:
    """One file's metadata"""
    filename: str
    title: str = ""
    artist: str = ""
    album: str = ""
    year: Optional[int] = None
    track: Optional[int] = None
    albumartist: str = ""
    genre: str = ""
    comment: str = ""
    duration: int = 0
    fingerprint: str = ""
    file_size: int = 0
    album_art: Optional[bytes] = None
    path: Optional[str] = None
    release_id: str = ""

    def field_text(self, name: str) -> str:
        """Field value as displayed and searched: None is empty, ints in decimal"""
        value = getattr(self, name)
        if value is None:
            return ""
        return str(value)

    @property
    def has_album_art(self) -> bool:
        return bool(self.album_art)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (artwork summarised by size)"""
        data = {name: getattr(self, name) for name in TAG_FIELDS}
        data.update({
            "duration": self.duration,
            "file_size": self.file_size,
            "album_art": len(self.album_art) if self.album_art else 0,
            "release_id": self.release_id,
            "path": self.path
        })
        return data


def parse_number(value: Any) -> Optional[int]:
    """
    Coerce a year/track value.

    Accepts None, ints, "" and digit-only strings. "5/12" style track
    numbers keep the part before the slash.

    Raises:
        ValueError: for anything else
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip().split("/")[0].strip()
        if not text:
            return None
        if text.isascii() and text.isdigit():
            return int(text)
    raise ValueError(f"Not a number: {value!r}")


def format_duration(seconds: int) -> str:
    """Duration as H:MM:SS or M:SS"""
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_file_size(size: int) -> str:
    """File size with a binary unit suffix"""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} GB"
