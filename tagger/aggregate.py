#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Aggregated tag view over a file selection.

aggregate() collapses N records into one view where fields the records
disagree on hold the MIXED sentinel. apply_edits() writes the fields the
user changed back into every record of the selection.
"""

from dataclasses import replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .record import NUMERIC_FIELDS, TAG_FIELDS, TagRecord, parse_number


class _Mixed:
    """Sentinel for a field the selected records disagree on"""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<mixed>"

    def __bool__(self) -> bool:
        return False


MIXED = _Mixed()


class ArtworkState(Enum):
    """Artwork across the selection"""
    NONE = "none"       # no record carries art
    SINGLE = "single"   # one distinct artwork shared by the selection
    MIXED = "mixed"     # records disagree; never silently pick one


class AggregatedTagView:
    """
    One synthetic record over a non-empty selection.

    Values are read and edited by field name:

        view = aggregate(records)
        view["genre"] = "Jazz"
        records = apply_edits(view, records)
    """

    def __init__(
        self,
        values: Dict[str, Any],
        artwork_state: ArtworkState,
        album_art: Optional[bytes],
        count: int,
        total_duration: int = 0,
        total_file_size: int = 0
    ):
        self._values = dict(values)
        self.artwork_state = artwork_state
        self.album_art = album_art
        self.count = count
        self.total_duration = total_duration
        self.total_file_size = total_file_size
        self.artwork_edited = False

    @property
    def filename_editable(self) -> bool:
        return self.count == 1

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __setitem__(self, name: str, value: Any) -> None:
        if name not in TAG_FIELDS:
            raise KeyError(name)
        if name == "filename" and not self.filename_editable and value is not MIXED:
            raise ValueError("Filename can only be edited for a single file")
        if name in NUMERIC_FIELDS and value is not MIXED:
            value = parse_number(value)
        self._values[name] = value

    def is_mixed(self, name: str) -> bool:
        return self._values[name] is MIXED

    def set_artwork(self, data: bytes) -> None:
        """Replace the artwork of every selected record"""
        self.album_art = data
        self.artwork_state = ArtworkState.SINGLE
        self.artwork_edited = True

    def remove_artwork(self) -> None:
        """Remove the artwork from every selected record"""
        self.album_art = None
        self.artwork_state = ArtworkState.NONE
        self.artwork_edited = True

    def items(self):
        return ((name, self._values[name]) for name in TAG_FIELDS)

    def __repr__(self) -> str:
        mixed = [name for name in TAG_FIELDS if self.is_mixed(name)]
        return f"AggregatedTagView(count={self.count}, mixed={mixed}, artwork={self.artwork_state.value})"


def _common_value(values: Iterable[Any]) -> Any:
    values = list(values)
    first = values[0]
    for value in values[1:]:
        if value != first:
            return MIXED
    return first


def _artwork_state(records: Sequence[TagRecord]):
    arts = [record.album_art or None for record in records]
    if all(art is None for art in arts):
        return ArtworkState.NONE, None
    if len(records) == 1:
        return ArtworkState.SINGLE, arts[0]
    distinct = set(arts)
    if len(distinct) == 1:
        return ArtworkState.SINGLE, arts[0]
    return ArtworkState.MIXED, None


def aggregate(records: Sequence[TagRecord]) -> AggregatedTagView:
    """
    Build the aggregated view of a selection.

    Args:
        records: Selected records (at least one)

    Returns:
        AggregatedTagView where disagreeing fields are MIXED

    Raises:
        ValueError: if records is empty
    """
    if not records:
        raise ValueError("Cannot aggregate an empty selection")

    values = {
        name: _common_value(getattr(record, name) for record in records)
        for name in TAG_FIELDS
    }
    artwork_state, album_art = _artwork_state(records)

    return AggregatedTagView(
        values,
        artwork_state,
        album_art,
        count=len(records),
        total_duration=sum(record.duration for record in records),
        total_file_size=sum(record.file_size for record in records)
    )


def changed_fields(view: AggregatedTagView, records: Sequence[TagRecord]) -> List[str]:
    """Fields whose view value is set and differs from at least one record"""
    changed = []
    for name, value in view.items():
        if value is MIXED:
            continue
        if any(getattr(record, name) != value for record in records):
            changed.append(name)
    return changed


def apply_edits(view: AggregatedTagView, records: Sequence[TagRecord]) -> List[TagRecord]:
    """
    Write the edited view back into the selection.

    Args:
        view: View built by aggregate() over the same records, then edited
        records: The selected records

    Returns:
        New records; unchanged records are returned as equal copies

    Raises:
        ValueError: if the view was built over a different selection size,
            or a filename edit targets several records
    """
    if view.count != len(records):
        raise ValueError(f"View covers {view.count} records, got {len(records)}")

    fields = changed_fields(view, records)
    if "filename" in fields and len(records) > 1:
        raise ValueError("Filename can only be edited for a single file")

    updates = {name: view[name] for name in fields}
    if view.artwork_edited:
        updates["album_art"] = view.album_art

    return [replace(record, **updates) for record in records]
