#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Filename <-> tag conversion.

Format strings use %field% placeholders, e.g. "%artist%- %title%".
The file extension is never part of the format.
"""

import os
import re
from dataclasses import replace
from typing import List, Optional

from .record import NUMERIC_FIELDS, TagRecord, parse_number


FORMAT_STRINGS = [
    "%artist%- %title%",
    "%title%- %artist%",
    "%track%- %title%",
    "%title%",
]

FORMAT_FIELDS = ("title", "artist", "album", "year", "track", "albumartist", "genre", "comment")

_PLACEHOLDER = re.compile(r"%([a-z]+)%")


def format_fields(format_string: str) -> List[str]:
    """
    Placeholders used by a format string.

    Raises:
        ValueError: for unknown or repeated placeholders
    """
    fields = _PLACEHOLDER.findall(format_string)
    if not fields:
        raise ValueError(f"No placeholders in format: {format_string}")
    for field in fields:
        if field not in FORMAT_FIELDS:
            raise ValueError(f"Unknown placeholder: %{field}%")
    if len(set(fields)) != len(fields):
        raise ValueError(f"Repeated placeholder in format: {format_string}")
    return fields


def make_filename_safe(name: str) -> str:
    """
    Make a string safe for use as a filename.

    Args:
        name: Original string

    Returns:
        Safe filename string
    """
    replacements = {
        '/': ' - ',
        '\\': ' - ',
        ':': ' -',
        '"': "'",
        '<': '',
        '>': '',
        '|': '',
        '?': '',
        '*': '',
    }

    for old, new in replacements.items():
        name = name.replace(old, new)

    name = ' '.join(name.split())

    if len(name) > 200:
        name = name[:200].strip()

    return name


def tag_to_filename(record: TagRecord, format_string: str) -> Optional[TagRecord]:
    """
    Rename a record from its tags.

    Args:
        record: Source record
        format_string: e.g. "%track%- %title%"

    Returns:
        Record with the new filename, or None if a referenced tag is empty
    """
    fields = format_fields(format_string)
    values = {}
    for field in fields:
        text = record.field_text(field)
        if not text:
            return None
        if field == "track":
            text = text.zfill(2)
        values[field] = make_filename_safe(text)

    stem = _PLACEHOLDER.sub(lambda m: values[m.group(1)], format_string)
    ext = os.path.splitext(record.filename)[1]
    return replace(record, filename=f"{stem.strip()}{ext}")


def _format_regex(format_string: str) -> "re.Pattern":
    parts = []
    pos = 0
    for match in _PLACEHOLDER.finditer(format_string):
        parts.append(re.escape(format_string[pos:match.start()]))
        field = match.group(1)
        if field in NUMERIC_FIELDS:
            parts.append(rf"\s*(?P<{field}>\d+)\s*")
        else:
            parts.append(rf"\s*(?P<{field}>.+?)\s*")
        pos = match.end()
    parts.append(re.escape(format_string[pos:]))
    return re.compile("^" + "".join(parts) + "$")


def filename_to_tag(record: TagRecord, format_string: str) -> Optional[TagRecord]:
    """
    Fill tags from a record's filename.

    Args:
        record: Source record
        format_string: e.g. "%artist%- %title%"

    Returns:
        Record with the parsed fields set, or None if the filename does
        not match the format
    """
    format_fields(format_string)
    stem = os.path.splitext(record.filename)[0]
    match = _format_regex(format_string).match(stem)
    if not match:
        return None

    updates = {}
    for field, value in match.groupdict().items():
        value = value.strip()
        updates[field] = parse_number(value) if field in NUMERIC_FIELDS else value
    return replace(record, **updates)
