#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Advanced search over tag records.

A search string starting with "!" is an advanced query:

    !prop1="value1";prop2="value2"

Valid properties: filename, title, artist, album, year, track,
albumartist, genre, comment. Values are wrapped in double quotes and may
be empty. year and track values must be numbers. Matching is exact and
case insensitive.

Any other string is a plain search: a case-insensitive substring match on
the filename, where an empty string matches every file.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional, Set, Tuple

from .record import NUMERIC_FIELDS, TagRecord


ADVANCED_MARKER = "!"

SEARCH_FIELDS = (
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

_CLAUSE = re.compile(r'([A-Za-z]+)="([^"]*)"')


@dataclass(frozen=True)
class Clause:
    field: str
    literal: str


@dataclass(frozen=True)
class QueryExpression:
    """Ordered clauses, all of which must match"""
    clauses: Tuple[Clause, ...] = ()

    def __len__(self) -> int:
        return len(self.clauses)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing a search string"""
    valid: bool
    expression: Optional[QueryExpression] = None
    error: str = ""


@dataclass(frozen=True)
class SearchResult:
    """
    Outcome of a search.

    valid is False only for a malformed advanced query, in which case
    filenames holds every file (the list is left unfiltered).
    """
    valid: bool
    advanced: bool
    filenames: frozenset


def is_advanced(raw: str) -> bool:
    return raw.startswith(ADVANCED_MARKER)


def _invalid(error: str) -> ParseResult:
    return ParseResult(valid=False, error=error)


@lru_cache(maxsize=256)
def parse_query(raw: str) -> ParseResult:
    """
    Parse an advanced search string.

    Args:
        raw: Search string as typed, including the leading "!"

    Returns:
        ParseResult; invalid input never raises
    """
    if not isinstance(raw, str) or not is_advanced(raw):
        return _invalid("Advanced search must start with '!'")

    body = raw[len(ADVANCED_MARKER):]
    if not body:
        return ParseResult(valid=True, expression=QueryExpression())

    clauses = []
    pos = 0
    while True:
        match = _CLAUSE.match(body, pos)
        if not match:
            return _invalid(f"Malformed clause at position {pos + 1}")

        field = match.group(1).lower()
        literal = match.group(2)
        if field not in SEARCH_FIELDS:
            return _invalid(f"Unknown property: {match.group(1)}")
        if field in NUMERIC_FIELDS and literal and not (literal.isascii() and literal.isdigit()):
            return _invalid(f"{field} must be a number: {literal}")

        clauses.append(Clause(field, literal))
        pos = match.end()

        if pos == len(body):
            break
        if body[pos] != ";":
            return _invalid(f"Expected ';' at position {pos + 1}")
        pos += 1

    return ParseResult(valid=True, expression=QueryExpression(tuple(clauses)))


def matches(expression: QueryExpression, record: TagRecord) -> bool:
    """True if the record satisfies every clause (False for no clauses)"""
    if not expression.clauses:
        return False
    for clause in expression.clauses:
        if record.field_text(clause.field).lower() != clause.literal.lower():
            return False
    return True


def evaluate(expression: QueryExpression, records: Iterable[TagRecord]) -> Set[str]:
    """
    Filenames of the records matching an expression.

    An expression with no clauses matches nothing.
    """
    return {record.filename for record in records if matches(expression, record)}


def search(raw: str, records: Iterable[TagRecord]) -> SearchResult:
    """
    Filter records by a plain or advanced search string.

    Args:
        raw: Search string as typed
        records: Records to filter

    Returns:
        SearchResult with the matching filenames
    """
    records = list(records)

    if not is_advanced(raw):
        needle = raw.lower()
        filenames = frozenset(
            record.filename for record in records
            if not needle or needle in record.filename.lower()
        )
        return SearchResult(valid=True, advanced=False, filenames=filenames)

    result = parse_query(raw)
    if not result.valid:
        return SearchResult(
            valid=False,
            advanced=True,
            filenames=frozenset(record.filename for record in records)
        )

    return SearchResult(
        valid=True,
        advanced=True,
        filenames=frozenset(evaluate(result.expression, records))
    )
