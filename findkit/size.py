"""Matching files by their size."""

from __future__ import annotations

import enum
import sys

from findkit.matcher import ComparableValue, FileEntry, Matcher, MatcherIO


class Unit(enum.Enum):
    """A unit of file size, valued by its power of two."""

    BYTE = 0
    TWO_BYTE_WORD = 1
    BLOCK = 9
    KIBIBYTE = 10
    MEBIBYTE = 20
    GIBIBYTE = 30


_SUFFIXES = {
    "c": Unit.BYTE,
    "w": Unit.TWO_BYTE_WORD,
    "": Unit.BLOCK,
    "b": Unit.BLOCK,
    "k": Unit.KIBIBYTE,
    "M": Unit.MEBIBYTE,
    "G": Unit.GIBIBYTE,
}


def parse_unit(suffix: str) -> Unit:
    """Return the unit a ``-size`` suffix names."""
    try:
        return _SUFFIXES[suffix]
    except KeyError:
        raise ValueError(
            f"Invalid suffix {suffix} for -size. Only allowed "
            "values are <nothing>, b, c, w, k, M or G"
        ) from None


def byte_size_to_unit_size(unit: Unit, byte_size: int) -> int:
    """Convert a size in bytes to ``unit``, rounding up."""
    if byte_size == 0:
        return 0
    shift = unit.value
    if shift == 0:
        return byte_size
    return ((byte_size - 1) >> shift) + 1


class SizeMatcher(Matcher):
    """Matches files whose size is less than, equal to or more than N units."""

    def __init__(self, value_to_match: ComparableValue, suffix: str) -> None:
        self.unit = parse_unit(suffix)
        self.value_to_match = value_to_match

    def matches(self, entry: FileEntry, matcher_io: MatcherIO) -> bool:
        try:
            size = entry.stat().st_size
        except OSError as err:
            print(f"Error getting file size for {entry.path}: {err}", file=sys.stderr)
            return False
        return self.value_to_match.matches(byte_size_to_unit_size(self.unit, size))