"""Matching files by their type."""

from __future__ import annotations

import os
import stat as stat_module
from collections.abc import Callable

from findkit.matcher import FileEntry, Matcher, MatcherIO

_PORTABLE_TYPES: dict[str, Callable[[int], bool]] = {
    "f": stat_module.S_ISREG,
    "d": stat_module.S_ISDIR,
    "l": stat_module.S_ISLNK,
}

_POSIX_TYPES: dict[str, Callable[[int], bool]] = {
    **_PORTABLE_TYPES,
    "b": stat_module.S_ISBLK,
    "c": stat_module.S_ISCHR,
    "p": stat_module.S_ISFIFO,
    "s": stat_module.S_ISSOCK,
}

# Types that find knows of but this implementation cannot test for.
_UNSUPPORTED_TYPES = frozenset({"D"})


def _type_test(type_string: str) -> Callable[[int], bool]:
    if os.name == "posix":
        if type_string in _POSIX_TYPES:
            return _POSIX_TYPES[type_string]
        if type_string in _UNSUPPORTED_TYPES:
            raise ValueError(f"Type argument {type_string} not supported yet")
    elif type_string in _PORTABLE_TYPES:
        return _PORTABLE_TYPES[type_string]
    raise ValueError(f"Unrecognised type argument {type_string}")


class TypeMatcher(Matcher):
    """Matches files of one type: f, d, l and, on POSIX, b, c, p or s."""

    def __init__(self, type_string: str) -> None:
        self.type_string = type_string
        self._is_type = _type_test(type_string)

    def matches(self, entry: FileEntry, matcher_io: MatcherIO) -> bool:
        try:
            mode = entry.stat().st_mode
        except OSError:
            return False
        return self._is_type(mode)