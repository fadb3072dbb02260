"""Matching files by inode number and link count."""

from __future__ import annotations

import os

from findkit.matcher import ComparableValue, FileEntry, Matcher, MatcherIO


def _require_posix(what: str) -> None:
    if os.name != "posix":
        raise ValueError(f"{what} are not available on this platform")


class InodeMatcher(Matcher):
    """Matches files by inode number."""

    def __init__(self, ino: ComparableValue) -> None:
        _require_posix("Inode numbers")
        self.ino = ino

    def matches(self, entry: FileEntry, matcher_io: MatcherIO) -> bool:
        try:
            return self.ino.matches(entry.stat().st_ino)
        except OSError:
            return False


class LinksMatcher(Matcher):
    """Matches files by hard link count."""

    def __init__(self, nlink: ComparableValue) -> None:
        _require_posix("Link counts")
        self.nlink = nlink

    def matches(self, entry: FileEntry, matcher_io: MatcherIO) -> bool:
        try:
            return self.nlink.matches(entry.stat().st_nlink)
        except OSError:
            return False