"""Core types shared by the find matchers."""

from __future__ import annotations

import enum
import os
import sys
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO


@dataclass(frozen=True)
class FileEntry:
    """A file met during a directory walk."""

    path: str
    depth: int = 0
    follow_links: bool = False

    @property
    def file_name(self) -> str:
        """The last component of the path, or the path itself if it has none."""
        return Path(self.path).name or self.path

    def stat(self) -> os.stat_result:
        """Return the file's metadata, following a link only if asked to."""
        if self.follow_links:
            return os.stat(self.path)
        return os.lstat(self.path)


@dataclass
class MatcherIO:
    """State a matcher may read or change while it examines one entry."""

    output: TextIO = field(default_factory=lambda: sys.stdout)
    now: float = field(default_factory=time.time)
    _quit: bool = field(default=False, init=False, repr=False)

    def quit(self) -> None:
        """Ask the search to stop after this entry."""
        self._quit = True

    def should_quit(self) -> bool:
        """Whether a matcher asked the search to stop."""
        return self._quit


class Matcher(ABC):
    """Decides whether a file entry matches."""

    @abstractmethod
    def matches(self, entry: FileEntry, matcher_io: MatcherIO) -> bool:
        """Return True if ``entry`` matches."""


class _Relation(enum.Enum):
    MORE_THAN = "+"
    EQUAL_TO = ""
    LESS_THAN = "-"


@dataclass(frozen=True)
class ComparableValue:
    """A number a value must be more than, equal to or less than."""

    relation: _Relation
    value: int

    @classmethod
    def more_than(cls, value: int) -> ComparableValue:
        return cls(_Relation.MORE_THAN, value)

    @classmethod
    def equal_to(cls, value: int) -> ComparableValue:
        return cls(_Relation.EQUAL_TO, value)

    @classmethod
    def less_than(cls, value: int) -> ComparableValue:
        return cls(_Relation.LESS_THAN, value)

    def matches(self, value: int) -> bool:
        """Compare a non-negative ``value``."""
        if value < 0:
            raise ValueError(f"expected a non-negative value, got {value}")
        return self.imatches(value)

    def imatches(self, value: int) -> bool:
        """Compare a value that may be negative."""
        if self.relation is _Relation.MORE_THAN:
            return value > self.value
        if self.relation is _Relation.LESS_THAN:
            return value < self.value
        return value == self.value


class QuitMatcher(Matcher):
    """Matches everything and stops the search at once."""

    def matches(self, entry: FileEntry, matcher_io: MatcherIO) -> bool:
        matcher_io.quit()
        return True