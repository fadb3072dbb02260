"""Matching files by their timestamps."""

from __future__ import annotations

import enum
import os
import sys

from findkit.matcher import ComparableValue, FileEntry, Matcher, MatcherIO

SECONDS_PER_DAY = 60 * 60 * 24


class NewerMatcher(Matcher):
    """Matches files modified later than a given reference file."""

    def __init__(self, path_to_file: str) -> None:
        self.given_modification_time = os.stat(path_to_file).st_mtime_ns

    def matches(self, entry: FileEntry, matcher_io: MatcherIO) -> bool:
        try:
            this_time = entry.stat().st_mtime_ns
        except OSError as err:
            print(
                f"Error getting modification time for {entry.path}: {err}",
                file=sys.stderr,
            )
            return False
        return this_time > self.given_modification_time


class FileTimeType(enum.Enum):
    """Which of a file's timestamps to look at."""

    ACCESSED = "Accessed"
    CREATED = "Created"
    MODIFIED = "Modified"

    def file_time(self, stat_result: os.stat_result) -> float:
        """Return the chosen timestamp, in seconds since the epoch."""
        if self is FileTimeType.ACCESSED:
            return stat_result.st_atime
        if self is FileTimeType.MODIFIED:
            return stat_result.st_mtime
        birthtime = getattr(stat_result, "st_birthtime", None)
        if birthtime is not None:
            return birthtime
        if sys.platform == "win32":
            return stat_result.st_ctime
        raise OSError("creation time is not available on this platform currently")


def _age_in_days(now: float, this_time: float) -> int:
    """Whole days between the two times; anything in the future is -1 or less."""
    age = now - this_time
    if age >= 0:
        return int(age) // SECONDS_PER_DAY
    return -(int(-age) // SECONDS_PER_DAY) - 1


class FileTimeMatcher(Matcher):
    """Matches files whose chosen timestamp is less than, exactly or more than N days old."""

    def __init__(self, file_time_type: FileTimeType, days: ComparableValue) -> None:
        self.file_time_type = file_time_type
        self.days = days

    def matches(self, entry: FileEntry, matcher_io: MatcherIO) -> bool:
        try:
            this_time = self.file_time_type.file_time(entry.stat())
        except OSError as err:
            print(
                f"Error getting {self.file_time_type.value} time for "
                f"{entry.path}: {err}",
                file=sys.stderr,
            )
            return False
        return self.days.imatches(_age_in_days(matcher_io.now, this_time))