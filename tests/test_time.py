import io
import os

import pytest

from findkit.matcher import ComparableValue, FileEntry, MatcherIO
from findkit.time import (
    SECONDS_PER_DAY,
    FileTimeMatcher,
    FileTimeType,
    NewerMatcher,
)

OLD_TIME = 1_500_000_000
NEW_TIME = 1_600_000_000


def _io(now):
    return MatcherIO(output=io.StringIO(), now=now)


@pytest.fixture
def old_and_new(tmp_path):
    old = tmp_path / "simple"
    old.mkdir()
    os.utime(old, (OLD_TIME, OLD_TIME))
    new = tmp_path / "newFile"
    new.write_text("")
    os.utime(new, (NEW_TIME, NEW_TIME))
    return old, new


def test_newer_matcher(old_and_new):
    old, new = old_and_new
    matcher_for_new = NewerMatcher(str(new))
    matcher_for_old = NewerMatcher(str(old))
    old_entry = FileEntry(str(old))
    new_entry = FileEntry(str(new))

    assert not matcher_for_new.matches(old_entry, _io(NEW_TIME))
    assert matcher_for_old.matches(new_entry, _io(NEW_TIME))
    assert not matcher_for_old.matches(old_entry, _io(NEW_TIME))


def test_newer_matcher_missing_reference(tmp_path):
    with pytest.raises(FileNotFoundError):
        NewerMatcher(str(tmp_path / "missing"))


def test_newer_matcher_missing_entry(old_and_new, tmp_path, capsys):
    old, _ = old_and_new
    matcher = NewerMatcher(str(old))
    missing = FileEntry(str(tmp_path / "missing"))
    assert not matcher.matches(missing, _io(NEW_TIME))
    assert "Error getting modification time" in capsys.readouterr().err


@pytest.fixture
def dated_file(tmp_path):
    path = tmp_path / "simple"
    path.mkdir()
    os.utime(path, (OLD_TIME, OLD_TIME))
    return FileEntry(str(path))


def _day_matchers():
    return (
        FileTimeMatcher(FileTimeType.MODIFIED, ComparableValue.equal_to(1)),
        FileTimeMatcher(FileTimeType.MODIFIED, ComparableValue.more_than(1)),
        FileTimeMatcher(FileTimeType.MODIFIED, ComparableValue.less_than(1)),
        FileTimeMatcher(FileTimeType.MODIFIED, ComparableValue.equal_to(0)),
    )


@pytest.mark.parametrize(
    "offset, expected",
    [
        (2 * SECONDS_PER_DAY, (False, True, False, False)),
        (3 * SECONDS_PER_DAY // 2, (True, False, False, False)),
        (0, (False, False, True, True)),
        (-1, (False, False, True, False)),
    ],
)
def test_file_time_matcher(dated_file, offset, expected):
    mtime = dated_file.stat().st_mtime
    results = tuple(
        matcher.matches(dated_file, _io(mtime + offset))
        for matcher in _day_matchers()
    )
    assert results == expected


@pytest.mark.parametrize(
    "file_time_type, attribute",
    [(FileTimeType.ACCESSED, "st_atime"), (FileTimeType.MODIFIED, "st_mtime")],
)
def test_file_time_reads_attribute(tmp_path, file_time_type, attribute):
    path = tmp_path / "foo"
    path.write_text("x")
    os.utime(path, (OLD_TIME, NEW_TIME))
    result = os.stat(path)
    assert file_time_type.file_time(result) == getattr(result, attribute)


@pytest.mark.parametrize("file_time_type", [FileTimeType.ACCESSED, FileTimeType.MODIFIED])
def test_matcher_for_file_time_type(tmp_path, file_time_type):
    path = tmp_path / "foo"
    path.write_text("x")
    os.utime(path, (OLD_TIME, NEW_TIME))
    entry = FileEntry(str(path))
    file_time = file_time_type.file_time(entry.stat())
    matcher = FileTimeMatcher(file_time_type, ComparableValue.equal_to(0))

    assert matcher.matches(entry, _io(file_time))
    assert not matcher.matches(entry, _io(file_time - 1))


def test_file_time_matcher_missing_file(tmp_path, capsys):
    matcher = FileTimeMatcher(FileTimeType.MODIFIED, ComparableValue.equal_to(0))
    entry = FileEntry(str(tmp_path / "missing"))
    assert not matcher.matches(entry, _io(NEW_TIME))
    assert "Error getting Modified time for" in capsys.readouterr().err


def test_future_file_is_minus_one_day(dated_file):
    mtime = dated_file.stat().st_mtime
    matcher = FileTimeMatcher(FileTimeType.MODIFIED, ComparableValue.equal_to(-1))
    assert matcher.matches(dated_file, _io(mtime - 1))
    assert not matcher.matches(dated_file, _io(mtime - SECONDS_PER_DAY - 1))