import io
import os

import pytest

from findkit.matcher import FileEntry, MatcherIO
from findkit.type_matcher import TypeMatcher


@pytest.fixture
def tree(tmp_path):
    simple = tmp_path / "simple"
    simple.mkdir()
    (simple / "abbbc").write_text("")
    (simple / "subdir").mkdir()
    os.symlink("abbbc", simple / "link-f")
    os.symlink("subdir", simple / "link-d")
    os.symlink("missing", simple / "link-missing")
    return simple


def _io():
    return MatcherIO(output=io.StringIO())


def _entry(path):
    return FileEntry(str(path))


def test_file_type_matcher(tree):
    matcher = TypeMatcher("f")
    assert not matcher.matches(_entry(tree), _io())
    assert matcher.matches(_entry(tree / "abbbc"), _io())


def test_dir_type_matcher(tree):
    matcher = TypeMatcher("d")
    assert matcher.matches(_entry(tree), _io())
    assert not matcher.matches(_entry(tree / "abbbc"), _io())


def test_link_type_matcher(tree):
    matcher = TypeMatcher("l")
    assert not matcher.matches(_entry(tree), _io())
    assert not matcher.matches(_entry(tree / "abbbc"), _io())
    assert matcher.matches(_entry(tree / "link-f"), _io())
    assert matcher.matches(_entry(tree / "link-d"), _io())
    assert matcher.matches(_entry(tree / "link-missing"), _io())


def test_links_are_not_followed_by_default(tree):
    assert not TypeMatcher("f").matches(_entry(tree / "link-f"), _io())
    assert not TypeMatcher("d").matches(_entry(tree / "link-d"), _io())


def test_links_followed_when_asked(tree):
    entry = FileEntry(str(tree / "link-f"), follow_links=True)
    assert TypeMatcher("f").matches(entry, _io())
    assert not TypeMatcher("l").matches(entry, _io())


@pytest.mark.parametrize("typ", ["b", "c", "p", "s"])
def test_unix_extra_type_matcher(tree, typ):
    matcher = TypeMatcher(typ)
    assert not matcher.matches(_entry(tree), _io())
    assert not matcher.matches(_entry(tree / "abbbc"), _io())


def test_fifo_matches_p(tmp_path):
    fifo = tmp_path / "pipe"
    os.mkfifo(fifo)
    assert TypeMatcher("p").matches(_entry(fifo), _io())
    assert not TypeMatcher("f").matches(_entry(fifo), _io())


def test_missing_file_does_not_match(tmp_path):
    assert not TypeMatcher("f").matches(_entry(tmp_path / "nothing"), _io())


def test_cant_create_with_invalid_pattern():
    with pytest.raises(ValueError, match="Unrecognised type argument xxx"):
        TypeMatcher("xxx")


def test_door_type_not_supported():
    with pytest.raises(ValueError, match="Type argument D not supported yet"):
        TypeMatcher("D")