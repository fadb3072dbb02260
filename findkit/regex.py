"""Matching whole paths against regular expressions in several dialects."""

from __future__ import annotations

import enum
import re
import string
from dataclasses import dataclass

from findkit.matcher import FileEntry, Matcher, MatcherIO


class RegexType(enum.Enum):
    """A regular expression dialect accepted by ``-regextype``."""

    EMACS = "emacs"
    GREP = "grep"
    POSIX_BASIC = "posix-basic"
    POSIX_EXTENDED = "posix-extended"

    def __str__(self) -> str:
        return self.value


DEFAULT_REGEX_TYPE = RegexType.EMACS


class ParseRegexTypeError(ValueError):
    """Raised for a regex type name that is not recognised."""

    def __init__(self, name: str) -> None:
        choices = ", ".join(f"'{regex_type}'" for regex_type in RegexType)
        super().__init__(f"Invalid regex type: {name} (must be one of {choices})")
        self.name = name


_ALIASES = {
    "ed": RegexType.POSIX_BASIC,
    "sed": RegexType.POSIX_BASIC,
}


def parse_regex_type(s: str) -> RegexType:
    """Return the dialect named by ``s``; ``ed`` and ``sed`` mean posix-basic."""
    if s in _ALIASES:
        return _ALIASES[s]
    try:
        return RegexType(s)
    except ValueError:
        raise ParseRegexTypeError(s) from None


@dataclass(frozen=True)
class _Syntax:
    escaped_ops: bool
    """Groups and intervals are written ``\\(`` ``\\)`` ``\\{`` ``\\}``."""
    alternation: bool
    plus_qmark: str
    """"plain", "escaped" or "none"."""
    context_anchors: bool
    """``^``, ``$`` and a leading ``*`` are only special in certain places."""


_SYNTAXES = {
    RegexType.EMACS: _Syntax(True, True, "plain", True),
    RegexType.GREP: _Syntax(True, True, "escaped", True),
    RegexType.POSIX_BASIC: _Syntax(True, False, "none", True),
    RegexType.POSIX_EXTENDED: _Syntax(False, True, "plain", False),
}

_CHAR_CLASSES = {
    "alpha": "a-zA-Z",
    "digit": "0-9",
    "alnum": "a-zA-Z0-9",
    "upper": "A-Z",
    "lower": "a-z",
    "space": " \\t\\n\\r\\f\\v",
    "blank": " \\t",
    "punct": "".join(re.escape(ch) for ch in string.punctuation),
    "xdigit": "0-9A-Fa-f",
    "cntrl": "\\x00-\\x1f\\x7f",
    "print": "\\x20-\\x7e",
    "graph": "\\x21-\\x7e",
    "word": "\\w",
}

_ESCAPE_CLASSES = {
    "w": "\\w",
    "W": "\\W",
    "s": "\\s",
    "S": "\\S",
    "b": "\\b",
    "B": "\\B",
    "<": "\\b(?=\\w)",
    ">": "\\b(?<=\\w)",
    "`": "\\A",
    "'": "\\Z",
}
_ZERO_WIDTH = frozenset("bB<>`'")


def _operator(escaped: bool, ch: str, syntax: _Syntax) -> str | None:
    if not escaped:
        simple = {"*": "star", ".": "any", "[": "bracket", "^": "caret", "$": "dollar"}
        if ch in simple:
            return simple[ch]
        if not syntax.escaped_ops:
            ops = {"(": "open", ")": "close", "{": "interval"}
            if ch in ops:
                return ops[ch]
            if ch == "|" and syntax.alternation:
                return "alt"
        if syntax.plus_qmark == "plain" and ch in "+?":
            return "plus" if ch == "+" else "qmark"
        return None
    if syntax.escaped_ops:
        ops = {"(": "open", ")": "close", "{": "interval"}
        if ch in ops:
            return ops[ch]
        if ch == "|" and syntax.alternation:
            return "alt"
    if syntax.plus_qmark == "escaped" and ch in "+?":
        return "plus" if ch == "+" else "qmark"
    return None


def _parse_bracket(pattern: str, pos: int) -> tuple[str, int]:
    """Translate a bracket expression whose ``[`` ends just before ``pos``."""
    length = len(pattern)
    negate = pos < length and pattern[pos] == "^"
    if negate:
        pos += 1
    items: list[str] = []
    first = True
    while True:
        if pos >= length:
            raise ValueError("premature end of char-class")
        ch = pattern[pos]
        if ch == "]" and not first:
            pos += 1
            break
        if ch == "[" and pos + 1 < length and pattern[pos + 1] in ":.=":
            kind = pattern[pos + 1]
            end = pattern.find(kind + "]", pos + 2)
            if end < 0:
                raise ValueError("premature end of char-class")
            name = pattern[pos + 2 : end]
            pos = end + 2
            if kind == ":":
                if name not in _CHAR_CLASSES:
                    raise ValueError(f"invalid character class: {name}")
                items.append(_CHAR_CLASSES[name])
            else:
                if len(name) != 1:
                    raise ValueError(f"invalid collating element: {name}")
                items.append(re.escape(name))
        else:
            items.append(ch if ch == "-" else re.escape(ch))
            pos += 1
        first = False
    return "[" + ("^" if negate else "") + "".join(items) + "]", pos


def _parse_interval(pattern: str, pos: int, syntax: _Syntax) -> tuple[str, int] | None:
    """Parse an interval body starting at ``pos``; None if it is malformed."""
    closer = "\\}" if syntax.escaped_ops else "}"
    end = pattern.find(closer, pos)
    if end < 0:
        return None
    body = pattern[pos:end]
    match = re.fullmatch(r"(\d*)(,(\d*))?", body)
    if match is None or (not match.group(1) and not match.group(2)):
        return None
    low = int(match.group(1)) if match.group(1) else 0
    if match.group(2) is None:
        text = f"{{{low}}}"
    elif match.group(3):
        high = int(match.group(3))
        if high < low:
            raise ValueError("invalid interval: upper bound below lower bound")
        text = f"{{{low},{high}}}"
    else:
        text = f"{{{low},}}"
    return text, end + len(closer)


def _translate(pattern: str, syntax: _Syntax) -> str:
    """Rewrite ``pattern`` in the given dialect as a Python regular expression."""
    out: list[str] = []
    length = len(pattern)
    pos = 0
    at_branch_start = True
    can_repeat = False
    quantified = False
    atom_start = 0
    group_starts: list[int] = []

    def literal(text: str) -> None:
        nonlocal atom_start, can_repeat, quantified
        atom_start = len(out)
        out.append(re.escape(text))
        can_repeat = True
        quantified = False

    def quantify(suffix: str) -> None:
        nonlocal quantified
        if quantified:
            out[atom_start:] = ["(?:" + "".join(out[atom_start:]) + ")"]
        out.append(suffix)
        quantified = True

    while pos < length:
        ch = pattern[pos]
        escaped = ch == "\\"
        if escaped:
            if pos + 1 >= length:
                raise ValueError("end pattern at escape")
            ch = pattern[pos + 1]
            pos += 2
        else:
            pos += 1

        op = _operator(escaped, ch, syntax)
        branch_start = at_branch_start
        at_branch_start = False

        if op is None:
            if not escaped:
                literal(ch)
            elif ch in "123456789":
                if int(ch) > len(group_starts) + out.count("(") - len(group_starts):
                    pass
                atom_start = len(out)
                out.append("\\" + ch)
                can_repeat, quantified = True, False
            elif ch in _ESCAPE_CLASSES:
                atom_start = len(out)
                out.append(_ESCAPE_CLASSES[ch])
                can_repeat, quantified = ch not in _ZERO_WIDTH, False
            else:
                literal(ch)
        elif op == "any":
            atom_start = len(out)
            out.append(".")
            can_repeat, quantified = True, False
        elif op == "bracket":
            text, pos = _parse_bracket(pattern, pos)
            atom_start = len(out)
            out.append(text)
            can_repeat, quantified = True, False
        elif op == "caret":
            if syntax.context_anchors and not branch_start:
                literal("^")
            else:
                out.append("\\A")
                can_repeat, quantified = False, False
        elif op == "dollar":
            at_end = pos == length
            if syntax.escaped_ops and pattern[pos : pos + 2] in ("\\)", "\\|"):
                at_end = True
            if syntax.context_anchors and not at_end:
                literal("$")
            else:
                out.append("\\Z")
                can_repeat, quantified = False, False
        elif op in ("star", "plus", "qmark"):
            symbol = {"star": "*", "plus": "+", "qmark": "?"}[op]
            if not can_repeat:
                if syntax.context_anchors:
                    literal(symbol)
                    continue
                raise ValueError("target of repeat operator is not specified")
            quantify(symbol)
        elif op == "interval":
            parsed = _parse_interval(pattern, pos, syntax)
            if parsed is None:
                if syntax.escaped_ops:
                    raise ValueError("invalid pattern in interval")
                literal("{")
                continue
            if not can_repeat:
                raise ValueError("target of repeat operator is not specified")
            text, pos = parsed
            quantify(text)
        elif op == "open":
            group_starts.append(len(out))
            out.append("(")
            at_branch_start = True
            can_repeat, quantified = False, False
        elif op == "close":
            if not group_starts:
                raise ValueError("unmatched close parenthesis")
            out.append(")")
            atom_start = group_starts.pop()
            can_repeat, quantified = True, False
        elif op == "alt":
            out.append("|")
            at_branch_start = True
            can_repeat, quantified = False, False

    if group_starts:
        raise ValueError("end pattern with unmatched parenthesis")
    return "".join(out)


class RegexMatcher(Matcher):
    """Matches files whose whole path matches a regular expression."""

    def __init__(
        self, regex_type: RegexType, pattern: str, ignore_case: bool = False
    ) -> None:
        translated = _translate(pattern, _SYNTAXES[regex_type])
        flags = re.IGNORECASE if ignore_case else 0
        try:
            self.regex = re.compile(translated, flags)
        except re.error as err:
            raise ValueError(f"invalid regular expression {pattern!r}: {err}") from None
        self.regex_type = regex_type
        self.pattern = pattern

    def matches(self, entry: FileEntry, matcher_io: MatcherIO) -> bool:
        return self.regex.fullmatch(entry.path) is not None