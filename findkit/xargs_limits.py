"""Limits on the size of a single command line built by xargs."""

from __future__ import annotations

import copy
import enum
import os
import sys
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

# POSIX asks that this much room is left for the child's own environment.
_ARG_HEADROOM = 2048
# Longest command line accepted by CreateProcess.
_WINDOWS_MAX_CMDLINE = 32767


class ArgumentKind(enum.Enum):
    """How an argument came to be part of a command line."""

    INITIAL = "initial"
    """Given as part of the initial command line."""
    HARD_TERMINATED = "hard"
    """Ended by a newline or a custom delimiter."""
    SOFT_TERMINATED = "soft"
    """Ended by whitespace other than a newline."""


@dataclass(frozen=True)
class Argument:
    """One argument destined for a command line."""

    arg: str
    kind: ArgumentKind


class ExhaustedCommandSpace(Exception):
    """Raised when an argument does not fit into the current command line."""

    def __init__(self, arg: Argument, out_of_chars: bool) -> None:
        reason = "character" if out_of_chars else "argument"
        super().__init__(f"no room for {arg.arg!r}: {reason} limit reached")
        self.arg = arg
        self.out_of_chars = out_of_chars


def count_chars_for_exec(s: str | bytes) -> int:
    """Return the space ``s`` takes on a command line, terminator included."""
    if sys.platform == "win32":
        text = os.fsdecode(s) if isinstance(s, bytes) else s
        return len(text.encode("utf-16-le")) // 2 + 1
    data = s if isinstance(s, bytes) else os.fsencode(s)
    return len(data) + 1


class LimiterCursor:
    """Points at the limiters that still have to accept an argument."""

    def __init__(self, limiters: Sequence[CommandSizeLimiter] = ()) -> None:
        self._limiters = limiters

    def try_next(self, arg: Argument) -> Argument:
        """Offer ``arg`` to the remaining limiters, in order."""
        if not self._limiters:
            return arg
        current, remaining = self._limiters[0], self._limiters[1:]
        return current.try_arg(arg, LimiterCursor(remaining))


class CommandSizeLimiter(ABC):
    """Constrains the size of one command line.

    A limiter must pass the argument on through the cursor before it updates
    its own state, so that every other limiter accepts it first.
    """

    @abstractmethod
    def try_arg(self, arg: Argument, cursor: LimiterCursor) -> Argument:
        """Accept ``arg`` or raise :class:`ExhaustedCommandSpace`."""


@dataclass
class MaxCharsLimiter(CommandSizeLimiter):
    """Limits the total number of characters on the command line."""

    max_chars: int
    current_size: int = field(default=0)

    def try_arg(self, arg: Argument, cursor: LimiterCursor) -> Argument:
        chars = count_chars_for_exec(arg.arg)
        if self.current_size + chars > self.max_chars:
            raise ExhaustedCommandSpace(arg, out_of_chars=True)
        arg = cursor.try_next(arg)
        self.current_size += chars
        return arg


@dataclass
class MaxArgsLimiter(CommandSizeLimiter):
    """Limits the number of non-initial arguments on the command line."""

    max_args: int
    current_args: int = field(default=0)

    def try_arg(self, arg: Argument, cursor: LimiterCursor) -> Argument:
        if self.current_args >= self.max_args:
            raise ExhaustedCommandSpace(arg, out_of_chars=False)
        arg = cursor.try_next(arg)
        if arg.kind is not ArgumentKind.INITIAL:
            self.current_args += 1
        return arg


@dataclass
class MaxLinesLimiter(CommandSizeLimiter):
    """Limits the number of hard-terminated input lines per command line.

    With a custom delimiter the "lines" are the delimited records.
    """

    max_lines: int
    current_line: int = field(default=1)

    def try_arg(self, arg: Argument, cursor: LimiterCursor) -> Argument:
        if self.current_line > self.max_lines:
            raise ExhaustedCommandSpace(arg, out_of_chars=False)
        arg = cursor.try_next(arg)
        if arg.kind is ArgumentKind.HARD_TERMINATED:
            self.current_line += 1
        return arg


def system_chars_limiter(env: Mapping[str, str]) -> MaxCharsLimiter:
    """Build the character limiter imposed by the operating system."""
    if sys.platform == "win32":
        return MaxCharsLimiter(_WINDOWS_MAX_CMDLINE)
    arg_max = os.sysconf("SC_ARG_MAX")
    env_size = sum(
        count_chars_for_exec(name) + count_chars_for_exec(value)
        for name, value in env.items()
    )
    return MaxCharsLimiter(arg_max - _ARG_HEADROOM - env_size)


class LimiterCollection:
    """An ordered chain of limiters that must all accept each argument."""

    def __init__(self, limiters: Iterable[CommandSizeLimiter] = ()) -> None:
        self.limiters: list[CommandSizeLimiter] = list(limiters)

    def add(self, limiter: CommandSizeLimiter) -> None:
        """Append ``limiter`` to the end of the chain."""
        self.limiters.append(limiter)

    def try_arg(self, arg: Argument) -> Argument:
        """Offer ``arg`` to every limiter, raising if any one refuses it."""
        return LimiterCursor(self.limiters).try_next(arg)

    def copy(self) -> LimiterCollection:
        """Return a collection whose limiters carry independent state."""
        return LimiterCollection(copy.copy(limiter) for limiter in self.limiters)