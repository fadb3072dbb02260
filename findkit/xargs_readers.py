"""Readers that split xargs input into arguments."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from findkit.xargs_limits import Argument, ArgumentKind

_CHUNK_SIZE = 4096
_ASCII_WHITESPACE = frozenset(b" \t\n\x0c\r")
_QUOTES = frozenset(b"\"'")
_BACKSLASH = ord("\\")
_NEWLINE = ord("\n")

_SPECIAL_ESCAPES = {
    "a": 0x07,
    "b": 0x08,
    "f": 0x0C,
    "n": 0x0A,
    "r": 0x0D,
    "t": 0x09,
    "v": 0x0B,
    "0": 0x00,
    "\\": 0x5C,
}


class _Readable(Protocol):
    def read(self, size: int = ..., /) -> bytes: ...


def _read_chunk(stream: _Readable, size: int) -> bytes:
    """Read up to ``size`` bytes, retrying reads that were interrupted."""
    while True:
        try:
            return stream.read(size)
        except InterruptedError:
            continue


def _parse_byte(digits: str, base: int) -> int:
    """Parse an unsigned byte strictly, in the given base."""
    if not digits:
        raise ValueError("cannot parse integer from empty string")
    body = digits[1:] if digits.startswith("+") else digits
    allowed = "0123456789abcdefABCDEF"[: base if base <= 10 else 10 + 2 * (base - 10)]
    if not body or any(ch not in allowed for ch in body):
        raise ValueError("invalid digit found in string")
    value = int(body, base)
    if value > 0xFF:
        raise ValueError("number too large to fit in target type")
    return value


def parse_delimiter(s: str) -> int:
    """Turn a delimiter specification into the byte it stands for."""
    if s.startswith("\\x"):
        try:
            return _parse_byte(s[2:], 16)
        except ValueError as err:
            raise ValueError(f"Invalid hex sequence: {err}") from None
    if s.startswith("\\0"):
        try:
            return _parse_byte(s[2:], 8)
        except ValueError as err:
            raise ValueError(f"Invalid octal sequence: {err}") from None
    if s.startswith("\\"):
        special = s[1:]
        if special in _SPECIAL_ESCAPES:
            return _SPECIAL_ESCAPES[special]
        raise ValueError(f"Invalid escape sequence: {s}")
    encoded = s.encode("utf-8")
    if len(encoded) == 1:
        return encoded[0]
    raise ValueError("Delimiter must be one byte")


class WhitespaceArgumentReader:
    """Splits input on whitespace, honouring quotes and backslash escapes."""

    def __init__(self, stream: _Readable) -> None:
        self._stream = stream
        self._pending = b""

    def read_argument(self) -> Argument | None:
        """Return the next argument, or None once the input is exhausted."""
        result = bytearray()
        quote: int | None = None
        escaped = False
        consumed = False
        terminated_by_newline = False

        pending = self._pending
        self._pending = b""
        pos = 0
        while True:
            if pos == len(pending):
                chunk = _read_chunk(self._stream, _CHUNK_SIZE)
                if not chunk:
                    if quote is not None:
                        raise ValueError(f"Unterminated quote: {quote}")
                    if not consumed:
                        return None
                    break
                pending = chunk
                pos = 0

            byte = pending[pos]
            pos += 1
            consumed = True

            if quote is not None:
                if byte == quote:
                    quote = None
                else:
                    result.append(byte)
            elif escaped:
                result.append(byte)
                escaped = False
            elif byte in _QUOTES:
                quote = byte
            elif byte == _BACKSLASH:
                escaped = True
            elif byte in _ASCII_WHITESPACE:
                if result:
                    terminated_by_newline = byte == _NEWLINE
                    self._pending = pending[pos:]
                    break
            else:
                result.append(byte)

        kind = (
            ArgumentKind.HARD_TERMINATED
            if terminated_by_newline
            else ArgumentKind.SOFT_TERMINATED
        )
        return Argument(bytes(result).decode("utf-8", errors="replace"), kind)

    def __iter__(self) -> Iterator[Argument]:
        while (argument := self.read_argument()) is not None:
            yield argument


class ByteArgumentReader:
    """Splits input on a single delimiter byte, skipping empty records."""

    def __init__(self, stream: _Readable, delimiter: int) -> None:
        self._stream = stream
        self._delimiter = bytes([delimiter])
        self._buffer = bytearray()
        self._eof = False

    def _read_record(self) -> bytes | None:
        """Read up to and including the next delimiter, or to the end."""
        while True:
            index = self._buffer.find(self._delimiter)
            if index >= 0:
                record = bytes(self._buffer[: index + 1])
                del self._buffer[: index + 1]
                return record
            if self._eof:
                if not self._buffer:
                    return None
                record = bytes(self._buffer)
                self._buffer.clear()
                return record
            chunk = _read_chunk(self._stream, _CHUNK_SIZE)
            if chunk:
                self._buffer.extend(chunk)
            else:
                self._eof = True

    def read_argument(self) -> Argument | None:
        """Return the next argument, or None once the input is exhausted."""
        while True:
            record = self._read_record()
            if record is None:
                return None
            if record.endswith(self._delimiter):
                if len(record) == 1:
                    continue
                record = record[:-1]
            return Argument(
                record.decode("utf-8", errors="replace"),
                ArgumentKind.HARD_TERMINATED,
            )

    def __iter__(self) -> Iterator[Argument]:
        while (argument := self.read_argument()) is not None:
            yield argument