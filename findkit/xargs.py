"""Build and run command lines from arguments read on standard input."""

from __future__ import annotations

import enum
import os
import subprocess
import sys
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import BinaryIO

from findkit.xargs_limits import (
    Argument,
    ArgumentKind,
    ExhaustedCommandSpace,
    LimiterCollection,
    MaxArgsLimiter,
    MaxCharsLimiter,
    MaxLinesLimiter,
    system_chars_limiter,
)
from findkit.xargs_readers import (
    ByteArgumentReader,
    WhitespaceArgumentReader,
    parse_delimiter,
)

VERSION = "0.1.0"

_HELP = """\
Usage: xargs [OPTIONS] [COMMAND]...

Run commands using arguments derived from standard input

Arguments:
  [COMMAND]...              The command to run

Options:
  -a, --arg-file <FILE>     Read arguments from the given file instead of stdin
  -d, --delimiter <DELIM>   Use the given delimiter to split the input
  -x, --exit                Exit if the number of arguments allowed by -L or -n
                            do not fit into the number of allowed characters
  -n, --max-args <N>        Set the max number of arguments read from stdin to
                            be passed to each command invocation (mutually
                            exclusive with -L)
  -L <N>                    Set the max number of lines from stdin to be passed
                            to each command invocation (mutually exclusive
                            with -n)
  -P, --max-procs <N>       Run up to this many commands in parallel
                            [NOT IMPLEMENTED]
  -r, --no-run-if-empty     If there are no input arguments, do not run the
                            command at all
  -0, --null                Split the input by null terminators rather than
                            whitespace
  -s, --size <N>            Set the max number of characters to be passed to
                            each invocation
  -t, --verbose             Be verbose
  -h, --help                Print help information
  -V, --version             Print version information"""

_SHORT_FLAGS = {"x": "exit", "r": "no-run-if-empty", "0": "null", "t": "verbose"}
_SHORT_VALUED = {
    "a": "arg-file",
    "d": "delimiter",
    "n": "max-args",
    "L": "max-lines",
    "P": "max-procs",
    "s": "size",
}
_LONG_FLAGS = frozenset(_SHORT_FLAGS.values())
_LONG_VALUED = frozenset(_SHORT_VALUED.values()) - {"max-lines"}
_POSITIVE_VALUED = frozenset({"max-args", "max-lines", "size"})


def _display_name(name: str) -> str:
    if name == "max-lines":
        return "-L <max-lines>"
    return f"--{name} <{name}>"


class CommandResult(enum.Enum):
    """Whether every command run so far succeeded."""

    SUCCESS = "success"
    FAILURE = "failure"

    def combine(self, other: CommandResult) -> CommandResult:
        """Fold ``other`` into this result; the first failure sticks."""
        return other if self is CommandResult.SUCCESS else self


class XargsError(Exception):
    """A failure that stops xargs."""


class ArgumentTooLargeError(XargsError):
    """An argument cannot fit into any command line."""

    def __init__(self) -> None:
        super().__init__("Argument too large")


class CommandExecutionError(XargsError):
    """Running a command went wrong in a way that stops xargs."""

    exit_code = 1


class UrgentlyFailedError(CommandExecutionError):
    """The command exited with status 255."""

    exit_code = 124

    def __init__(self) -> None:
        super().__init__("Command exited with code 255")


class KilledError(CommandExecutionError):
    """The command was killed by a signal."""

    exit_code = 125

    def __init__(self, signal: int) -> None:
        super().__init__(f"Command was killed with signal {signal}")
        self.signal = signal


class CannotRunError(CommandExecutionError):
    """The command exists but could not be started."""

    exit_code = 126

    def __init__(self, error: OSError) -> None:
        super().__init__(f"Command could not be run: {error}")
        self.error = error


class CommandNotFoundError(CommandExecutionError):
    """The command does not exist."""

    exit_code = 127

    def __init__(self) -> None:
        super().__init__("Command not found")


class UnknownCommandError(CommandExecutionError):
    """The command ended in a way that could not be classified."""

    exit_code = 1

    def __init__(self) -> None:
        super().__init__("Unknown error running command")


class _HelpRequested(Exception):
    def __init__(self, text: str) -> None:
        super().__init__(text)
        self.text = text


@dataclass
class XargsOptions:
    """Settings taken from the command line."""

    command: list[str] = field(default_factory=list)
    arg_file: str | None = None
    delimiter: int | None = None
    exit_if_pass_char_limit: bool = False
    max_args: int | None = None
    max_lines: int | None = None
    no_run_if_empty: bool = False
    size: int | None = None
    verbose: bool = False


def _parse_positive(value: str) -> int:
    if not value:
        raise ValueError("cannot parse integer from empty string")
    digits = value[1:] if value.startswith("+") else value
    if not digits or not (digits.isascii() and digits.isdigit()):
        raise ValueError("invalid digit found in string")
    number = int(digits)
    if number == 0:
        raise ValueError(f"Value must be > 0, not: {number}")
    return number


def _convert(name: str, value: str) -> object:
    try:
        if name == "delimiter":
            return parse_delimiter(value)
        if name in _POSITIVE_VALUED:
            return _parse_positive(value)
    except ValueError as err:
        raise XargsError(
            f"Invalid value for '{_display_name(name)}': {err}"
        ) from None
    return value


def parse_args(argv: Sequence[str]) -> XargsOptions:
    """Parse the arguments that follow the program name."""
    seen: dict[str, tuple[int, object]] = {}
    order = 0

    def record(name: str, value: object) -> None:
        nonlocal order
        order += 1
        seen[name] = (order, value)

    tokens = list(argv)
    command: list[str] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token == "--":
            command = tokens[i + 1 :]
            break
        if token.startswith("--"):
            name, has_value, value = token[2:].partition("=")
            if name == "help":
                raise _HelpRequested(_HELP)
            if name == "version":
                raise _HelpRequested(f"xargs {VERSION}")
            if name in _LONG_FLAGS:
                if has_value:
                    raise XargsError(f"Found argument '{token}' which wasn't expected")
                record(name, True)
            elif name in _LONG_VALUED:
                if not has_value:
                    i += 1
                    if i >= len(tokens):
                        raise XargsError(
                            f"The argument '{_display_name(name)}' requires a value "
                            "but none was supplied"
                        )
                    value = tokens[i]
                record(name, _convert(name, value))
            else:
                raise XargsError(f"Found argument '{token}' which wasn't expected")
        elif token.startswith("-") and token != "-":
            j = 1
            while j < len(token):
                letter = token[j]
                if letter in _SHORT_FLAGS:
                    record(_SHORT_FLAGS[letter], True)
                    j += 1
                elif letter in _SHORT_VALUED:
                    name = _SHORT_VALUED[letter]
                    value = token[j + 1 :]
                    if value.startswith("="):
                        value = value[1:]
                    elif not value:
                        i += 1
                        if i >= len(tokens):
                            raise XargsError(
                                f"The argument '{_display_name(name)}' requires a "
                                "value but none was supplied"
                            )
                        value = tokens[i]
                    record(name, _convert(name, value))
                    break
                elif letter == "h":
                    raise _HelpRequested(_HELP)
                elif letter == "V":
                    raise _HelpRequested(f"xargs {VERSION}")
                else:
                    raise XargsError(f"Found argument '-{letter}' which wasn't expected")
        else:
            command = tokens[i:]
            break
        i += 1

    def value_of(name: str) -> object:
        return seen[name][1] if name in seen else None

    delimiter = value_of("delimiter")
    if "null" in seen and (
        delimiter is None or seen["null"][0] > seen["delimiter"][0]
    ):
        delimiter = 0

    max_args = value_of("max-args")
    max_lines = value_of("max-lines")
    if max_args is not None and max_lines is not None:
        print(
            "WARNING: Both --max-args and -L were given; last option will be used",
            file=sys.stderr,
        )
        if seen["max-lines"][0] > seen["max-args"][0]:
            max_args = None
        else:
            max_lines = None

    return XargsOptions(
        command=command,
        arg_file=value_of("arg-file"),  # type: ignore[arg-type]
        delimiter=delimiter,  # type: ignore[arg-type]
        exit_if_pass_char_limit="exit" in seen,
        max_args=max_args,  # type: ignore[arg-type]
        max_lines=max_lines,  # type: ignore[arg-type]
        no_run_if_empty="no-run-if-empty" in seen,
        size=value_of("size"),  # type: ignore[arg-type]
        verbose="verbose" in seen,
    )


class CommandBuilderOptions:
    """What every command line built from the input has in common.

    A ``command`` of None or an empty list means the arguments are echoed.
    Raises :class:`ExhaustedCommandSpace` if the base command does not fit.
    """

    def __init__(
        self,
        command: Sequence[str] | None,
        env: Mapping[str, str],
        limiters: LimiterCollection,
        verbose: bool = False,
        close_stdin: bool = False,
    ) -> None:
        self.command = list(command) if command else None
        self.env = dict(env)
        self.verbose = verbose
        self.close_stdin = close_stdin
        for initial in self.command or ["echo"]:
            limiters.try_arg(Argument(initial, ArgumentKind.INITIAL))
        self.limiters = limiters


class CommandBuilder:
    """Collects arguments for one command line and runs it."""

    def __init__(self, options: CommandBuilderOptions) -> None:
        self.options = options
        self.extra_args: list[str] = []
        self._limiters = options.limiters.copy()

    def add_arg(self, arg: Argument) -> None:
        """Add ``arg`` or raise :class:`ExhaustedCommandSpace` if it won't fit."""
        accepted = self._limiters.try_arg(arg)
        self.extra_args.append(accepted.arg)

    def execute(self) -> CommandResult:
        """Run the command, or echo its arguments if there is none."""
        command = self.options.command
        argv = [*(command or ["echo"]), *self.extra_args]
        if self.options.verbose:
            print(" ".join(f'"{part}"' for part in argv), file=sys.stderr)

        if command is None:
            print(" ".join(self.extra_args))
            sys.stdout.flush()
            return CommandResult.SUCCESS

        sys.stdout.flush()
        try:
            completed = subprocess.run(
                argv,
                env=self.options.env,
                stdin=subprocess.DEVNULL if self.options.close_stdin else None,
                check=False,
            )
        except FileNotFoundError:
            raise CommandNotFoundError() from None
        except OSError as err:
            raise CannotRunError(err) from err

        code = completed.returncode
        if code == 0:
            return CommandResult.SUCCESS
        if code == 255:
            raise UrgentlyFailedError()
        if code > 0:
            return CommandResult.FAILURE
        raise KilledError(-code)


def process_input(
    builder_options: CommandBuilderOptions,
    args: Iterable[Argument],
    options: XargsOptions,
) -> CommandResult:
    """Pack the arguments into command lines and run each one."""
    builder = CommandBuilder(builder_options)
    have_pending_command = False
    result = CommandResult.SUCCESS

    for arg in args:
        try:
            builder.add_arg(arg)
        except ExhaustedCommandSpace as exhausted:
            if (
                exhausted.out_of_chars
                and options.exit_if_pass_char_limit
                and (options.max_args is not None or options.max_lines is not None)
            ):
                raise ArgumentTooLargeError() from None
            if have_pending_command:
                result = result.combine(builder.execute())
            builder = CommandBuilder(builder_options)
            try:
                builder.add_arg(exhausted.arg)
            except ExhaustedCommandSpace:
                raise ArgumentTooLargeError() from None
        have_pending_command = True

    if not options.no_run_if_empty or have_pending_command:
        result = result.combine(builder.execute())
    return result


def _make_reader(
    stream: BinaryIO, delimiter: int | None
) -> Iterable[Argument]:
    if delimiter is None:
        return WhitespaceArgumentReader(stream)
    return ByteArgumentReader(stream, delimiter)


def _run(argv: Sequence[str]) -> CommandResult:
    options = parse_args(argv)
    env = dict(os.environ)

    limiters = LimiterCollection()
    if options.max_args is not None:
        limiters.add(MaxArgsLimiter(options.max_args))
    elif options.max_lines is not None:
        limiters.add(MaxLinesLimiter(options.max_lines))
    if options.size is not None:
        limiters.add(MaxCharsLimiter(options.size))
    limiters.add(system_chars_limiter(env))

    try:
        builder_options = CommandBuilderOptions(
            options.command,
            env,
            limiters,
            verbose=options.verbose,
            close_stdin=options.arg_file is None,
        )
    except ExhaustedCommandSpace:
        raise XargsError(
            "Base command and environment are too large to fit into one "
            "command execution"
        ) from None

    if options.arg_file is None:
        reader = _make_reader(sys.stdin.buffer, options.delimiter)
        return process_input(builder_options, reader, options)

    try:
        stream = open(options.arg_file, "rb")
    except OSError as err:
        raise XargsError(f"Failed to open {options.arg_file}: {err}") from err
    with stream:
        reader = _make_reader(stream, options.delimiter)
        return process_input(builder_options, reader, options)


def _report(err: BaseException) -> None:
    sys.stdout.flush()
    print(f"Error: {err}", file=sys.stderr)


def xargs_main(args: Sequence[str]) -> int:
    """Run xargs; ``args[0]`` is the program name. Returns the exit status."""
    try:
        result = _run(list(args[1:]))
    except _HelpRequested as request:
        print(request.text)
        return 0
    except CommandExecutionError as err:
        _report(err)
        return err.exit_code
    except (XargsError, OSError, ValueError) as err:
        _report(err)
        return 1
    return 0 if result is CommandResult.SUCCESS else 123


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point."""
    if argv is None:
        argv = sys.argv[1:]
    return xargs_main(["xargs", *argv])