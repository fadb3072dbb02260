# findkit

Predicates for matching files, in the style of the classic `find` tool, and
an `xargs`-style command that builds command lines from arguments read on
standard input.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## The `findkit-xargs` command

`findkit-xargs` reads arguments from standard input (or a file) and runs a
command with them. With no command it prints the arguments, space-separated,
one line per command line built.

```
printf 'ab cd ef\ngh i' | findkit-xargs -n2
# ab cd
# ef gh
# i
```

Options:

| Option | Meaning |
| --- | --- |
| `-a FILE`, `--arg-file FILE` | Read arguments from FILE instead of stdin |
| `-d DELIM`, `--delimiter DELIM` | Split input on a single byte (`a`, `\n`, `\t`, `\x41`, `\0101`, ...) |
| `-0`, `--null` | Split input on NUL bytes (the later of `-0` and `-d` wins) |
| `-n N`, `--max-args N` | At most N input arguments per command |
| `-L N` | At most N input lines per command (the later of `-n` and `-L` wins, with a warning) |
| `-s N`, `--size N` | At most N characters per command line |
| `-x`, `--exit` | Fail if an argument overflows the size limit while `-n` or `-L` is given |
| `-r`, `--no-run-if-empty` | Do not run the command when there is no input |
| `-t`, `--verbose` | Print each command line to stderr before running it |
| `-P N`, `--max-procs N` | Accepted but ignored; commands run one at a time |
| `-h`, `--help` | Print help |
| `-V`, `--version` | Print the version |

Exit status is 0 on success, 123 if any command exited with a failure
status, 124 if a command exited with 255, 125 if it was killed by a signal,
126 if it could not be run, 127 if it was not found, and 1 for other errors
(such as an argument too large for any command line, or a bad option).

Without a delimiter, input is split on whitespace; single quotes, double
quotes and backslashes escape as in the traditional tool. When reading
arguments from stdin, the command's own stdin is closed; with `-a` it
inherits stdin.

## Library use

The same machinery is available from Python:

```python
from findkit.xargs import xargs_main

status = xargs_main(["xargs", "-n1", "echo"])  # args[0] is the program name
```

- `findkit.xargs`: `parse_args`, `XargsOptions`, `CommandBuilderOptions`,
  `CommandBuilder`, `process_input`, `CommandResult`, and the `XargsError`
  family (`ArgumentTooLargeError`, `CommandExecutionError` and its
  subclasses, each carrying an `exit_code`).
- `findkit.xargs_limits`: `Argument`, `ArgumentKind`, the limiters
  `MaxCharsLimiter`, `MaxArgsLimiter`, `MaxLinesLimiter`, chained through a
  `LimiterCollection`; `system_chars_limiter(env)` builds the limit the
  operating system imposes. A limiter that refuses an argument raises
  `ExhaustedCommandSpace`.
- `findkit.xargs_readers`: `WhitespaceArgumentReader` and
  `ByteArgumentReader` read `Argument`s from a binary stream, either through
  `read_argument()` or by iteration; `parse_delimiter` turns a `-d` value
  into a byte.

### Matching files

Each matcher has a `matches(entry, matcher_io)` method that takes a
`findkit.matcher.FileEntry` (a path, with `stat()` that does not follow
links unless `follow_links` is set) and a `findkit.matcher.MatcherIO`
(output stream, the time taken as "now", and a quit flag):

- `findkit.size.SizeMatcher`: size in bytes (`c`), words (`w`), 512-byte
  blocks (`b` or no suffix), KiB (`k`), MiB (`M`) or GiB (`G`), rounded up;
  see also `parse_unit` and `byte_size_to_unit_size`.
- `findkit.type_matcher.TypeMatcher`: file type `f`, `d`, `l`, and on POSIX
  `b`, `c`, `p`, `s`.
- `findkit.time.NewerMatcher`: modified later than a reference file.
- `findkit.time.FileTimeMatcher`: access, creation or modification time
  (`FileTimeType`) compared in whole days against `MatcherIO.now`.
- `findkit.stat.InodeMatcher`, `findkit.stat.LinksMatcher`: inode number and
  hard link count (POSIX only).
- `findkit.regex.RegexMatcher`: the whole path against a regular expression
  in the `emacs`, `grep`, `posix-basic` or `posix-extended` dialect
  (`RegexType`; `parse_regex_type` also accepts `ed` and `sed`).
- `findkit.matcher.QuitMatcher`: matches and asks the search to stop.

Numeric matchers take a `findkit.matcher.ComparableValue`, made with
`ComparableValue.more_than(n)`, `equal_to(n)` or `less_than(n)`.

## What the package does not do

There is no `find` command: the package has no directory walker, no parser
for find expressions, and no matchers for names, permissions, emptiness,
deletion, `-print`/`-printf` or `-exec`. The matchers above are building
blocks to be driven by your own walk over the file system.