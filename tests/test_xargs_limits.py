import pytest

from findkit.xargs_limits import (
    Argument,
    ArgumentKind,
    CommandSizeLimiter,
    ExhaustedCommandSpace,
    LimiterCollection,
    LimiterCursor,
    MaxArgsLimiter,
    MaxCharsLimiter,
    MaxLinesLimiter,
    count_chars_for_exec,
    system_chars_limiter,
)


def init(s):
    return Argument(s, ArgumentKind.INITIAL)


def hard(s):
    return Argument(s, ArgumentKind.HARD_TERMINATED)


def soft(s):
    return Argument(s, ArgumentKind.SOFT_TERMINATED)


class AlwaysRejectLimiter(CommandSizeLimiter):
    def try_arg(self, arg, cursor):
        raise ExhaustedCommandSpace(arg, out_of_chars=False)


def empty_cursor():
    return LimiterCursor([])


def reject_cursor():
    return LimiterCursor([AlwaysRejectLimiter()])


def test_count_chars_includes_terminator():
    assert count_chars_for_exec("abc") == 4
    assert count_chars_for_exec("") == 1


def test_chars_limiter():
    limiter = MaxCharsLimiter(6)
    assert limiter.try_arg(hard("abc"), empty_cursor()) == hard("abc")
    with pytest.raises(ExhaustedCommandSpace) as info:
        limiter.try_arg(hard("abcd"), empty_cursor())
    assert info.value.out_of_chars is True
    assert info.value.arg == hard("abcd")
    assert limiter.try_arg(hard("a"), empty_cursor()) == hard("a")


def test_chars_limiter_asks_cursor():
    limiter = MaxCharsLimiter(5)
    with pytest.raises(ExhaustedCommandSpace):
        limiter.try_arg(hard("abc"), reject_cursor())
    # The limiter must not have counted the rejected argument.
    assert limiter.try_arg(hard("abc"), empty_cursor()) == hard("abc")


def test_args_limiter():
    limiter = MaxArgsLimiter(2)
    for _ in range(2):
        assert limiter.try_arg(init("abc"), empty_cursor()) == init("abc")
    assert limiter.try_arg(hard("abc"), empty_cursor()) == hard("abc")
    assert limiter.try_arg(hard("abc"), empty_cursor()) == hard("abc")
    with pytest.raises(ExhaustedCommandSpace) as info:
        limiter.try_arg(hard("abc"), empty_cursor())
    assert info.value.out_of_chars is False


def test_args_limiter_asks_cursor():
    limiter = MaxArgsLimiter(1)
    with pytest.raises(ExhaustedCommandSpace):
        limiter.try_arg(hard("abc"), reject_cursor())
    assert limiter.try_arg(hard("abc"), empty_cursor()) == hard("abc")


def test_lines_limiter():
    limiter = MaxLinesLimiter(2)
    assert limiter.try_arg(soft("abc"), empty_cursor()) == soft("abc")
    assert limiter.try_arg(soft("abc"), empty_cursor()) == soft("abc")
    assert limiter.try_arg(soft("abc"), empty_cursor()) == soft("abc")
    assert limiter.try_arg(hard("abc"), empty_cursor()) == hard("abc")
    assert limiter.try_arg(soft("abc"), empty_cursor()) == soft("abc")
    assert limiter.try_arg(hard("abc"), empty_cursor()) == hard("abc")
    with pytest.raises(ExhaustedCommandSpace):
        limiter.try_arg(soft("abc"), empty_cursor())
    with pytest.raises(ExhaustedCommandSpace):
        limiter.try_arg(hard("abc"), empty_cursor())


def test_lines_limiter_asks_cursor():
    limiter = MaxLinesLimiter(1)
    with pytest.raises(ExhaustedCommandSpace):
        limiter.try_arg(hard("abc"), reject_cursor())
    assert limiter.try_arg(hard("abc"), empty_cursor()) == hard("abc")


def test_cursor_passes_through_all_limiters():
    chars = MaxCharsLimiter(100)
    args = MaxArgsLimiter(5)
    cursor = LimiterCursor([chars, args])
    assert cursor.try_next(hard("xy")) == hard("xy")
    assert chars.current_size == 3
    assert args.current_args == 1


def test_collection_rejects_when_any_limiter_does():
    collection = LimiterCollection()
    collection.add(MaxArgsLimiter(1))
    collection.add(MaxCharsLimiter(100))
    assert collection.try_arg(hard("a")) == hard("a")
    with pytest.raises(ExhaustedCommandSpace) as info:
        collection.try_arg(hard("b"))
    assert info.value.arg == hard("b")


def test_collection_state_not_advanced_on_later_rejection():
    args = MaxArgsLimiter(3)
    collection = LimiterCollection([args, MaxCharsLimiter(3)])
    with pytest.raises(ExhaustedCommandSpace) as info:
        collection.try_arg(hard("abcdef"))
    assert info.value.out_of_chars is True
    assert args.current_args == 0


def test_collection_copy_is_independent():
    original = LimiterCollection([MaxArgsLimiter(1)])
    clone = original.copy()
    assert clone.try_arg(hard("a")) == hard("a")
    with pytest.raises(ExhaustedCommandSpace):
        clone.try_arg(hard("b"))
    # The original still has room for one argument.
    assert original.try_arg(hard("c")) == hard("c")


def test_system_limiter_shrinks_with_environment():
    small = system_chars_limiter({})
    large = system_chars_limiter({"NAME": "x" * 100})
    assert small.max_chars > 0
    assert large.max_chars <= small.max_chars
    assert small.current_size == 0