import pytest

from bankkit import errors

ERR_WRAPPED = errors.new("wrapped error")
ERR_BASE = Exception("base error")


def fn(msg):
    err = fn1("fn " + msg)
    return errors.errorf("fn wrapped %w", err)


def fn1(msg):
    err = fn2("fn1 " + msg)
    return errors.errorf("fn1 wrapped %w", err)


def fn2(msg):
    return errors.new("fn2 error: " + msg)


@pytest.mark.parametrize(
    "err, want",
    [
        (errors.new("main error"), "main error"),
        (Exception("base error"), "base error"),
        (fn("wrapped test"), "fn wrapped fn1 wrapped fn2 error: fn1 fn wrapped test"),
    ],
)
def test_error_message(err, want):
    assert str(err) == want


def test_stack_last_points_at_creator():
    stack = fn("hello").stack_last()
    lines = stack.split("\n")
    assert "test_errors.py:" in lines[0]
    assert 'fn: return errors.errorf("fn wrapped %w", err)' in lines[1]


def test_stack_points_at_first_error():
    lines = fn("hello").stack().split("\n")
    assert 'fn2: return errors.new("fn2 error: " + msg)' in lines[1]

    wrapped = errors.new(Exception("base error"))
    assert wrapped.stack_last() == wrapped.stack()


def test_error_stack_format():
    result = fn("hello")
    assert result.error_stack() == (
        result.type_name() + " " + str(result) + "\n" + result.stack_last()
    )


@pytest.mark.parametrize(
    "err, want",
    [(errors.new(ERR_WRAPPED), "WrappedError"), (errors.new(ERR_BASE), "Exception")],
)
def test_type_name(err, want):
    assert err.type_name() == want


def test_unwrap_method():
    wrap_err = errors.new(ERR_WRAPPED)
    wrap2_err = errors.new(wrap_err)
    assert wrap_err.unwrap() is ERR_WRAPPED
    assert wrap2_err.unwrap() is wrap_err
    assert wrap2_err.unwrap() is not ERR_WRAPPED


def test_unwrap_max():
    base = Exception("base error")
    wrap_err = errors.new(base)
    wrap2_err = errors.new(wrap_err)
    wrap3_err = errors.new(wrap2_err)
    assert wrap_err.unwrap_max() is wrap_err
    assert wrap2_err.unwrap_max() is wrap_err
    assert wrap3_err.unwrap_max() is wrap_err


def test_unwrap_all():
    base = Exception("base error")
    wrap_err = errors.new(base)
    wrap2_err = errors.new(wrap_err)
    wrap3_err = errors.new(wrap2_err)
    for err in (wrap_err, wrap2_err, wrap3_err):
        assert err.unwrap_all() is base


def test_log_value():
    err = errors.new("boom")
    assert err.log_value() == {"message": "boom", "stack": err.stack()}


def test_join_returns_none():
    assert errors.join() is None
    assert errors.join(None) is None
    assert errors.join(None, None) is None


@pytest.mark.parametrize("with_none", [False, True])
def test_join(with_none):
    err1 = errors.new("err1")
    err2 = errors.new("err2")
    assert errors.join(err1).unwrap() == [err1]
    args = (err1, None, err2) if with_none else (err1, err2)
    joined = errors.join(*args)
    assert joined.unwrap() == [err1, err2]
    assert str(joined) == "err1\nerr2"
    assert str(errors.join(err1)) == "err1"


def test_join_is():
    err1 = errors.new("err1")
    err2 = errors.new("err2")
    joined = errors.join(err1, err2)
    assert errors.is_error(joined, err2)
    assert errors.unwrap(joined) is None


def _new_cases():
    err = ERR_WRAPPED
    wrap_err = errors.new(err)
    wrap2_err = errors.new(wrap_err)
    base = ERR_BASE
    wrap_base = errors.new(base)
    wrap2_base = errors.new(wrap_base)
    return [
        (err, [err], [wrap_err, wrap2_err, base], "WrappedError"),
        (wrap_err, [wrap_err, err], [wrap2_err, base], "WrappedError"),
        (wrap2_err, [wrap2_err, wrap_err, err], [base], "WrappedError"),
        (base, [base], [wrap_base, wrap2_base, wrap_err], "Exception"),
        (wrap_base, [wrap_base, base], [wrap2_base, wrap_err], "WrappedError"),
        (wrap2_base, [wrap2_base, wrap_base, base], [wrap_err], "WrappedError"),
    ]


@pytest.mark.parametrize("arg, is_, not_is, type_name", _new_cases())
def test_new(arg, is_, not_is, type_name):
    got = errors.new(arg)
    for target in is_:
        assert errors.is_error(got, target)
    assert errors.as_error(got, errors.WrappedError) is got
    assert errors.as_error(got, Exception) is got
    for target in not_is:
        assert not errors.is_error(got, target)
    assert got.type_name() == type_name


def _errorf_cases():
    base = ERR_BASE
    wrap_base = errors.errorf("wrapped error: %w", base)
    wrap2_base = errors.errorf("trwice wrapped error: %w", wrap_base)
    err = ERR_WRAPPED
    wrap_err = errors.new(err)
    wrap2_err = errors.new(wrap_err)
    return [
        (base, [base], [wrap_base, wrap2_base, err, wrap_err, wrap2_err]),
        (wrap_base, [wrap_base, base], [wrap2_base, err, wrap_err, wrap2_err]),
        (wrap2_base, [wrap2_base, wrap_base, base], [err, wrap_err, wrap2_err]),
        (err, [err], [wrap_err, wrap2_err, base, wrap_base, wrap2_base]),
        (wrap_err, [wrap_err, err], [wrap2_err, base, wrap_base, wrap2_base]),
        (wrap2_err, [wrap2_err, wrap_err, err], [base, wrap_base, wrap2_base]),
    ]


@pytest.mark.parametrize("got, is_, not_is", _errorf_cases())
def test_errorf_chain(got, is_, not_is):
    for target in is_:
        assert errors.is_error(got, target)
    for target in not_is:
        assert not errors.is_error(got, target)


def test_errorf_message():
    base = Exception("base error")
    assert str(errors.errorf("wrapped error: %w", base)) == "wrapped error: base error"
    assert str(errors.errorf("%d items, %v", 3, "ok")) == "3 items, ok"
    assert str(errors.errorf("100%%")) == "100%"


def test_errorf_bad_arguments():
    assert str(errors.errorf("%s")) == "%!s(MISSING)"
    assert str(errors.errorf("x", 1)) == "x%!(EXTRA int=1)"
    assert str(errors.errorf("%w", "text")) == "%!w(str=text)"


def test_errorf_without_wrap_has_no_cause():
    err = errors.errorf("plain %s", "text")
    assert errors.unwrap(err.unwrap()) is None


def test_errorf_wraps_several():
    a = Exception("a")
    b = Exception("b")
    err = errors.errorf("%w and %w", a, b)
    assert str(err) == "a and b"
    assert errors.is_error(err, a)
    assert errors.is_error(err, b)
    assert errors.unwrap(err.unwrap()) is None


def test_unwrap_function():
    base = ERR_BASE
    wrap_base = errors.new(base)
    wrap2_base = errors.new(wrap_base)
    wrap_err = errors.new(ERR_WRAPPED)
    wrap2_err = errors.new(wrap_err)

    assert errors.unwrap(base) is None
    assert errors.is_error(errors.unwrap(base), None)
    assert errors.unwrap(wrap_base) is base
    assert errors.unwrap(wrap2_base) is wrap_base
    assert errors.is_error(errors.unwrap(wrap2_base), base)
    assert errors.unwrap(wrap_err) is ERR_WRAPPED
    assert errors.unwrap(wrap2_err) is wrap_err
    assert errors.is_error(errors.unwrap(wrap2_err), ERR_WRAPPED)


def test_unwrap_follows_cause():
    cause = ValueError("cause")
    try:
        try:
            raise cause
        except ValueError as exc:
            raise RuntimeError("outer") from exc
    except RuntimeError as outer:
        assert errors.unwrap(outer) is cause
        assert errors.is_error(outer, cause)
        assert errors.as_error(outer, ValueError) is cause


def test_as_error_missing():
    assert errors.as_error(Exception("x"), errors.WrappedError) is None
    assert errors.as_error(None, Exception) is None