"""Errors that remember where they were created and what they wrap."""

from __future__ import annotations

import re
import sys
import traceback
from types import FrameType
from typing import Any

_VERB = re.compile(r"%([-+# 0]*\d*(?:\.\d+)?)([a-zA-Z%])")
_PY_VERB = {"v": "s", "w": "s", "q": "r", "t": "s"}


def _capture(frame: FrameType | None) -> str:
    """Format the call stack from ``frame`` outwards, innermost call first."""
    frames = reversed(traceback.extract_stack(frame))
    return "".join(
        f"{fs.filename}:{fs.lineno}\n\t{fs.name}: {fs.line or ''}\n" for fs in frames
    )


def _to_error(e: Any) -> BaseException:
    if isinstance(e, BaseException):
        return e
    return Exception(str(e))


class _FormattedError(Exception):
    """A formatted message that wraps the errors given to its ``%w`` verbs."""

    def __init__(self, message: str, wrapped: list[BaseException]) -> None:
        super().__init__(message)
        self._message = message
        self._wrapped = tuple(wrapped)

    def __str__(self) -> str:
        return self._message

    def unwrap(self) -> BaseException | list[BaseException] | None:
        if len(self._wrapped) == 1:
            return self._wrapped[0]
        return list(self._wrapped)


def _format_error(fmt: str, args: tuple[Any, ...]) -> BaseException:
    wrapped: list[BaseException] = []
    remaining = iter(args)

    def replace(match: re.Match[str]) -> str:
        flags, verb = match.groups()
        if verb == "%":
            return "%"
        try:
            arg = next(remaining)
        except StopIteration:
            return f"%!{verb}(MISSING)"
        if verb == "w":
            if not isinstance(arg, BaseException):
                return f"%!w({type(arg).__name__}={arg})"
            wrapped.append(arg)
        try:
            return ("%" + flags + _PY_VERB.get(verb, verb)) % (arg,)
        except (TypeError, ValueError):
            return f"%!{verb}({type(arg).__name__}={arg})"

    message = _VERB.sub(replace, fmt)
    extra = list(remaining)
    if extra:
        listed = ", ".join(f"{type(a).__name__}={a}" for a in extra)
        message += f"%!(EXTRA {listed})"
    if not wrapped:
        return Exception(message)
    return _FormattedError(message, wrapped)


class WrappedError(Exception):
    """An error that wraps another one and keeps the stack of its creation."""

    def __init__(self, inner: BaseException, stack: str) -> None:
        super().__init__(str(inner))
        self._inner = inner
        self._stack = stack

    def __str__(self) -> str:
        return str(self._inner)

    def unwrap(self) -> BaseException:
        """Return the wrapped error."""
        return self._inner

    def stack_last(self) -> str:
        """Return the stack captured when this error was created."""
        return self._stack

    def stack(self) -> str:
        """Return the stack of the innermost wrapped error of this kind."""
        return self.unwrap_max().stack_last()

    def error_stack(self) -> str:
        """Return the type name, the message and the stack together."""
        return f"{self.type_name()} {self}\n{self._stack}"

    def type_name(self) -> str:
        """Return the type name of the wrapped error."""
        return type(self._inner).__qualname__

    def unwrap_max(self) -> WrappedError:
        """Return the deepest error of this kind in the chain."""
        last = self
        current: BaseException | None = self.unwrap()
        while current is not None:
            found = as_error(current, WrappedError)
            if found is None:
                break
            last = found
            current = found.unwrap()
        return last

    def unwrap_all(self) -> BaseException:
        """Return the original error at the bottom of the chain."""
        last: BaseException = self
        current: BaseException | None = self._inner
        while current is not None:
            last = current
            current = unwrap(current)
        return last

    def log_value(self) -> dict[str, str]:
        """Return the message and stack as a group for structured logging."""
        return {"message": str(self), "stack": self.stack()}


class JoinedError(Exception):
    """Several errors reported as one."""

    def __init__(self, errors: list[BaseException]) -> None:
        super().__init__(*errors)
        self._errors = tuple(errors)

    def __str__(self) -> str:
        return "\n".join(str(e) for e in self._errors)

    def unwrap(self) -> list[BaseException]:
        """Return the joined errors."""
        return list(self._errors)


def _wrap(e: Any, skip: int) -> WrappedError:
    return WrappedError(_to_error(e), _capture(sys._getframe(skip + 1)))


def new(e: Any) -> WrappedError:
    """Create an error from anything, recording the caller's stack."""
    return _wrap(e, 1)


def errorf(format: str, *args: Any) -> WrappedError:
    """Create an error from a format; ``%w`` arguments are wrapped."""
    return _wrap(_format_error(format, args), 1)


def _children(err: BaseException) -> list[BaseException]:
    method = getattr(err, "unwrap", None)
    if callable(method):
        inner = method()
        if inner is None:
            return []
        if isinstance(inner, (list, tuple)):
            return [e for e in inner if e is not None]
        return [inner]
    cause = err.__cause__
    return [cause] if cause is not None else []


def _walk(err: BaseException):
    pending = [err]
    while pending:
        current = pending.pop()
        yield current
        pending.extend(reversed(_children(current)))


def is_error(err: BaseException | None, target: BaseException | None) -> bool:
    """Report whether ``target`` is ``err`` or anywhere in its chain."""
    if err is None or target is None:
        return err is target
    return any(e is target for e in _walk(err))


def as_error(err: BaseException | None, cls: type) -> Any:
    """Return the first error in the chain that is an instance of ``cls``."""
    if err is None:
        return None
    return next((e for e in _walk(err) if isinstance(e, cls)), None)


def unwrap(err: BaseException | None) -> BaseException | None:
    """Return the single error that ``err`` wraps, if any."""
    if err is None:
        return None
    method = getattr(err, "unwrap", None)
    if callable(method):
        inner = method()
        return None if isinstance(inner, (list, tuple)) else inner
    return err.__cause__


def join(*args: BaseException | None) -> JoinedError | None:
    """Join the given errors, skipping ``None``; ``None`` if nothing is left."""
    kept = [e for e in args if e is not None]
    if not kept:
        return None
    return JoinedError(kept)