"""A structured log handler that writes JSON or console lines."""

from __future__ import annotations

import json
import os
import re
import sys
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Any, Iterable

from bankkit.errors import errorf
from bankkit.errors import new as new_error
from bankkit.logs.config import Format, Level, Options, level_name
from bankkit.logs.filter import Filter, new_backward_filter
from bankkit.logs.logutil import Attr, Hook

KEY_SEPARATOR = "/"

_LEVEL_ABBR = {"DEBUG": "DBG", "INFO": "INF", "WARN": "WRN", "ERROR": "ERR"}
_TIME_PREFIX = re.compile(r"(\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d)")


class OutputLevel(IntEnum):
    """Levels of the output stage; a message passes when its level is not lower."""

    TRACE = -1
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4
    PANIC = 5
    NO_LEVEL = 6
    DISABLED = 7


def output_level(level: int) -> OutputLevel:
    """Map a logger level onto an output level."""
    level = int(level)
    if level == Level.DISABLED:
        return OutputLevel.DISABLED
    if level >= Level.ERROR:
        return OutputLevel.ERROR
    if level >= Level.WARN:
        return OutputLevel.WARN
    if level >= Level.INFO:
        return OutputLevel.INFO
    return OutputLevel.DEBUG


def _format_time(moment: datetime) -> str:
    """Format a moment as RFC 3339 with trailing zeros of the fraction dropped."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    total = abs(total)
    return f"{text}{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"


@dataclass
class Record:
    """One log event as the handler receives it."""

    message: str
    level: int = Level.INFO
    attrs: list[Attr] = field(default_factory=list)
    time: datetime = field(default_factory=lambda: datetime.now().astimezone())
    caller: tuple[str, int, str] | None = None


def _encode_value(value: Any) -> Any:
    log_value = getattr(value, "log_value", None)
    if callable(log_value):
        resolved = log_value()
        if isinstance(resolved, dict):
            return {str(k): _encode_value(v) for k, v in resolved.items()}
        return _encode_value(resolved)
    if isinstance(value, tuple) and value and all(isinstance(i, Attr) for i in value):
        return encode_attrs(value)
    if isinstance(value, bool | int | float | str):
        return value
    if isinstance(value, timedelta):
        return value.total_seconds() * 1000
    if isinstance(value, datetime):
        return _format_time(value)
    if isinstance(value, BaseException):
        return str(value)
    return value


def _encode_attr(attr: Attr, verbose: bool = True) -> Any:
    if attr.is_group:
        return encode_attrs(attr.value)
    value = attr.value
    if (
        not verbose
        and isinstance(value, BaseException)
        and callable(getattr(value, "log_value", None))
    ):
        return str(value)
    return _encode_value(value)


def _encode_attrs(attrs: Iterable[Attr], verbose: bool) -> dict[str, Any]:
    return {attr.key: _encode_attr(attr, verbose) for attr in attrs}


def encode_attrs(attrs: Iterable[Attr]) -> dict[str, Any]:
    """Turn attributes into a JSON-ready mapping; groups become nested mappings."""
    return _encode_attrs(attrs, verbose=True)


@dataclass
class ConsoleWriter:
    """Renders JSON log lines in a short human-readable form."""

    out: Any

    def write(self, data: str | bytes) -> int:
        """Render one JSON event line and write it to ``out``."""
        text = data.decode("utf-8", "replace") if isinstance(data, (bytes, bytearray)) else data
        try:
            event = json.loads(text)
        except ValueError:
            self.out.write(text)
            return len(data)
        if not isinstance(event, dict):
            self.out.write(text)
            return len(data)

        parts: list[str] = []
        stamp = str(event.pop("time", ""))
        match = _TIME_PREFIX.match(stamp)
        if match:
            moment = datetime.strptime(match.group(1), "%Y-%m-%dT%H:%M:%S")
            parts.append(moment.strftime("%I:%M%p").lstrip("0"))
        elif stamp:
            parts.append(stamp)

        level = str(event.pop("level", ""))
        if level:
            parts.append(_LEVEL_ABBR.get(level, level[:3].upper()))
        caller = str(event.pop("caller", ""))
        if caller:
            parts.append(caller + " >")
        message = str(event.pop("message", ""))
        if message:
            parts.append(message)
        parts.extend(f"{key}={_console_value(event[key])}" for key in sorted(event))

        self.out.write(" ".join(parts) + "\n")
        return len(data)


def _console_value(value: Any) -> str:
    if isinstance(value, str):
        if any(ch.isspace() or ch in '"=' for ch in value):
            return json.dumps(value, ensure_ascii=False)
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


@dataclass(frozen=True)
class _MultiWriter:
    writers: tuple[Any, ...]

    def write(self, data: str) -> int:
        for writer in self.writers:
            writer.write(data)
        return len(data)


def make_writer(writer: Any) -> Any:
    """Return the output stream for a configured writer, chosen by its format."""
    fmt = writer.config.format
    if fmt == Format.CONSOLE:
        return ConsoleWriter(writer)
    if fmt == Format.JSON:
        return writer
    if fmt == Format.NONE:
        raise new_error("format not specified")
    raise errorf("unknown format '%s'", getattr(fmt, "value", fmt))


@dataclass(frozen=True)
class _Group:
    name: str
    attrs: tuple[Attr, ...] = ()

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Handler:
    """Turns records into JSON events; groups are kept newest first."""

    writer: Any
    level: OutputLevel = OutputLevel.INFO
    filter: Filter = field(default_factory=lambda: new_backward_filter(None, KEY_SEPARATOR))
    groups: tuple[_Group, ...] = ()
    attrs: tuple[Attr, ...] = ()
    hook: Hook = field(default_factory=Hook)
    name: str = ""

    def enabled(self, level: int, context: Any = None) -> bool:
        """Report whether a record of ``level`` would be written."""
        ours = self.level
        value, found = self.filter.get(list(self.groups))
        if found:
            ours = output_level(value)
        return ours <= output_level(level)

    def handle(self, record: Record, context: Any = None) -> None:
        """Write ``record`` as one JSON line."""
        if self.level > OutputLevel.NO_LEVEL:
            return
        caller, func = self._trace(record.caller)
        event: dict[str, Any] = {
            "time": _format_time(record.time),
            "level": level_name(record.level),
            "caller": caller,
            "func": func,
        }
        event.update(encode_attrs(self.attrs))
        event.update(encode_attrs(self.hook.attrs(context)))

        fields = _encode_attrs(record.attrs, verbose=self.enabled(Level.DEBUG, context))
        if self.groups:
            *inner, top = self.groups
            for group in inner:
                fields = {group.name: {**fields, **encode_attrs(group.attrs)}}
            event[top.name] = {**fields, **encode_attrs(top.attrs)}
        else:
            event.update(fields)

        event["message"] = record.message
        self.writer.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")

    def with_attrs(self, attrs: Iterable[Attr]) -> Handler:
        """Return a handler that adds ``attrs`` to the innermost group or the top level."""
        attrs = tuple(attrs)
        if not attrs:
            return self
        if not self.groups:
            return replace(self, attrs=self.attrs + attrs)
        first, *rest = self.groups
        first = replace(first, attrs=first.attrs + attrs)
        return replace(self, groups=(first, *rest))

    def with_group(self, name: str) -> Handler:
        """Return a handler that nests record attributes under ``name``."""
        if not name:
            return self
        return replace(self, groups=(_Group(name), *self.groups))

    def _trace(self, caller: tuple[str, int, str] | None) -> tuple[str, str]:
        if caller is None:
            return "", ""
        file, line, func = caller
        if self.name and file.startswith(self.name):
            file = file[len(self.name):]
        return f"{file}:{line}", func


def new_log_handler(options: Options) -> Handler:
    """Build a handler from ``options``; with no writers it writes to the console."""
    writers = list(options.writers)
    if not writers:
        out: Any = ConsoleWriter(sys.stdout)
    elif len(writers) == 1:
        try:
            out = make_writer(writers[0])
        except Exception as exc:
            raise errorf("create log writer: %w", exc) from exc
    else:
        made = []
        for index, writer in enumerate(writers):
            try:
                made.append(make_writer(writer))
            except Exception as exc:
                raise errorf(
                    "create log writer (%d/%d): %w", index, len(writers), exc
                ) from exc
        out = _MultiWriter(tuple(made))

    return Handler(
        writer=out,
        level=output_level(options.level),
        filter=new_backward_filter(options.filters, KEY_SEPARATOR),
        hook=options.hook,
        name=os.getcwd() + os.sep,
    )