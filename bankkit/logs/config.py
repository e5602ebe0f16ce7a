"""Logger configuration, levels and output destinations."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Any, Callable, TextIO

from bankkit.errors import errorf
from bankkit.logs.logutil import Hook

_OFFSET = re.compile(r"[+-]\d+")


class Level(IntEnum):
    """Log levels; any integer in between is a valid level too."""

    DEBUG = -4
    INFO = 0
    WARN = 4
    ERROR = 8
    DISABLED = 2**63 - 1

    def __str__(self) -> str:
        return level_name(self)


_NAMED = {"DEBUG": Level.DEBUG, "INFO": Level.INFO, "WARN": Level.WARN, "ERROR": Level.ERROR}


def _as_level(value: int) -> int:
    try:
        return Level(value)
    except ValueError:
        return value


def level_name(level: int) -> str:
    """Name a level, with an offset from the nearest named level below it."""
    level = int(level)
    if level == Level.DISABLED:
        return "DISABLED"
    if level < Level.INFO:
        base, name = Level.DEBUG, "DEBUG"
    elif level < Level.WARN:
        base, name = Level.INFO, "INFO"
    elif level < Level.ERROR:
        base, name = Level.WARN, "WARN"
    else:
        base, name = Level.ERROR, "ERROR"
    offset = level - base
    return name if offset == 0 else f"{name}{offset:+d}"


def parse_level(text: str) -> int:
    """Parse a level name such as ``info``, ``WARN+2`` or ``disabled``."""
    upper = text.upper()
    if upper == "DISABLED":
        return Level.DISABLED
    name, offset = upper, 0
    cut = min((i for i in (upper.find("+"), upper.find("-")) if i >= 0), default=-1)
    if cut >= 0:
        name, offset_text = upper[:cut], upper[cut:]
        if not _OFFSET.fullmatch(offset_text):
            raise ValueError(f"invalid level offset {offset_text!r}")
        offset = int(offset_text)
    try:
        base = _NAMED[name]
    except KeyError:
        raise ValueError(f"unknown level name {text!r}") from None
    return _as_level(base + offset)


def level_valid(level: int) -> bool:
    """Report whether the logger supports ``level``."""
    return level in (Level.DEBUG, Level.INFO, Level.ERROR, Level.DISABLED)


class Format(str, Enum):
    """Output format of a destination."""

    NONE = ""
    CONSOLE = "console"
    JSON = "json"


@dataclass(frozen=True)
class DestConfig:
    """Settings shared by every destination."""

    format: Format | str = Format.NONE


@dataclass(frozen=True)
class FileConfig(DestConfig):
    """An extra log file."""

    path: str = ""


@dataclass
class LoggerConfig:
    """Settings of a logger."""

    level: str = ""
    filters: dict[str, int] | None = None
    stdout: DestConfig | None = None
    file: FileConfig | None = None


@dataclass
class FileWriter:
    """An open stream together with its destination settings."""

    stream: TextIO
    config: DestConfig = field(default_factory=DestConfig)

    def write(self, data: str | bytes) -> int:
        """Write ``data`` to the stream and flush it."""
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8", "replace")
        written = self.stream.write(data)
        self.stream.flush()
        return written

    def equals(self, other: Any) -> bool:
        """Report whether ``other`` refers to the same file as this writer."""
        try:
            mine = os.fstat(self.stream.fileno())
            theirs = os.fstat(other.fileno())
        except (OSError, ValueError, AttributeError):
            return False
        return os.path.samestat(mine, theirs)


@dataclass
class Options:
    """Everything a log handler is built from."""

    config: LoggerConfig = field(default_factory=LoggerConfig)
    level: int = Level.INFO
    hook: Hook = field(default_factory=Hook)
    writers: list[Any] = field(default_factory=list)

    @property
    def filters(self) -> dict[str, int]:
        """Levels per group path."""
        return dict(self.config.filters or {})

    def apply(self, opts: list[LoggerOption] | None) -> None:
        """Apply each option in turn; an option signals failure by raising."""
        for opt in opts or ():
            opt(self)


LoggerOption = Callable[[Options], None]


def append_file_writer(
    writers: list[Any], stream: TextIO, config: DestConfig
) -> list[Any]:
    """Return ``writers`` with a writer for ``stream``; console is the default format."""
    if config.format == Format.NONE:
        config = replace(config, format=Format.CONSOLE)
    if any(isinstance(w, FileWriter) and w.equals(stream) for w in writers):
        name = getattr(stream, "name", repr(stream))
        raise errorf("duplicate file writer for '%s'", name)
    return [*writers, FileWriter(stream=stream, config=config)]


def append_path_writer(writers: list[Any], path: str, config: DestConfig) -> list[Any]:
    """Return ``writers`` with a writer appending to the file at ``path``.

    The file is created if missing; a ``.json`` file defaults to JSON format.
    """
    if config.format == Format.NONE and os.path.splitext(path)[1].lower() == ".json":
        config = replace(config, format=Format.JSON)
    stream = open(path, "a", encoding="utf-8")
    try:
        return append_file_writer(writers, stream, config)
    except Exception:
        stream.close()
        raise