"""The logger front end: configuration checks and convenient log calls."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any

from bankkit.errors import errorf
from bankkit.logs.config import (
    Level,
    LoggerConfig,
    LoggerOption,
    Options,
    append_file_writer,
    append_path_writer,
    level_name,
    level_valid,
    parse_level,
)
from bankkit.logs.handler import Record, new_log_handler
from bankkit.logs.logutil import EventHook, _args_to_attrs


@dataclass(frozen=True)
class Logger:
    """Builds records from log calls and passes them to a handler."""

    handler: Any

    def log(self, level: int, msg: str, *args: Any, context: Any = None) -> None:
        """Log ``msg`` at ``level`` with key-value pairs or attributes."""
        self._emit(level, msg, args, context)

    def debug(self, msg: str, *args: Any, context: Any = None) -> None:
        """Log at debug level."""
        self._emit(Level.DEBUG, msg, args, context)

    def info(self, msg: str, *args: Any, context: Any = None) -> None:
        """Log at info level."""
        self._emit(Level.INFO, msg, args, context)

    def warn(self, msg: str, *args: Any, context: Any = None) -> None:
        """Log at warning level."""
        self._emit(Level.WARN, msg, args, context)

    def error(self, msg: str, *args: Any, context: Any = None) -> None:
        """Log at error level."""
        self._emit(Level.ERROR, msg, args, context)

    def with_attrs(self, *args: Any) -> Logger:
        """Return a logger that adds the given attributes to every record."""
        return Logger(self.handler.with_attrs(_args_to_attrs(args)))

    def with_group(self, name: str) -> Logger:
        """Return a logger that nests record attributes under ``name``."""
        return Logger(self.handler.with_group(name))

    def _emit(self, level: int, msg: str, args: tuple[Any, ...], context: Any) -> None:
        if not self.handler.enabled(level, context):
            return
        frame = sys._getframe(2)
        caller = (frame.f_code.co_filename, frame.f_lineno, frame.f_code.co_name)
        record = Record(msg, level, attrs=list(_args_to_attrs(args)), caller=caller)
        self.handler.handle(record, context)


def new(config: LoggerConfig, *args: LoggerOption) -> Logger:
    """Create a logger; the console is used when no destination is configured.

    The level defaults to INFO.
    """
    level_text = config.level or Level.INFO.name
    try:
        level = parse_level(level_text)
    except ValueError as exc:
        raise errorf("invalid level '%s'", level_text) from exc
    if not level_valid(level):
        raise errorf("unsupported level '%s'", level_name(level))

    for key, filter_level in (config.filters or {}).items():
        if not level_valid(filter_level):
            raise errorf("unsupported filter level '%s': '%s'", level_name(filter_level), key)

    options = Options(config=config, level=level)

    if config.stdout is not None:
        try:
            options.writers = append_file_writer(options.writers, sys.stdout, config.stdout)
        except Exception as exc:
            raise errorf("creating stdout writer: %w", exc) from exc

    if config.file is not None:
        try:
            options.writers = append_path_writer(
                options.writers, config.file.path, config.file
            )
        except Exception as exc:
            raise errorf("creating file writer: %w", exc) from exc

    try:
        options.apply(list(args))
    except Exception as exc:
        raise errorf("applying logger options: %w", exc) from exc

    return Logger(new_log_handler(options))


def with_event_hook(hook: EventHook) -> LoggerOption:
    """Return an option that adds ``hook`` to the logger's event hooks."""

    def option(options: Options) -> None:
        options.hook.append(hook)

    return option