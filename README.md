# bankkit

Two small building blocks for services: errors that remember where they were
created, and a structured logger with per-group level filters. No third-party
libraries are needed.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Errors

`bankkit.errors` wraps any value or exception into a `WrappedError` that
records the call stack at the point of creation.

```python
from bankkit import errors

base = ValueError("base error")
wrapped = errors.new(base)
outer = errors.errorf("loading account: %w", wrapped)

errors.is_error(outer, base)              # True
errors.unwrap(wrapped) is base            # True
outer.unwrap_all() is base                # True
errors.as_error(outer, errors.WrappedError) is outer   # True
print(outer.stack())                      # stack captured by errors.new(base)

joined = errors.join(errors.new("err1"), None, errors.new("err2"))
str(joined)                               # "err1\nerr2"
errors.join(None, None)                   # None
```

`errorf` takes printf-style verbs (`%s`, `%d`, `%v`, `%q`, ...); every `%w`
argument must be an exception and is kept in the chain, so `is_error` and
`as_error` find it. `WrappedError` also offers:

- `stack_last()` – the stack captured when this particular error was created;
- `stack()` – the stack of the innermost `WrappedError` in the chain;
- `error_stack()` – type name, message and stack in one string;
- `type_name()` – the class name of the wrapped error;
- `unwrap_max()` – the innermost `WrappedError` in the chain;
- `log_value()` – `{"message": ..., "stack": ...}` for structured output.

## Logging

`bankkit.logs.logger.new` builds a `Logger` from a
`bankkit.logs.config.LoggerConfig` and raises a `WrappedError` when the
configuration is invalid. With no destination configured it writes
human-readable lines to standard output; the default level is info.

```python
from bankkit.logs import logger
from bankkit.logs.config import DestConfig, FileConfig, Format, Level, LoggerConfig

config = LoggerConfig(
    level="debug",
    filters={"db": Level.INFO},
    stdout=DestConfig(),
    file=FileConfig(path="service.json", format=Format.JSON),
)
log = logger.new(config)

log.info("started", "port", 8080)
log.with_group("db").debug("query", "rows", 3)   # dropped: "db" is filtered to info
log.with_attrs("service", "ledger").error("failed", "err", ValueError("boom"))
```

- Levels are read case-insensitively; the supported ones are `debug`, `info`,
  `error` and `disabled`. Any other level is rejected.
- `stdout` defaults to the console format. A `file` destination is opened for
  appending and created if missing; a path ending in `.json` defaults to JSON.
  The same file may not be configured twice.
- Filters map a group path such as `"db/pool"` to a level that overrides the
  root level for records logged inside those groups (or groups nested below
  them).
- Each record carries `time`, `level`, `caller`, `func` and `message`; groups
  become nested JSON objects. Errors are written as their message; the full
  `log_value()` of a `WrappedError` is written only when debug is enabled.

Values from a request context can be attached to every record with an event
hook, built with the helpers in `bankkit.logs.logutil`:

```python
from bankkit.logs import logger, logutil
from bankkit.logs.config import LoggerConfig

def add_request_id(context, stash):
    return logutil.with_attr(stash, "request_id", context["request_id"])

log = logger.new(LoggerConfig(), logger.with_event_hook(add_request_id))
log.info("handled", context={"request_id": "r-1"})
```

The lower-level pieces are available directly: `bankkit.logs.handler`
(`Handler`, `Record`, `ConsoleWriter`, `new_log_handler`) and
`bankkit.logs.filter` (prefix trees, `new_backward_filter`,
`new_string_matcher`).

In tests, `bankkit.logs.testlog.new()` returns a logger whose
`DiscardHandler` accepts nothing.

## What it does not do

There is no command-line program, no log rotation and no asynchronous or
remote output: records are written synchronously to standard output and to
at most one file.