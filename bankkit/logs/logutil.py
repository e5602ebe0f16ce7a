"""Helpers for logger hooks that do not depend on the whole logging package."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable

BAD_KEY = "!BADKEY"


@dataclass(frozen=True)
class Attr:
    """A key and its value; a group holds a tuple of attributes as its value."""

    key: str
    value: Any

    @property
    def is_group(self) -> bool:
        """Report whether the value is a group of attributes."""
        return isinstance(self.value, tuple) and all(
            isinstance(item, Attr) for item in self.value
        )


def _args_to_attrs(args: Iterable[Any]) -> tuple[Attr, ...]:
    """Turn alternating key-value pairs and ready attributes into attributes."""
    attrs: list[Attr] = []
    remaining = iter(args)
    for arg in remaining:
        if isinstance(arg, Attr):
            attrs.append(arg)
        elif isinstance(arg, str):
            try:
                attrs.append(Attr(arg, next(remaining)))
            except StopIteration:
                attrs.append(Attr(BAD_KEY, arg))
        else:
            attrs.append(Attr(BAD_KEY, arg))
    return tuple(a for a in attrs if not (a.is_group and not a.value))


@dataclass(frozen=True)
class Stash:
    """Attributes collected by event hooks."""

    attrs: tuple[Attr, ...] = ()

    def _append(self, attr: Attr) -> Stash:
        return Stash(self.attrs + (attr,))


def with_group(stash: Stash, group: str, *args: Any) -> Stash:
    """Return a copy of ``stash`` with a group built from key-value pairs."""
    return stash._append(Attr(group, _args_to_attrs(args)))


def with_attr(stash: Stash, key: str, val: Any) -> Stash:
    """Return a copy of ``stash`` with one more attribute."""
    return stash._append(Attr(key, val))


EventHook = Callable[[Any, Stash], Stash]


class Hook(list):
    """A list of event hooks run in order to collect attributes."""

    def attrs(self, context: Any = None) -> list[Attr]:
        """Run every hook with ``context`` and return the attributes they added."""
        if not self:
            return []
        stash = Stash()
        for hook in self:
            stash = hook(context, stash)
        return list(stash.attrs)