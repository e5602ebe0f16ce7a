"""Prefix trees over structured keys, used to filter log levels by group path."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence

Cutoff = Callable[[Any], "tuple[str, Any]"]


def forward(keys: Sequence[Any] | None) -> tuple[str, Sequence[Any] | None]:
    """Split off the first key."""
    if keys:
        return str(keys[0]), keys[1:]
    return "", None


def backward(keys: Sequence[Any] | None) -> tuple[str, Sequence[Any] | None]:
    """Split off the last key."""
    if keys:
        return str(keys[-1]), keys[:-1]
    return "", None


def split_path(key: str, sep: str) -> tuple[str, str]:
    """Split ``key`` at the first ``sep`` into head and tail."""
    head, found, tail = key.partition(sep)
    if not found:
        return key, ""
    return head, tail


@dataclass
class Node:
    """A tree node; every node is a prefix of its children."""

    is_set: bool = False
    value: Any = None
    children: dict[str, Node] | None = None

    def append(self, path: Sequence[str], value: Any) -> None:
        """Store ``value`` at ``path``, creating intermediate nodes."""
        head, rest = path[0], path[1:]
        if self.children is None:
            self.children = {}
        child = self.children.get(head) or Node()
        if rest:
            child.append(rest, value)
        else:
            child.value = value
            child.is_set = True
        self.children[head] = child

    def get(self, path: Any, cutoff: Cutoff) -> tuple[Any, bool]:
        """Return the value for ``path`` or for its deepest stored leaf prefix."""
        head, path = cutoff(path)
        child = self.children.get(head) if self.children else None
        if child is None:
            return None, False
        if child.children is None:
            return child.value, child.is_set
        return child.get(path, cutoff)


@dataclass
class Filter:
    """A tree looked up with a path of keys."""

    node: Node
    cutoff: Cutoff

    def get(self, path: Sequence[Any] | None) -> tuple[Any, bool]:
        """Return the value for ``path``."""
        return self.node.get(path, self.cutoff)


def new_backward_filter(pairs: dict[str, Any] | None, sep: str) -> Filter:
    """Build a filter whose lookup paths are given root last."""
    root = Node()
    for key, value in (pairs or {}).items():
        root.append(key.split(sep), value)
    return Filter(node=root, cutoff=backward)


@dataclass
class StringMatcher:
    """Matches separated string paths against a set of prefixes."""

    node: Node
    sep: str

    def match(self, path: str) -> bool:
        """Report whether ``path`` or one of its prefixes is in the tree."""
        _, found = self.node.get(path, self._cutoff)
        return found

    def _cutoff(self, path: str) -> tuple[str, str]:
        return split_path(path, self.sep)


def new_string_matcher(keys: Sequence[str] | None, sep: str) -> StringMatcher:
    """Build a matcher from separated keys."""
    root = Node()
    for key in keys or ():
        root.append(key.split(sep), None)
    return StringMatcher(node=root, sep=sep)