"""
Dynamically scoped variables.

A DynamicVar has a process-wide root value and supports scoped rebinding:

    multiplier = DynamicVar('multiplier', 2)

    with multiplier.binding(3):
        multiplier.get()   # 3
    multiplier.get()       # 2

Bindings live in a contextvars.ContextVar, so a binding made in one thread
(or asyncio task) is never visible to another. Threads without a binding of
their own see the root value. Leaving a `binding()` block restores the
previous value on every exit path, including exceptions.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generic, Iterator, TypeVar

T = TypeVar('T')

_UNBOUND = object()


class DynamicVar(Generic[T]):
    """A root value plus stack-disciplined, context-local overrides."""

    def __init__(self, name: str, root: T):
        self.name = name
        self._root = root
        self._var: ContextVar[Any] = ContextVar(f'fncontracts.{name}', default=_UNBOUND)

    def get(self) -> T:
        value = self._var.get()
        if value is _UNBOUND:
            return self._root
        return value

    @property
    def root(self) -> T:
        return self._root

    def set_root(self, value: T) -> None:
        """Replace the process-wide value seen outside any binding."""
        self._root = value

    def is_bound(self) -> bool:
        return self._var.get() is not _UNBOUND

    @contextmanager
    def binding(self, value: T) -> Iterator[T]:
        token = self._var.set(value)
        try:
            yield value
        finally:
            self._var.reset(token)

    def __repr__(self) -> str:
        return f"DynamicVar({self.name!r}, root={self._root!r})"
