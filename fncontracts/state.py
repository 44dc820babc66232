"""
Process-wide validation toggles.

Two toggles, both DynamicVars seeded from the environment (see config.py):
- validation enabled: the kill switch consulted at the start of every call
- validation debug: turns on VALIDATION DEBUG trace lines

Usage:
    with with_validation(False):
        always_positive(-5)        # body runs unchecked

    with with_validation_debug(True):
        double_it(5)               # traced

Both scopes are also usable as decorators.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from .config import validation_enabled_default, validation_debug_default
from .context import DynamicVar

TRACE_MARKER = 'VALIDATION DEBUG:'

trace_logger = logging.getLogger('fncontracts.trace')

ENABLE_VALIDATION: DynamicVar[bool] = DynamicVar('enable_validation', validation_enabled_default())
VALIDATION_DEBUG: DynamicVar[bool] = DynamicVar('validation_debug', validation_debug_default())


def validation_enabled() -> bool:
    return bool(ENABLE_VALIDATION.get())


def validation_debug() -> bool:
    return bool(VALIDATION_DEBUG.get())


def set_validation_enabled(enabled: bool) -> None:
    """Set the process-wide value (seen by every thread outside a scope)."""
    ENABLE_VALIDATION.set_root(bool(enabled))


def set_validation_debug(enabled: bool) -> None:
    VALIDATION_DEBUG.set_root(bool(enabled))


@contextmanager
def with_validation(enabled: bool) -> Iterator[bool]:
    """Temporarily force validation on or off for the enclosed block."""
    with ENABLE_VALIDATION.binding(bool(enabled)) as value:
        yield value


@contextmanager
def with_validation_debug(enabled: bool) -> Iterator[bool]:
    """Temporarily force debug tracing on or off for the enclosed block."""
    with VALIDATION_DEBUG.binding(bool(enabled)) as value:
        yield value


def debug_trace(*parts: Any) -> None:
    """Emit one trace line when debug tracing is active."""
    if not validation_debug():
        return
    text = ' '.join(p if isinstance(p, str) else repr(p) for p in parts)
    trace_logger.info(f"{TRACE_MARKER} {text}")
