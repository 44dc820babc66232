"""
Validator handles - compiled once or validated ad hoc.

cache=True:  the engine compiles a validator once, at definition time.
             If compilation fails, the handle always reports invalid and
             carries the compilation message instead of failing the
             definition.
cache=False: every check calls engine.validate(schema, value).

Both paths agree on accept/reject for the same schema and value.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .engine import SchemaEngine
from .normalize import ResolvedSchema

logger = logging.getLogger('fncontracts.validators')


class ValidatorHandle:
    """Callable (value) -> bool bound to one schema."""

    def __init__(
        self,
        schema: Any,
        check: Callable[[Any], bool],
        compiled: bool,
        strict: bool = True,
        error: Optional[str] = None,
    ):
        self.schema = schema
        self.compiled = compiled
        self.strict = strict
        self.error = error
        self._check = check

    def __call__(self, value: Any) -> bool:
        return bool(self._check(value))

    def __repr__(self) -> str:
        mode = 'compiled' if self.compiled else 'ad hoc'
        if self.error:
            return f"<ValidatorHandle {mode} error={self.error!r}>"
        return f"<ValidatorHandle {mode} strict={self.strict}>"


@dataclass(frozen=True)
class Validators:
    """Handles for one function. ret is None when no return schema exists."""
    args: Optional[ValidatorHandle] = None
    ret: Optional[ValidatorHandle] = None


def build_handle(
    engine: SchemaEngine,
    schema: Any,
    *,
    cache: bool,
    strict: bool = True,
    label: str = 'args',
) -> ValidatorHandle:
    """Build the handle for one schema member ('args' or 'return')."""
    if not cache:
        def ad_hoc(value: Any) -> bool:
            return engine.validate(schema, value, strict=strict)
        return ValidatorHandle(schema, ad_hoc, compiled=False, strict=strict)

    try:
        compiled = engine.compile_validator(schema, strict=strict)
    except Exception as e:
        message = f"Invalid {label} schema: {e}"
        logger.warning(f"Validator compilation failed, every call will be rejected: {message}")

        def always_invalid(value: Any) -> bool:
            return False
        return ValidatorHandle(schema, always_invalid, compiled=True, strict=strict, error=message)

    return ValidatorHandle(schema, compiled, compiled=True, strict=strict)


def build_validators(
    engine: SchemaEngine,
    schema: Optional[ResolvedSchema],
    *,
    cache: bool,
    coerce_ret: bool = False,
) -> Validators:
    """
    Build the args/ret handles for a resolved schema.

    Return checks are lax when coerce_ret is on: they accept anything the
    engine can coerce, and the coercion stage converts it on the way out.
    """
    if schema is None:
        return Validators()

    args = build_handle(engine, schema.args, cache=cache, strict=True, label='args')
    ret = None
    if schema.has_ret:
        ret = build_handle(engine, schema.ret, cache=cache, strict=not coerce_ret, label='return')
    return Validators(args=args, ret=ret)
