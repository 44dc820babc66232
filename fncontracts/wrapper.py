"""
@validated decorator and define() factory - turn a function into a contract-checked callable.

Usage:
    @validated({"args": tuple[int, int], "ret": PositiveInt})
    def add(x, y):
        return x + y

    @validated(Callable[[int], int], coerce_args=True)
    def inc(x):
        return x + 1

    inc = define({"args": tuple[int]}, "inc", "Increment", ["x"], lambda x: x + 1)

Building a ValidatedFunction:
1. Resolve options and the effective schema (resolver)
2. Normalize the schema into (args, ret?) (normalize)
3. Build validator handles, compiled or ad hoc (validators)
4. Wrap the body in the ExecutionPipeline (pipeline)
5. Compose coercion / strip / transform stages around it (stages)
6. Optionally overlay the engine's own instrumentation
7. Register the result (registry)
"""

import functools
import inspect
import logging
import types
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .engine import DEFAULT_ENGINE, SchemaEngine
from .errors import SchemaResolutionError
from .normalize import ResolvedSchema, is_schema_shape, normalize_schema
from .pipeline import ExecutionPipeline
from .registry import register
from .resolver import (
    PRIMARY_SCHEMA_KEY,
    FunctionSpec,
    ValidationConfig,
    merge_options,
    parse_definition,
    positional_params,
    resolve,
)
from .router import ErrorRouter
from .stages import compose_stages
from .state import validation_enabled, with_validation_debug
from .validators import build_validators

logger = logging.getLogger('fncontracts.wrapper')

Call = Callable[[Tuple[Any, ...], Dict[str, Any]], Any]


class ValidatedFunction:
    """
    The callable produced for a validated function.

    Attributes:
        config: resolved ValidationConfig
        schema: ResolvedSchema, or None when nothing is validated
        meta: name metadata with the effective schema, doc and attribute map
        spec: the FunctionSpec it was built from
        __wrapped__: the undecorated body
    """

    def __init__(
        self,
        spec: FunctionSpec,
        config: ValidationConfig,
        schema: Optional[ResolvedSchema],
        engine: SchemaEngine,
        call: Call,
        raw_schema: Any = None,
    ):
        functools.update_wrapper(self, spec.body)
        self.__name__ = spec.name.rsplit('.', 1)[-1]
        self.__qualname__ = spec.name
        if spec.doc is not None:
            self.__doc__ = spec.doc

        self.spec = spec
        self.config = config
        self.schema = schema
        self.engine = engine
        self.meta = _function_meta(spec, raw_schema)
        self._call = call
        try:
            self._signature = inspect.signature(spec.body)
        except (TypeError, ValueError):
            self._signature = None

    def __call__(self, *args, **kwargs):
        if not validation_enabled():
            return self.__wrapped__(*args, **kwargs)

        args, kwargs = self._bind(args, kwargs)
        if self.config.debug:
            with with_validation_debug(True):
                return self._call(args, kwargs)
        return self._call(args, kwargs)

    def _bind(self, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Tuple[Tuple[Any, ...], Dict[str, Any]]:
        """Bind to the body's signature so defaults land in the argument tuple."""
        if self._signature is None:
            return args, kwargs
        try:
            bound = self._signature.bind(*args, **kwargs)
        except TypeError:
            # Left to the args check, which rejects the wrong arity.
            return args, kwargs
        bound.apply_defaults()
        return bound.args, bound.kwargs

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return types.MethodType(self, instance)

    def __repr__(self) -> str:
        return f"<ValidatedFunction {self.__qualname__}>"


def _function_meta(spec: FunctionSpec, raw_schema: Any) -> Dict[str, Any]:
    meta = dict(spec.meta or {})
    meta[PRIMARY_SCHEMA_KEY] = raw_schema
    meta['doc'] = spec.doc
    meta.update(spec.attrs or {})
    return meta


def _instrumented(engine: SchemaEngine, call: Call, schema: ResolvedSchema, config: ValidationConfig) -> Call:
    def assembled(*args, **kwargs):
        return call(args, kwargs)

    try:
        outer = engine.instrument(
            assembled,
            schema,
            coerce_args=config.coerce_args,
            coerce_ret=config.coerce_ret,
        )
    except Exception as e:
        raise SchemaResolutionError(
            f"Cannot instrument schema: {e}",
            field='instrument',
            received_value=schema,
        ) from e

    def instrumented_call(args, kwargs):
        return outer(*args, **kwargs)

    return instrumented_call


def build_validated(spec: FunctionSpec) -> ValidatedFunction:
    """
    Build the ValidatedFunction for a FunctionSpec.

    Raises:
        SchemaResolutionError: malformed schema, options or transform spec
    """
    config, raw_schema = resolve(spec)
    schema = normalize_schema(raw_schema)
    engine = config.engine or DEFAULT_ENGINE

    validators = build_validators(
        engine,
        schema,
        cache=config.cache,
        coerce_ret=config.coerce_ret,
    )
    router = ErrorRouter(spec.name, on_error=config.on_error, error_fn=config.error_fn)
    call: Call = ExecutionPipeline(
        spec.name,
        spec.body,
        engine,
        validators,
        router,
        before_fn=config.before_fn,
        after_fn=config.after_fn,
    )

    if schema is not None:
        call = compose_stages(call, engine, schema, config)
        if config.instrument:
            call = _instrumented(engine, call, schema, config)

    fn = ValidatedFunction(spec, config, schema, engine, call, raw_schema=raw_schema)
    register(fn)
    logger.debug(
        f"Defined validated function '{spec.name}' "
        f"(schema={'yes' if schema is not None else 'none'}, ret={bool(schema and schema.has_ret)}, "
        f"cache={config.cache}, instrument={config.instrument})"
    )
    return fn


def spec_from_function(
    fn: Callable,
    schema: Any = None,
    attrs: Optional[Mapping[str, Any]] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> FunctionSpec:
    return FunctionSpec(
        name=getattr(fn, '__qualname__', None) or getattr(fn, '__name__', repr(fn)),
        body=fn,
        doc=getattr(fn, '__doc__', None),
        schema=schema,
        attrs=attrs,
        meta=meta,
        params=positional_params(fn) or (),
    )


def validated(*schema_or_fn: Any, attrs: Optional[Mapping[str, Any]] = None, **meta: Any):
    """
    Decorator that turns a function into a ValidatedFunction.

    Args:
        schema_or_fn: Optional positional schema (function shorthand or
            {"args", "ret"} mapping). Bare @validated is also accepted.
        attrs: Attribute map; its options win over keyword options
        **meta: Name metadata (options, 'pydantic_schema' / 'schema')

    Usage:
        @validated({"args": tuple[int], "ret": int}, on_error=lambda *a: 0)
        def halve(x):
            return x // 2
    """
    if (
        len(schema_or_fn) == 1
        and attrs is None
        and not meta
        and callable(schema_or_fn[0])
        and not isinstance(schema_or_fn[0], type)
        and not is_schema_shape(schema_or_fn[0])
    ):
        return build_validated(spec_from_function(schema_or_fn[0]))

    if len(schema_or_fn) > 1:
        raise SchemaResolutionError(
            f"validated() takes at most one positional schema, got {len(schema_or_fn)}",
            field='schema',
        )
    schema = schema_or_fn[0] if schema_or_fn else None
    if schema is not None and not is_schema_shape(schema):
        raise SchemaResolutionError(
            f"Expected a function schema (Callable[[...], R]) or a mapping with 'args', "
            f"got {type(schema).__name__}",
            field='schema',
            received_value=schema,
        )
    merge_options(meta, attrs)

    def decorator(fn: Callable) -> ValidatedFunction:
        return build_validated(spec_from_function(fn, schema, attrs, meta))

    return decorator


def define(*forms: Any, **meta: Any) -> ValidatedFunction:
    """
    Define a validated function from positional forms.

    Forms, in order: schema? name doc? attrs? params body

        scale = define(
            {"args": tuple[float], "ret": float},
            "scale",
            "Scale by the ambient factor",
            {"coerce_args": True},
            ["x"],
            lambda x: x * factor.get(),
        )
    """
    return build_validated(parse_definition(forms, meta))
