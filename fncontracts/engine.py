"""
Schema engine capability.

The contract layer never interprets schemas itself. Everything it needs from
a schema language goes through SchemaEngine:

- validate(schema, value)          -> bool
- explain(schema, value)           -> list of violations, or None when valid
- compile_validator(schema)        -> (value) -> bool, built once
- coerce(schema, value)            -> converted value (raises on failure)
- decode(schema, decoder, value)   -> value rewritten by a transformer
- build_transformer(spec)          -> Transformer
- strip_unknown_keys(schema)       -> Transformer that drops undeclared keys
- instrument(fn, schema)           -> fn wrapped with the engine's own checks

PydanticEngine implements it on top of pydantic v2 TypeAdapters. Validation
is strict (no implicit conversion); coercion is pydantic's lax mode.

Function schemas (typing.Callable[[A, B], R]) describe calls. Against a value
they check the call's argument tuple as tuple[A, B]; Callable[..., R] accepts
any arguments. The return part R is only enforced by instrument().
"""

import collections.abc
import dataclasses
import functools
import types
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union, get_args, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError
from typing_extensions import Annotated, is_typeddict

_UNION_ORIGINS = (Union, types.UnionType)
_SEQUENCE_ORIGINS = (
    list, set, frozenset,
    collections.abc.Sequence, collections.abc.MutableSequence,
    collections.abc.Set, collections.abc.MutableSet,
    collections.abc.Collection, collections.abc.Iterable,
)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


# =============================================================================
# Function schemas
# =============================================================================

def is_function_schema(schema: Any) -> bool:
    """True for Callable[[...], R] (typing or collections.abc spelling)."""
    return get_origin(schema) is collections.abc.Callable or schema is collections.abc.Callable


def function_params(schema: Any) -> Any:
    """Parameter list of a function schema, or Ellipsis for Callable[..., R]."""
    args = get_args(schema)
    if not args:
        return Ellipsis
    return args[0]


def function_return(schema: Any) -> Any:
    args = get_args(schema)
    if not args:
        return Any
    return args[1]


def call_type(schema: Any) -> Any:
    """The type an argument tuple is checked against."""
    if not is_function_schema(schema):
        return schema
    params = function_params(schema)
    if params is Ellipsis:
        return Tuple[Any, ...]
    return Tuple[tuple(params)]


def violations_from(error: ValidationError) -> List[Dict[str, Any]]:
    """Flatten a pydantic ValidationError into violation dicts."""
    violations = []
    for err in error.errors():
        violations.append({
            "path": ".".join(str(part) for part in err.get("loc", ())),
            "error": err.get("type"),
            "message": err.get("msg"),
            "received": err.get("input"),
        })
    return violations


# =============================================================================
# Schema-guided walking (key stripping, text decoding)
# =============================================================================

def _unwrap(tp: Any) -> Any:
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    return tp


def _fields_of(tp: Any) -> Optional[Dict[str, Any]]:
    """Declared keys of a record-like schema, or None if tp is not one."""
    if is_typeddict(tp):
        return dict(getattr(tp, '__annotations__', {}))
    if isinstance(tp, type) and issubclass(tp, BaseModel):
        fields = {}
        for name, info in tp.model_fields.items():
            fields[name] = info.annotation
            if info.alias:
                fields[info.alias] = info.annotation
        return fields
    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return {f.name: f.type for f in dataclasses.fields(tp)}
    return None


def _rebuild(original: Any, items: List[Any]) -> Any:
    if isinstance(original, tuple):
        if hasattr(original, '_fields'):
            return type(original)(*items)
        return tuple(items)
    if isinstance(original, frozenset):
        return frozenset(items)
    if isinstance(original, set):
        return set(items)
    return list(items)


def _walk(tp: Any, value: Any, leaf: Callable[[Any, Any], Any], drop_unknown: bool) -> Any:
    tp = _unwrap(tp)

    fields = _fields_of(tp)
    if fields is not None:
        if not isinstance(value, Mapping):
            return leaf(tp, value)
        out = {}
        for key, item in value.items():
            if key in fields:
                out[key] = _walk(fields[key], item, leaf, drop_unknown)
            elif not drop_unknown:
                out[key] = item
        return out

    origin = get_origin(tp)
    args = get_args(tp)

    if origin in _UNION_ORIGINS:
        return _walk_union(args, value, leaf, drop_unknown)

    if origin is tuple and isinstance(value, (tuple, list)):
        if len(args) == 2 and args[1] is Ellipsis:
            item_types = [args[0]] * len(value)
        elif len(args) == len(value):
            item_types = list(args)
        else:
            # Arity mismatch is for validation to report
            return value
        return _rebuild(value, [_walk(t, v, leaf, drop_unknown) for t, v in zip(item_types, value)])

    if origin in _SEQUENCE_ORIGINS and args and isinstance(value, (list, tuple, set, frozenset)):
        return _rebuild(value, [_walk(args[0], v, leaf, drop_unknown) for v in value])

    if origin in _MAPPING_ORIGINS and len(args) == 2 and isinstance(value, Mapping):
        return {k: _walk(args[1], v, leaf, drop_unknown) for k, v in value.items()}

    return leaf(tp, value)


def _walk_union(members: Tuple[Any, ...], value: Any, leaf, drop_unknown: bool) -> Any:
    """Use the first union member the rewritten value satisfies."""
    for member in members:
        if member is type(None):
            if value is None:
                return value
            continue
        candidate = _walk(member, value, leaf, drop_unknown)
        try:
            TypeAdapter(member).validate_python(candidate, strict=True)
        except ValidationError:
            continue
        return candidate
    return value


def _keep_leaf(tp: Any, value: Any) -> Any:
    return value


def _decode_text_leaf(tp: Any, value: Any) -> Any:
    if not isinstance(value, str) or tp is str or tp is Any or isinstance(tp, str):
        return value
    try:
        return TypeAdapter(tp).validate_python(value)
    except ValidationError:
        return value


def strip_extra_keys_step(schema: Any, value: Any) -> Any:
    return _walk(call_type(schema), value, _keep_leaf, drop_unknown=True)


def decode_text_step(schema: Any, value: Any) -> Any:
    return _walk(call_type(schema), value, _decode_text_leaf, drop_unknown=False)


def strip_whitespace_step(schema: Any, value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Mapping):
        return {k: strip_whitespace_step(schema, v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return _rebuild(value, [strip_whitespace_step(schema, v) for v in value])
    return value


BUILTIN_TRANSFORMERS: Dict[str, Callable[[Any, Any], Any]] = {
    'string': decode_text_step,
    'strip_whitespace': strip_whitespace_step,
    'strip_extra_keys': strip_extra_keys_step,
}


class Transformer:
    """An ordered chain of decode steps, each (schema, value) -> value."""

    def __init__(self, name: str, steps: List[Callable[[Any, Any], Any]]):
        self.name = name
        self.steps = list(steps)

    def decode(self, schema: Any, value: Any) -> Any:
        for step in self.steps:
            value = step(schema, value)
        return value

    def __repr__(self) -> str:
        return f"Transformer({self.name!r})"


def _value_step(fn: Callable[[Any], Any]) -> Callable[[Any, Any], Any]:
    @functools.wraps(fn)
    def step(schema, value):
        return fn(value)
    return step


# =============================================================================
# Engine interface
# =============================================================================

class SchemaEngine(ABC):
    """Abstract schema capability consumed by the contract layer."""

    @abstractmethod
    def validate(self, schema: Any, value: Any, *, strict: bool = True) -> bool:
        ...

    @abstractmethod
    def explain(self, schema: Any, value: Any, *, strict: bool = True) -> Optional[Any]:
        ...

    @abstractmethod
    def compile_validator(self, schema: Any, *, strict: bool = True) -> Callable[[Any], bool]:
        ...

    @abstractmethod
    def coerce(self, schema: Any, value: Any) -> Any:
        ...

    @abstractmethod
    def decode(self, schema: Any, decoder: Any, value: Any) -> Any:
        ...

    @abstractmethod
    def build_transformer(self, spec: Any) -> Any:
        ...

    @abstractmethod
    def strip_unknown_keys(self, schema: Any) -> Any:
        ...

    @abstractmethod
    def instrument(
        self,
        fn: Callable,
        schema: Any,
        *,
        coerce_args: bool = False,
        coerce_ret: bool = False,
    ) -> Callable:
        ...


class PydanticEngine(SchemaEngine):
    """SchemaEngine backed by pydantic TypeAdapters."""

    def adapter(self, schema: Any) -> TypeAdapter:
        return TypeAdapter(call_type(schema))

    def validate(self, schema, value, *, strict=True):
        try:
            self.adapter(schema).validate_python(value, strict=strict)
        except ValidationError:
            return False
        return True

    def explain(self, schema, value, *, strict=True):
        try:
            self.adapter(schema).validate_python(value, strict=strict)
        except ValidationError as e:
            return violations_from(e)
        return None

    def compile_validator(self, schema, *, strict=True):
        adapter = self.adapter(schema)

        def validator(value: Any) -> bool:
            try:
                adapter.validate_python(value, strict=strict)
            except ValidationError:
                return False
            return True

        return validator

    def coerce(self, schema, value):
        return self.adapter(schema).validate_python(value)

    def decode(self, schema, decoder, value):
        return decoder.decode(schema, value)

    def build_transformer(self, spec):
        """
        Build a Transformer from a spec.

        A spec is a built-in transformer name ('string', 'strip_whitespace',
        'strip_extra_keys'), a callable taking and returning the value, or a
        list/tuple of those applied in order.

        Raises:
            ValueError: unknown name or empty spec
            TypeError: an item that is neither a name nor a callable
        """
        items = list(spec) if isinstance(spec, (list, tuple)) else [spec]
        if not items:
            raise ValueError("Transformer spec is empty")

        steps = []
        names = []
        for item in items:
            if isinstance(item, str):
                if item not in BUILTIN_TRANSFORMERS:
                    raise ValueError(
                        f"Unknown transformer '{item}' "
                        f"(expected one of {sorted(BUILTIN_TRANSFORMERS)})"
                    )
                steps.append(BUILTIN_TRANSFORMERS[item])
                names.append(item)
            elif callable(item):
                steps.append(_value_step(item))
                names.append(getattr(item, '__name__', repr(item)))
            else:
                raise TypeError(f"Transformer step must be a name or callable, got {type(item).__name__}")
        return Transformer('+'.join(names), steps)

    def strip_unknown_keys(self, schema):
        return Transformer('strip_extra_keys', [strip_extra_keys_step])

    def instrument(self, fn, schema, *, coerce_args=False, coerce_ret=False):
        """
        Wrap fn with pydantic's own checks, raising pydantic.ValidationError.

        schema is a resolved (args, ret) pair. Without an explicit ret, a
        function schema's return part is enforced. With coerce_args /
        coerce_ret the matching check is lax, so values the coercion stage
        would convert are accepted.
        """
        args_adapter = self.adapter(schema.args)
        if schema.has_ret:
            ret_type = schema.ret
        elif is_function_schema(schema.args):
            ret_type = function_return(schema.args)
        else:
            ret_type = Any
        ret_adapter = None if ret_type is Any else TypeAdapter(ret_type)

        @functools.wraps(fn)
        def instrumented(*args, **kwargs):
            args_adapter.validate_python(args, strict=not coerce_args)
            result = fn(*args, **kwargs)
            if ret_adapter is not None:
                ret_adapter.validate_python(result, strict=not coerce_ret)
            return result

        return instrumented


DEFAULT_ENGINE = PydanticEngine()
