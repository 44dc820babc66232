"""
Schema normalization - canonicalizes a raw contract schema.

Accepted shapes:
- Function shorthand: Callable[[A, B], R]
    -> ResolvedSchema(args=Callable[[A, B], R]), no separate ret.
       The return part is only checked by the engine's instrumentation.
- Mapping: {"args": <schema>, "ret": <schema>}   ("ret" optional)
    -> ResolvedSchema(args=..., ret=..., has_ret="ret" in mapping)

Empty schemas (None, {}, [], ()) normalize to None: no validation.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .engine import is_function_schema
from .errors import SchemaResolutionError

SCHEMA_KEYS = frozenset(['args', 'ret'])


@dataclass(frozen=True)
class ResolvedSchema:
    """Canonical (args, ret?) pair."""
    args: Any
    ret: Any = None
    has_ret: bool = False


def is_empty_schema(schema: Any) -> bool:
    if schema is None:
        return True
    if isinstance(schema, (Mapping, list, tuple)) and len(schema) == 0:
        return True
    return False


def is_schema_shape(schema: Any) -> bool:
    """True when schema looks like a contract schema (not a name or a bare type)."""
    return is_function_schema(schema) or isinstance(schema, Mapping)


def normalize_schema(schema: Any) -> Optional[ResolvedSchema]:
    """
    Normalize a resolved schema into ResolvedSchema.

    Args:
        schema: Function shorthand, {"args", "ret"?} mapping, or an empty value

    Returns:
        ResolvedSchema, or None when the schema is empty

    Raises:
        SchemaResolutionError: If the shape is not recognised
    """
    if is_empty_schema(schema):
        return None

    if is_function_schema(schema):
        return ResolvedSchema(args=schema)

    if isinstance(schema, Mapping):
        unknown = set(schema.keys()) - SCHEMA_KEYS
        if unknown:
            raise SchemaResolutionError(
                f"Unexpected schema keys {sorted(map(str, unknown))} (allowed: 'args', 'ret')",
                field='schema',
                received_value=schema,
            )
        if 'args' not in schema:
            raise SchemaResolutionError(
                "Schema mapping requires an 'args' entry",
                field='schema',
                received_value=schema,
            )
        return ResolvedSchema(
            args=schema['args'],
            ret=schema.get('ret'),
            has_ret='ret' in schema,
        )

    raise SchemaResolutionError(
        f"Expected a function schema (Callable[[...], R]) or a mapping with 'args', "
        f"got {type(schema).__name__}: {schema!r}",
        field='schema',
        received_value=schema,
    )
