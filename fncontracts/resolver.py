"""
Contract resolution - turns a FunctionSpec into one effective configuration.

Schema sources, highest priority first:
1. A schema passed positionally (function shorthand or {"args", "ret"} map)
2. Name metadata: 'pydantic_schema' (primary alias) or 'schema' (secondary)
3. The attribute map (may carry either alias)

Options come from name metadata and the attribute map only. The attribute
map wins per key (shallow merge, no deep merge of nested values).

combine_schemas=True (default): first non-empty of positional > primary >
secondary. combine_schemas=False: secondary only when primary is absent.
The two aliases are never merged field-by-field.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import cache_validators_default
from .engine import SchemaEngine
from .errors import SchemaResolutionError, raise_violation
from .normalize import is_empty_schema, is_schema_shape

logger = logging.getLogger('fncontracts.resolver')

PRIMARY_SCHEMA_KEY = 'pydantic_schema'
SECONDARY_SCHEMA_KEY = 'schema'


@dataclass(frozen=True)
class FunctionSpec:
    """Everything captured about a function at definition time."""
    name: str
    body: Callable
    doc: Optional[str] = None
    schema: Any = None                          # positional schema
    attrs: Optional[Mapping[str, Any]] = None   # attribute map
    meta: Optional[Mapping[str, Any]] = None    # name metadata
    params: Tuple[str, ...] = ()


class ValidationConfig(BaseModel):
    """
    Resolved per-function options.

    Built once at definition time. Unknown keys are ignored so name metadata
    can carry unrelated entries (e.g. 'doc').
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra='ignore',
        arbitrary_types_allowed=True,
    )

    primary_schema: Any = Field(default=None, alias=PRIMARY_SCHEMA_KEY)
    secondary_schema: Any = Field(default=None, alias=SECONDARY_SCHEMA_KEY)
    combine_schemas: bool = True
    validate_dynamic: bool = False  # accepted, currently has no effect
    error_fn: Callable[..., Any] = Field(default=raise_violation)
    on_error: Optional[Callable[..., Any]] = None
    instrument: bool = False
    debug: bool = False
    before_fn: Optional[Callable[..., Any]] = None
    after_fn: Optional[Callable[..., Any]] = None
    coerce_args: bool = False
    coerce_ret: bool = False
    cache: bool = Field(default_factory=cache_validators_default)
    strip_extra_keys: bool = False
    transform: Any = None
    engine: Optional[SchemaEngine] = None

    @field_validator('error_fn', mode='before')
    @classmethod
    def default_error_fn(cls, v):
        """error_fn=None means the default (raise)."""
        if v is None:
            return raise_violation
        return v


# =============================================================================
# Options
# =============================================================================

def merge_options(
    meta: Optional[Mapping[str, Any]],
    attrs: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """Shallow right-biased merge of name metadata and the attribute map."""
    if meta is not None and not isinstance(meta, Mapping):
        raise SchemaResolutionError(
            f"Name metadata must be a mapping, got {type(meta).__name__}",
            field='meta',
            received_value=meta,
        )
    if attrs is not None and not isinstance(attrs, Mapping):
        raise SchemaResolutionError(
            f"Attribute map must be a mapping, got {type(attrs).__name__}",
            field='attrs',
            received_value=attrs,
        )
    merged = dict(meta or {})
    merged.update(attrs or {})
    return merged


def build_config(options: Mapping[str, Any]) -> ValidationConfig:
    try:
        return ValidationConfig.model_validate(dict(options))
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ()))
        raise SchemaResolutionError(
            f"Invalid contract option '{field}': {first.get('msg')}",
            field=field,
            received_value=first.get("input"),
        ) from e


# =============================================================================
# Schema selection
# =============================================================================

def select_schema(positional: Any, config: ValidationConfig) -> Any:
    """Pick the effective raw schema (see module docstring for precedence)."""
    if not is_empty_schema(positional):
        return positional

    if config.combine_schemas:
        for candidate in (config.primary_schema, config.secondary_schema):
            if not is_empty_schema(candidate):
                return candidate
        return None

    if config.primary_schema is not None:
        return config.primary_schema
    return config.secondary_schema


def resolve(spec: FunctionSpec) -> Tuple[ValidationConfig, Any]:
    """
    Resolve a FunctionSpec into its configuration and effective raw schema.

    Raises:
        SchemaResolutionError: malformed metadata, attribute map or options
    """
    options = merge_options(spec.meta, spec.attrs)
    config = build_config(options)
    schema = select_schema(spec.schema, config)
    logger.debug(
        f"Resolved contract for '{spec.name}': "
        f"schema={'yes' if schema is not None else 'none'} "
        f"combine_schemas={config.combine_schemas} cache={config.cache}"
    )
    return config, schema


# =============================================================================
# Definition forms
# =============================================================================

def positional_params(body: Callable) -> Optional[Tuple[str, ...]]:
    """Names of the body's positional parameters, None if not introspectable."""
    try:
        sig = inspect.signature(body)
    except (TypeError, ValueError):
        return None
    names = []
    for param in sig.parameters.values():
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            names.append(param.name)
        elif param.kind == param.VAR_POSITIONAL:
            return None
    return tuple(names)


def parse_definition(forms: Sequence[Any], meta: Optional[Mapping[str, Any]] = None) -> FunctionSpec:
    """
    Parse positional definition forms into a FunctionSpec.

    Forms, in order: schema? name doc? attrs? params body

        parse_definition([{"args": tuple[int]}, "inc", "Increment", ["x"], lambda x: x + 1])

    Raises:
        SchemaResolutionError: If the forms do not follow that layout
    """
    forms = list(forms)

    schema = None
    if forms and not isinstance(forms[0], str):
        if not is_schema_shape(forms[0]):
            raise SchemaResolutionError(
                f"Expected a schema or a function name, got {type(forms[0]).__name__}",
                field='schema',
                received_value=forms[0],
            )
        schema = forms.pop(0)

    if not forms or not isinstance(forms[0], str):
        raise SchemaResolutionError("Expected a function name", field='name')
    name = forms.pop(0)

    doc = None
    if forms and isinstance(forms[0], str):
        doc = forms.pop(0)

    attrs = None
    if forms and isinstance(forms[0], Mapping):
        attrs = forms.pop(0)

    if len(forms) != 2:
        raise SchemaResolutionError(
            f"Expected a parameter list and a body after '{name}', got {len(forms)} form(s)",
            field='params',
        )
    params, body = forms

    if not isinstance(params, (list, tuple)) or not all(isinstance(p, str) for p in params):
        raise SchemaResolutionError(
            "Parameter list must be a list of names",
            field='params',
            received_value=params,
        )
    if not callable(body):
        raise SchemaResolutionError(
            f"Body must be callable, got {type(body).__name__}",
            field='body',
            received_value=body,
        )

    declared = positional_params(body)
    if declared is not None and tuple(params) != declared:
        raise SchemaResolutionError(
            f"Parameter list {list(params)} does not match body parameters {list(declared)}",
            field='params',
            received_value=params,
        )

    return FunctionSpec(
        name=name,
        body=body,
        doc=doc,
        schema=schema,
        attrs=attrs,
        meta=meta,
        params=tuple(params),
    )
