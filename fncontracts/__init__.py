"""
Function contracts package.

Provides schema-checked functions: the @validated decorator and define()
factory, the execution pipeline, error routing and the scoped validation
toggles.
"""

from .context import DynamicVar
from .engine import DEFAULT_ENGINE, PydanticEngine, SchemaEngine, Transformer
from .errors import (
    ArgsValidationError,
    ContractViolation,
    ExecutionError,
    FailureKind,
    ReturnValidationError,
    SchemaResolutionError,
    raise_violation,
)
from .normalize import ResolvedSchema, normalize_schema
from .registry import clear_registry, get_validated, list_validated
from .resolver import FunctionSpec, ValidationConfig
from .state import (
    set_validation_debug,
    set_validation_enabled,
    validation_debug,
    validation_enabled,
    with_validation,
    with_validation_debug,
)
from .wrapper import ValidatedFunction, build_validated, define, validated

__all__ = [
    'validated',
    'define',
    'build_validated',
    'ValidatedFunction',
    'FunctionSpec',
    'ValidationConfig',
    'ResolvedSchema',
    'normalize_schema',
    'SchemaEngine',
    'PydanticEngine',
    'DEFAULT_ENGINE',
    'Transformer',
    'ContractViolation',
    'ArgsValidationError',
    'ReturnValidationError',
    'ExecutionError',
    'FailureKind',
    'SchemaResolutionError',
    'raise_violation',
    'with_validation',
    'with_validation_debug',
    'set_validation_enabled',
    'set_validation_debug',
    'validation_enabled',
    'validation_debug',
    'DynamicVar',
    'get_validated',
    'list_validated',
    'clear_registry',
]
