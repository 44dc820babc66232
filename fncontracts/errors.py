"""
Contract error taxonomy.

Definition time:
- SchemaResolutionError: malformed schema, options or definition forms.
  Always raised, never routed.

Call time (always routed through the ErrorRouter, which decides
raise-vs-recover):
- ArgsValidationError: arguments failed the args schema
- ReturnValidationError: the result failed the ret schema
- ExecutionError: the function body raised
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class FailureKind(str, Enum):
    """Which pipeline stage failed."""
    ARGS = "args"
    RET = "ret"
    EXECUTION = "execution"


class SchemaResolutionError(ValueError):
    """Raised at definition time when a contract cannot be resolved."""

    def __init__(self, message: str, field: str = None, received_value=None):
        super().__init__(message)
        self.field = field
        self.received_value = received_value


@dataclass(eq=False)
class ContractViolation(Exception):
    """Raised (by default) when a call violates its contract."""
    message: str
    kind: FailureKind
    explanation: Any = None
    value: Any = None
    function: Optional[str] = None

    def __post_init__(self):
        super().__init__(self.message)

    def __str__(self):
        return self.message

    def __reduce__(self):
        return (type(self), (self.message, self.kind, self.explanation, self.value, self.function))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for logging / JSON serialization."""
        return {
            "message": self.message,
            "kind": self.kind.value,
            "function": self.function,
            "explanation": self.explanation,
            "value": repr(self.value),
        }


class ArgsValidationError(ContractViolation):
    pass


class ReturnValidationError(ContractViolation):
    pass


class ExecutionError(ContractViolation):
    pass


_VIOLATIONS = {
    FailureKind.ARGS: (ArgsValidationError, "Input validation error"),
    FailureKind.RET: (ReturnValidationError, "Output validation error"),
    FailureKind.EXECUTION: (ExecutionError, "Function execution error"),
}


def build_violation(
    kind: FailureKind,
    explanation: Any,
    value: Any,
    function: Optional[str] = None,
) -> ContractViolation:
    """Construct the error object for a failed stage."""
    error_cls, message = _VIOLATIONS[FailureKind(kind)]
    return error_cls(
        message=message,
        kind=FailureKind(kind),
        explanation=explanation,
        value=value,
        function=function,
    )


def raise_violation(error: ContractViolation) -> Any:
    """Default error_fn: raise the violation."""
    raise error
