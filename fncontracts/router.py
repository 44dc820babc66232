"""
Error routing - raise or recover.

route(kind, explanation, value):
- on_error set:  on_error(kind, explanation, value) is the call's result.
                 If on_error raises, that propagates to the caller.
- otherwise:     error_fn(<ContractViolation for kind>) is the call's result.
                 The default error_fn raises the violation.

A returned value is a recovery: the caller sees a normal return.
"""

import logging
from typing import Any, Callable, Optional

from .errors import FailureKind, build_violation, raise_violation

logger = logging.getLogger('fncontracts.router')


class ErrorRouter:
    """Per-function raise-vs-recover policy."""

    def __init__(
        self,
        function: str,
        on_error: Optional[Callable[..., Any]] = None,
        error_fn: Callable[..., Any] = raise_violation,
    ):
        self.function = function
        self.on_error = on_error
        self.error_fn = error_fn

    def route(
        self,
        kind: FailureKind,
        explanation: Any,
        value: Any,
        cause: Optional[BaseException] = None,
    ) -> Any:
        kind = FailureKind(kind)

        if self.on_error is not None:
            result = self.on_error(kind, explanation, value)
            self._log_recovery(kind, explanation, handler='on_error')
            return result

        error = build_violation(kind, explanation, value, function=self.function)
        if cause is not None:
            error.__cause__ = cause
            error.__suppress_context__ = True
        result = self.error_fn(error)
        self._log_recovery(kind, explanation, handler='error_fn')
        return result

    def _log_recovery(self, kind: FailureKind, explanation: Any, handler: str) -> None:
        """Log a violation that was turned into a normal return."""
        logger.warning(
            f"Contract violation recovered: function={self.function} kind={kind.value} handler={handler}",
            extra={
                "event": "contract_violation",
                "function": self.function,
                "kind": kind.value,
                "handler": handler,
                "explanation": explanation,
            }
        )
