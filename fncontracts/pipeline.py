"""
Execution pipeline - the call-time state machine.

Every call of a validated function goes through:

    START -> gate -> BEFORE_HOOK -> ARGS_CHECK -> EXECUTE
          -> AFTER_HOOK -> RET_CHECK -> RETURN

Failure exits (ARGS_INVALID, EXEC_FAILED, RET_INVALID) go to the ErrorRouter,
whose return value (if it does not raise) becomes the call's result.

- gate: validation disabled -> body(*args, **kwargs), nothing else
- hooks: before_fn(args) / after_fn(result); failures never reach the caller
- ARGS_CHECK is fail-fast: the body does not run on invalid arguments
- EXECUTE traps Exception from the body; AFTER_HOOK and RET_CHECK are skipped
- RET_CHECK only runs with a return schema and validation still enabled
- every exit traces the per-stage outcome map, e.g. {'args': True, 'execution': True}
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from .engine import SchemaEngine
from .errors import FailureKind
from .router import ErrorRouter
from .state import debug_trace, validation_enabled
from .validators import ValidatorHandle, Validators

logger = logging.getLogger('fncontracts.pipeline')


@dataclass
class CallContext:
    """Per-invocation state, discarded when the call returns or raises."""
    args: Tuple[Any, ...]
    kwargs: Dict[str, Any]
    result: Any = None
    failure: Optional[BaseException] = None
    outcomes: Dict[str, bool] = field(default_factory=dict)


class ExecutionPipeline:
    """Callable (args, kwargs) -> result wrapping the function body."""

    def __init__(
        self,
        name: str,
        body: Callable,
        engine: SchemaEngine,
        validators: Validators,
        router: ErrorRouter,
        before_fn: Optional[Callable[[Tuple[Any, ...]], Any]] = None,
        after_fn: Optional[Callable[[Any], Any]] = None,
    ):
        self.name = name
        self.body = body
        self.engine = engine
        self.validators = validators
        self.router = router
        self.before_fn = before_fn
        self.after_fn = after_fn

    def __call__(self, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        if not validation_enabled():
            return self.body(*args, **kwargs)

        ctx = CallContext(args=args, kwargs=kwargs)
        debug_trace("Function called with args:", args)

        self._run_hook('before_fn', self.before_fn, args)

        # ARGS_CHECK
        if not self._check('args', self.validators.args, args, ctx):
            explanation = self._explain(self.validators.args, args)
            debug_trace("Input validation failed:", explanation)
            debug_trace("Stage outcomes:", ctx.outcomes)
            return self.router.route(FailureKind.ARGS, explanation, args)

        # EXECUTE
        try:
            ctx.result = self.body(*args, **kwargs)
        except Exception as e:
            ctx.failure = e
        ctx.outcomes['execution'] = ctx.failure is None

        if ctx.failure is not None:
            message = f"{type(ctx.failure).__name__}: {ctx.failure}"
            debug_trace("Function execution failed:", message)
            debug_trace("Stage outcomes:", ctx.outcomes)
            return self.router.route(FailureKind.EXECUTION, message, args, cause=ctx.failure)

        if validation_enabled():
            self._run_hook('after_fn', self.after_fn, ctx.result)

            # RET_CHECK
            if not self._check('ret', self.validators.ret, ctx.result, ctx):
                explanation = self._explain(self.validators.ret, ctx.result)
                debug_trace("Output validation failed:", explanation)
                debug_trace("Stage outcomes:", ctx.outcomes)
                return self.router.route(FailureKind.RET, explanation, ctx.result)

        debug_trace("Function returned:", ctx.result)
        debug_trace("Stage outcomes:", ctx.outcomes)
        return ctx.result

    def _check(self, stage: str, handle: Optional[ValidatorHandle], value: Any, ctx: CallContext) -> bool:
        """Run one validator; a validator that raises counts as invalid."""
        if handle is None:
            return True
        try:
            valid = handle(value)
        except Exception as e:
            debug_trace(f"{stage.capitalize()} validation error:", str(e))
            logger.debug(f"Validator for '{self.name}' {stage} raised", exc_info=True)
            valid = False
        ctx.outcomes[stage] = valid
        return valid

    def _explain(self, handle: ValidatorHandle, value: Any) -> Any:
        if handle.error:
            return handle.error
        try:
            return self.engine.explain(handle.schema, value, strict=handle.strict)
        except Exception as e:
            return f"Validation error: {e}"

    def _run_hook(self, hook_name: str, hook: Optional[Callable[[Any], Any]], value: Any) -> None:
        if hook is None:
            return
        try:
            hook(value)
        except Exception as e:
            logger.debug(f"{hook_name} failed for '{self.name}'", exc_info=True)
            debug_trace(f"{hook_name} failed:", f"{type(e).__name__}: {e}")
