"""
Coercion / key-stripping / transform stages.

Stages run in a fixed order, each on the output of the previous one:

    1. coercion          (coerce_args / coerce_ret)
    2. key stripping     (strip_extra_keys)
    3. custom transform  (transform)

On the way in they rewrite the argument tuple before the pipeline sees it;
on the way out they rewrite the result, when a return schema exists.

Conversion is best effort: a value the engine cannot convert is passed on
unchanged, and the pipeline's own checks report it.
"""

import logging
from typing import Any, Callable, Dict, List, Tuple

from .engine import SchemaEngine
from .errors import SchemaResolutionError
from .normalize import ResolvedSchema
from .resolver import ValidationConfig
from .state import debug_trace

logger = logging.getLogger('fncontracts.stages')


def _as_args(value: Any, original: Tuple[Any, ...]) -> Tuple[Any, ...]:
    """Keep the argument tuple shape after a conversion."""
    if isinstance(value, tuple):
        return value
    if isinstance(value, list):
        return tuple(value)
    logger.debug(f"Stage produced {type(value).__name__} for the argument tuple, keeping original")
    return original


class Stage:
    """One conversion applied to arguments and (optionally) results."""

    name = 'stage'

    def __init__(self, engine: SchemaEngine, schema: ResolvedSchema):
        self.engine = engine
        self.schema = schema

    def convert_args(self, args: Tuple[Any, ...]) -> Tuple[Any, ...]:
        return args

    def convert_result(self, result: Any) -> Any:
        return result

    def _best_effort(self, what: str, fn: Callable[[], Any], value: Any) -> Any:
        try:
            return fn()
        except Exception as e:
            logger.debug(f"{self.name}: {what} left unchanged ({type(e).__name__}: {e})")
            debug_trace(f"{what.capitalize()} failed:", f"{type(e).__name__}: {e}")
            return value


class CoercionStage(Stage):
    name = 'coerce'

    def __init__(self, engine, schema, coerce_args: bool, coerce_ret: bool):
        super().__init__(engine, schema)
        self.coerce_args = coerce_args
        self.coerce_ret = coerce_ret and schema.has_ret

    def convert_args(self, args):
        if not self.coerce_args:
            return args
        coerced = self._best_effort(
            'argument coercion',
            lambda: self.engine.coerce(self.schema.args, args),
            args,
        )
        return _as_args(coerced, args)

    def convert_result(self, result):
        if not self.coerce_ret:
            return result
        return self._best_effort(
            'return coercion',
            lambda: self.engine.coerce(self.schema.ret, result),
            result,
        )


class DecodeStage(Stage):
    """Decode with an engine transformer (key stripping or custom transform)."""

    def __init__(self, engine, schema, decoder: Any, name: str):
        super().__init__(engine, schema)
        self.decoder = decoder
        self.name = name

    def convert_args(self, args):
        decoded = self._best_effort(
            f'{self.name} decoding',
            lambda: self.engine.decode(self.schema.args, self.decoder, args),
            args,
        )
        return _as_args(decoded, args)

    def convert_result(self, result):
        if not self.schema.has_ret:
            return result
        return self._best_effort(
            f'{self.name} decoding',
            lambda: self.engine.decode(self.schema.ret, self.decoder, result),
            result,
        )


def build_stages(engine: SchemaEngine, schema: ResolvedSchema, config: ValidationConfig) -> List[Stage]:
    """
    Build the configured stages in their fixed order.

    Raises:
        SchemaResolutionError: If the transform spec cannot be built
    """
    stages: List[Stage] = []

    if config.coerce_args or config.coerce_ret:
        stages.append(CoercionStage(engine, schema, config.coerce_args, config.coerce_ret))

    if config.strip_extra_keys:
        stages.append(DecodeStage(engine, schema, engine.strip_unknown_keys(schema.args), 'strip_extra_keys'))

    if config.transform is not None:
        try:
            transformer = engine.build_transformer(config.transform)
        except (ValueError, TypeError) as e:
            raise SchemaResolutionError(
                f"Invalid transform: {e}",
                field='transform',
                received_value=config.transform,
            ) from e
        stages.append(DecodeStage(engine, schema, transformer, 'transform'))

    return stages


class CoercionTransformStage:
    """Callable (args, kwargs) -> result running stages around an inner call."""

    def __init__(self, inner: Callable[[Tuple[Any, ...], Dict[str, Any]], Any], stages: List[Stage]):
        self.inner = inner
        self.stages = list(stages)

    def __call__(self, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        for stage in self.stages:
            args = stage.convert_args(args)
        result = self.inner(args, kwargs)
        for stage in self.stages:
            result = stage.convert_result(result)
        return result


def compose_stages(inner, engine: SchemaEngine, schema: ResolvedSchema, config: ValidationConfig):
    """Wrap inner with the configured stages; returns inner unchanged if none."""
    stages = build_stages(engine, schema, config)
    if not stages:
        return inner
    return CoercionTransformStage(inner, stages)
