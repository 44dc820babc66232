"""
Validated function registry.

Every ValidatedFunction built by validated() / define() is recorded here,
keyed by '<module>.<qualname>'. Redefining a function replaces its entry.
"""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger('fncontracts.registry')

# Global registry
VALIDATED: Dict[str, Any] = {}


def registry_key(fn: Any) -> str:
    module = getattr(fn, '__module__', None) or '__main__'
    return f"{module}.{fn.__qualname__}"


def register(fn: Any) -> None:
    """Register a validated function."""
    key = registry_key(fn)
    if key in VALIDATED:
        logger.debug(f"Replacing validated function '{key}'")
    VALIDATED[key] = fn


def get_validated(key: str) -> Optional[Any]:
    """Get a validated function by '<module>.<qualname>'."""
    return VALIDATED.get(key)


def list_validated() -> List[str]:
    return sorted(VALIDATED.keys())


def clear_registry() -> None:
    VALIDATED.clear()
