"""
Environment-based defaults for function contracts.

Environment Variables:
    FNCONTRACTS_VALIDATION_ENABLED: 'true' or 'false' (default: 'true')
        Process-wide kill switch. When false, every validated function calls
        its body directly: no hooks, no tracing, no checks.

    FNCONTRACTS_VALIDATION_DEBUG: 'true' or 'false' (default: 'false')
        Process-wide debug tracing (VALIDATION DEBUG: log lines).

    FNCONTRACTS_CACHE_VALIDATORS: 'true' or 'false' (default: 'false')
        Default for the per-function `cache` option (compile validators once
        at definition time instead of validating ad hoc on every call).

These only seed the process-wide roots. Scoped overrides
(with_validation / with_validation_debug) and per-function options win.

Usage:
    # Turn contract checks off for a benchmark run
    export FNCONTRACTS_VALIDATION_ENABLED=false
"""

import os
import logging

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_FALSY = ('false', '0', 'no', 'off', 'disabled')
_TRUTHY = ('true', '1', 'yes', 'on', 'enabled')


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag, falling back to the default on unrecognised values."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    value = raw.strip().lower()
    if value in _FALSY:
        return False
    if value in _TRUTHY:
        return True
    logger.warning(f"Invalid {name} '{raw}', defaulting to '{str(default).lower()}'")
    return default


def validation_enabled_default() -> bool:
    """
    Check whether contract validation starts enabled for this process.

    Environment:
        FNCONTRACTS_VALIDATION_ENABLED: 'true' (default) or 'false'
    """
    enabled = _env_flag('FNCONTRACTS_VALIDATION_ENABLED', True)
    if not enabled:
        logger.warning("Contract validation is DISABLED via FNCONTRACTS_VALIDATION_ENABLED=false")
    return enabled


def validation_debug_default() -> bool:
    """
    Check whether debug tracing starts enabled for this process.

    Environment:
        FNCONTRACTS_VALIDATION_DEBUG: 'false' (default) or 'true'
    """
    return _env_flag('FNCONTRACTS_VALIDATION_DEBUG', False)


def cache_validators_default() -> bool:
    """
    Default for the `cache` option of newly defined functions.

    Environment:
        FNCONTRACTS_CACHE_VALIDATORS: 'false' (default) or 'true'
    """
    return _env_flag('FNCONTRACTS_CACHE_VALIDATORS', False)
