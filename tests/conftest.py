"""
Pytest fixtures for contract tests.
"""

import logging

import pytest

from fncontracts import state
from fncontracts.registry import clear_registry


@pytest.fixture(autouse=True)
def reset_process_state():
    """Restore the process-wide toggles and empty the registry around each test."""
    enabled = state.ENABLE_VALIDATION.root
    debug = state.VALIDATION_DEBUG.root
    state.set_validation_enabled(True)
    state.set_validation_debug(False)
    clear_registry()
    yield
    state.set_validation_enabled(enabled)
    state.set_validation_debug(debug)
    clear_registry()


@pytest.fixture
def trace_lines(caplog):
    """Collect VALIDATION DEBUG lines emitted during the test."""
    caplog.set_level(logging.INFO, logger='fncontracts.trace')

    def lines():
        return [
            r.getMessage() for r in caplog.records
            if r.name == 'fncontracts.trace'
        ]

    return lines
