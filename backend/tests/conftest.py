"""Root conftest — shared test configuration."""

import os

import pytest

from tests.fakes import io_failure_chain

# Keep developer .env / shell settings out of the test run
os.environ.setdefault("JSONCOMMAND_ENABLE_ENTRY_POINT_CONTROLLERS", "false")


@pytest.fixture
def io_failure():
    """An OSError wrapped in three unrelated exceptions."""
    return io_failure_chain()
