"""PyTest configuration and shared test fixtures.

This module provides PyTest configuration, shared fixtures, and test
utilities that are used across multiple test files.
"""

from collections.abc import Generator
from pathlib import Path

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any logging configuration a test applied."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def password_file(tmp_path: Path) -> Path:
    """Create a password file with two comment lines."""
    path = tmp_path / "password.txt"
    path.write_text("# FTP account password\n# rotated by pwrotate\nold123\n")
    return path
