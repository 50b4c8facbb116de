"""
Pytest configuration and shared fixtures.

This module registers custom markers and provides shells backed either by
fake in-process children or by real subprocesses.
"""

import shutil
import sys
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from futureproc import Shell, ShellConfig
from tests.helpers.fake_process import FakeSpawner

# =============================================================================
# Plugin Registration
# =============================================================================

pytest_plugins = [
    "tests.fixtures.logging",
]


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, isolated, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (spawn real child processes)"
    )
    config.addinivalue_line("markers", "property: Property-based tests (hypothesis)")
    config.addinivalue_line("markers", "slow: Tests that take >1 second to run")


def pytest_collection_modifyitems(config, items):
    """Add the 'unit' marker to tests without another category marker."""
    for item in items:
        if not any(
            mark.name in ["integration", "property"] for mark in item.iter_markers()
        ):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    temp_path = Path(tempfile.mkdtemp(prefix="futureproc-test-"))
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def spawner() -> Generator[FakeSpawner, None, None]:
    """Fake spawner; every fake child's pipes are closed at teardown."""
    fake = FakeSpawner()
    yield fake
    fake.close_all()


@pytest.fixture
def fake_shell(spawner: FakeSpawner) -> Generator[Shell, None, None]:
    """Shell with an unlimited queue driving fake children."""
    shell = Shell(ShellConfig(poll_slice=0.01), spawner=spawner)
    yield shell
    shell.close()


@pytest.fixture
def shell() -> Generator[Shell, None, None]:
    """Shell launching real processes; every child is reaped at teardown."""
    shell = Shell(ShellConfig(poll_slice=0.01))
    yield shell
    shell.close()


@pytest.fixture
def python_cmd():
    """Build an argv running a Python snippet in a fresh interpreter."""

    def build(code: str) -> list[str]:
        return [sys.executable, "-c", code]

    return build
