"""
Pytest configuration for Splicer test suite.

This conftest.py provides:
- Machine-mode logging (suppresses console output)
- Isolated user config (no ~/.splicer or project .splicer leaks in)
- Sample text file fixtures
"""

import os

import pytest

from splicer.cli.config import CLIConfig
from splicer.logging_config import setup_logging
from splicer.paths import reset_paths
from splicer.user_config import reset_user_config


# ============================================================================
# GLOBAL CONFIGURATION
# ============================================================================

def pytest_configure(config):
    """Configure pytest for quiet, machine-readable output."""
    os.environ.setdefault("SPLICER_MACHINE_MODE", "1")
    os.environ.pop("SPLICER_HUMAN_MODE", None)


# ============================================================================
# LOGGING / CONFIG FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def setup_test_logging():
    """
    Machine mode by default - suppress console logs for clean test output.
    """
    setup_logging(level="DEBUG", suppress_console=True, enable_file_logging=False, force=True)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point global and local config lookups at empty temp directories."""
    home = tmp_path / "home"
    project = tmp_path / "project"
    home.mkdir()
    project.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(project)
    reset_user_config()
    reset_paths()
    CLIConfig.set_machine_mode(None)
    yield project
    reset_user_config()
    reset_paths()
    CLIConfig.set_machine_mode(None)


# ============================================================================
# SAMPLE FILE FIXTURES
# ============================================================================

@pytest.fixture
def write_file(tmp_path):
    """Factory: write content under tmp_path/files and return the path as str."""
    root = tmp_path / "files"
    root.mkdir()

    def _write(name: str, content: str) -> str:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        return str(path)

    return _write


@pytest.fixture
def read_file():
    """Read a file back without newline translation."""
    def _read(path: str) -> str:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()

    return _read


@pytest.fixture
def nine_lines(write_file):
    """A file with lines l1..l9."""
    return write_file("nine.txt", "".join(f"l{i}\n" for i in range(1, 10)))
