"""Pytest configuration and fixtures."""

import shlex
import sys
from pathlib import Path

import pytest

from texshelf.config import ProfileConfig
from texshelf.profile import Profile
from texshelf.shelf import Shelf

PYTHON = shlex.quote(sys.executable)


def python_command(code: str, *args: str) -> str:
    """Command template running a Python one-liner (no braces in `code`)."""
    return " ".join([PYTHON, "-c", shlex.quote(code), *args])


@pytest.fixture
def shelf(tmp_path: Path):
    """A shelf without an index."""
    with Shelf.open(tmp_path / "shelf", use_index=False) as opened:
        yield opened


@pytest.fixture
def indexed_shelf(tmp_path: Path):
    """A shelf with a fresh index."""
    with Shelf.open(tmp_path / "indexed-shelf", use_index=True) as opened:
        yield opened


@pytest.fixture
def profile_path(tmp_path: Path) -> Path:
    """An exported profile directory."""
    path = tmp_path / "profile"
    Profile(path, ProfileConfig(name="Ada Lovelace")).export()
    return path


@pytest.fixture
def failing_command() -> str:
    return python_command("import sys; sys.exit(1)")


@pytest.fixture
def file_check_command() -> str:
    """Succeeds iff the rendered file name exists in the working directory."""
    return python_command(
        "import os, sys; sys.exit(0 if os.path.isfile(sys.argv[1]) else 1)",
        "{{ note }}",
    )


@pytest.fixture
def slow_command() -> str:
    return python_command("import time; time.sleep(10)")


@pytest.fixture
def half_second_command() -> str:
    """Sleeps for half a second, then succeeds."""
    return python_command("import time; time.sleep(0.5)")
