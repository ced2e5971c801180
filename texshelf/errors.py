"""Error taxonomy shared by the shelf, index, profile and compilation layers.

Every error carries the process exit code the CLI reports for it.
Batch operations never raise these for a single failing item; they log
and return the succeeding subset instead.
"""

from __future__ import annotations

from pathlib import Path


class TexshelfError(Exception):
    """Base class for all texshelf errors."""

    exit_code = 1


class InvalidInputError(TexshelfError, ValueError):
    """Malformed or empty identifier (subject name, note title, option)."""

    exit_code = 2


class NotFoundError(TexshelfError, LookupError):
    """Subject, note or profile absent from the filesystem or index."""

    exit_code = 3


class InvalidProfileError(NotFoundError):
    """Profile directory is missing its metadata file or templates directory."""

    def __init__(self, path: Path):
        super().__init__(f"Profile at '{path}' is not valid or does not exist.")
        self.path = path


class AlreadyExistsError(TexshelfError):
    """Strict creation hit an existing entry."""

    exit_code = 4


class IoFailure(TexshelfError):
    """Filesystem or process I/O failure."""

    exit_code = 5


class IndexFailure(TexshelfError):
    """Index constraint violation or connectivity failure."""

    exit_code = 6


class DuplicateEntryError(IndexFailure):
    """Insert violated a uniqueness constraint of the index."""


class NoIndexError(IndexFailure):
    """Operation requires an index but the shelf has none."""

    def __init__(self, path: Path):
        super().__init__(f"The shelf at '{path}' has no index.")
        self.path = path


class ProcessFailure(TexshelfError):
    """External process failed to spawn or exited unsuccessfully."""

    exit_code = 7


class CompilationStateError(TexshelfError, RuntimeError):
    """A compilation environment was run more than once."""
