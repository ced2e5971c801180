"""
SQLite ledger of subjects and notes.

The index is an accelerator, not the source of truth: the directory tree of
a shelf is authoritative and every row here can be recreated from it. It
records a stable id and a modification time per entity, and enforces the
uniqueness rules the filesystem cannot express (no two notes of a subject
sharing a slug or a title).

Absent rows are reported as None or an empty list. Constraint violations
raise DuplicateEntryError; any other engine error raises IndexFailure.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from .errors import DuplicateEntryError, IndexFailure, NotFoundError
from .models import Note, Subject

logger = logging.getLogger(__name__)

INDEX_FILE = "index.db"

SORT_COLUMNS = {"name", "title", "id", "datetime_modified"}

SCHEMA = """
CREATE TABLE IF NOT EXISTS subjects (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    slug TEXT NOT NULL UNIQUE,
    datetime_modified TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS notes (
    id INTEGER PRIMARY KEY,
    title TEXT NOT NULL CHECK (
        LENGTH(title) <= 256 AND LOWER(title) NOT IN ('main', 'graphics')
    ),
    slug TEXT NOT NULL,
    subject_id INTEGER NOT NULL
        REFERENCES subjects(id) ON DELETE CASCADE ON UPDATE CASCADE,
    datetime_modified TEXT NOT NULL,
    UNIQUE (subject_id, slug),
    UNIQUE (subject_id, title)
);

CREATE INDEX IF NOT EXISTS notes_index ON notes (title, subject_id);
"""


def _now() -> str:
    return datetime.now().astimezone().isoformat()


@dataclass(frozen=True)
class SubjectRecord:
    """A row of the subjects table."""

    id: int
    name: str
    slug: str
    datetime_modified: datetime

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> SubjectRecord:
        return cls(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            datetime_modified=datetime.fromisoformat(row["datetime_modified"]),
        )

    def to_subject(self) -> Subject:
        return Subject(self.name)


@dataclass(frozen=True)
class NoteRecord:
    """A row of the notes table."""

    id: int
    title: str
    slug: str
    subject_id: int
    datetime_modified: datetime

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> NoteRecord:
        return cls(
            id=row["id"],
            title=row["title"],
            slug=row["slug"],
            subject_id=row["subject_id"],
            datetime_modified=datetime.fromisoformat(row["datetime_modified"]),
        )

    def to_note(self) -> Note:
        return Note(self.title)


class ShelfIndex:
    """
    SQLite-backed index of a shelf.

    Writes outside of `transaction()` are committed immediately. Inside it,
    they are committed together when the block exits, or rolled back if it
    raises.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._depth = 0
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(str(self.path))
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys = ON")
            self.conn.executescript(SCHEMA)
            self.conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise IndexFailure(f"Cannot open index at {self.path}: {e}") from e

    def close(self) -> None:
        self.conn.close()

    @contextmanager
    def transaction(self) -> Iterator[ShelfIndex]:
        """Group writes into a single transaction."""
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            with self.conn:
                yield self
        except sqlite3.Error as e:
            raise IndexFailure(f"Index transaction failed: {e}") from e
        finally:
            self._depth = 0

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        try:
            return self.conn.execute(sql, params)
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateEntryError(str(e)) from e
            raise IndexFailure(f"Index constraint failed: {e}") from e
        except sqlite3.Error as e:
            raise IndexFailure(str(e)) from e

    def _write(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        cursor = self._execute(sql, params)
        if not self._depth:
            try:
                self.conn.commit()
            except sqlite3.Error as e:
                raise IndexFailure(str(e)) from e
        return cursor

    @staticmethod
    def _order_by(sort: str | None, reverse: bool) -> str:
        if sort is None:
            return ""
        if sort not in SORT_COLUMNS:
            raise IndexFailure(f"Cannot sort by '{sort}'; expected one of {sorted(SORT_COLUMNS)}")
        return f" ORDER BY {sort} {'DESC' if reverse else 'ASC'}"

    # =========================================================================
    # Subjects
    # =========================================================================

    def insert_subject(self, subject: Subject) -> int:
        cursor = self._write(
            "INSERT INTO subjects (name, slug, datetime_modified) VALUES (?, ?, ?)",
            (subject.full_name, subject.slug, _now()),
        )
        logger.debug("Indexed subject %s as #%s", subject.full_name, cursor.lastrowid)
        return cursor.lastrowid

    def get_subject(self, subject: Subject) -> SubjectRecord | None:
        row = self._execute(
            "SELECT * FROM subjects WHERE slug = ?", (subject.slug,)
        ).fetchone()
        return SubjectRecord.from_row(row) if row else None

    def get_subject_by_id(self, subject_id: int) -> SubjectRecord | None:
        row = self._execute(
            "SELECT * FROM subjects WHERE id = ?", (subject_id,)
        ).fetchone()
        return SubjectRecord.from_row(row) if row else None

    def all_subjects(self, sort: str | None = "name", reverse: bool = False) -> list[SubjectRecord]:
        rows = self._execute("SELECT * FROM subjects" + self._order_by(sort, reverse)).fetchall()
        return [SubjectRecord.from_row(row) for row in rows]

    def delete_subject(self, subject: Subject) -> bool:
        """Delete a subject row and the rows of its descendants.

        Notes go with them by cascade. Returns False if nothing was deleted.
        """
        cursor = self._write(
            "DELETE FROM subjects WHERE slug = ? OR slug LIKE ?",
            (subject.slug, f"{subject.slug}/%"),
        )
        return cursor.rowcount > 0

    def touch_subject(self, subject: Subject) -> bool:
        cursor = self._write(
            "UPDATE subjects SET datetime_modified = ? WHERE slug = ?",
            (_now(), subject.slug),
        )
        return cursor.rowcount > 0

    # =========================================================================
    # Notes
    # =========================================================================

    def _require_subject_id(self, subject: Subject) -> int:
        record = self.get_subject(subject)
        if record is None:
            raise NotFoundError(f"Subject '{subject.full_name}' is not in the index.")
        return record.id

    def insert_note(self, subject: Subject, note: Note) -> int:
        subject_id = self._require_subject_id(subject)
        cursor = self._write(
            "INSERT INTO notes (title, slug, subject_id, datetime_modified) VALUES (?, ?, ?, ?)",
            (note.title, note.slug, subject_id, _now()),
        )
        logger.debug("Indexed note %s/%s as #%s", subject.full_name, note.title, cursor.lastrowid)
        return cursor.lastrowid

    def get_note(self, subject: Subject, note: Note) -> NoteRecord | None:
        row = self._execute(
            """
            SELECT notes.* FROM notes
            JOIN subjects ON subjects.id = notes.subject_id
            WHERE subjects.slug = ? AND notes.slug = ?
            """,
            (subject.slug, note.slug),
        ).fetchone()
        return NoteRecord.from_row(row) if row else None

    def get_note_by_id(self, note_id: int) -> NoteRecord | None:
        row = self._execute("SELECT * FROM notes WHERE id = ?", (note_id,)).fetchone()
        return NoteRecord.from_row(row) if row else None

    def notes_of(
        self,
        subject: Subject,
        sort: str | None = "title",
        reverse: bool = False,
    ) -> list[NoteRecord]:
        record = self.get_subject(subject)
        if record is None:
            return []
        rows = self._execute(
            "SELECT * FROM notes WHERE subject_id = ?" + self._order_by(sort, reverse),
            (record.id,),
        ).fetchall()
        return [NoteRecord.from_row(row) for row in rows]

    def count_notes(self, subject_id: int) -> int:
        row = self._execute(
            "SELECT COUNT(*) AS total FROM notes WHERE subject_id = ?", (subject_id,)
        ).fetchone()
        return row["total"]

    def delete_note(self, subject: Subject, note: Note) -> bool:
        record = self.get_note(subject, note)
        if record is None:
            return False
        cursor = self._write("DELETE FROM notes WHERE id = ?", (record.id,))
        return cursor.rowcount > 0
