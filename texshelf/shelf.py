"""
The shelf: a directory tree of subjects and notes with an optional index.

The directory tree is the source of truth. Each subject is a directory
(nested per component of its name), each note a ``.tex`` file in it. The
index under ``<root>/.texshelf/`` is advisory: index failures are logged
and never stop a filesystem step.

Batch operations take a list of entities and return the subset that
succeeded. Failures of individual items are logged, not raised; callers
diff the result against their input to report what went wrong.
"""

from __future__ import annotations

import logging
import shutil
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Iterator

from .config import SubjectConfig
from .errors import (
    DuplicateEntryError,
    IndexFailure,
    InvalidInputError,
    IoFailure,
    NoIndexError,
    NotFoundError,
    TexshelfError,
)
from .index import INDEX_FILE, ShelfIndex
from .models import MASTER_NOTE_FILE, MasterNote, Note, Subject
from .slug import slugify

logger = logging.getLogger(__name__)

STATE_DIR = ".texshelf"
SUBJECT_METADATA_FILE = "info.yml"

NoteContent = Callable[[Subject, Note], str]


class ExportMode(str, Enum):
    """What to do when a note file already exists."""

    STRICT = "strict"  # existing file is a failure
    KEEP = "keep"  # existing file is left untouched and counts as created
    OVERWRITE = "overwrite"  # existing file is truncated and rewritten


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


class Shelf:
    """A root directory of subjects, optionally mirrored by a `ShelfIndex`."""

    def __init__(self, root: Path, index: ShelfIndex | None = None):
        self.root = Path(root)
        self.index = index

    @classmethod
    def open(cls, path: Path | str, use_index: bool | None = None) -> Shelf:
        """Open the shelf at `path`, creating the root directory if needed.

        Args:
            path: Root directory of the shelf.
            use_index: True creates/opens the index, False never opens it,
                None opens it only if one already exists.
        """
        root = Path(path)
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IoFailure(f"Cannot create shelf at {root}: {e}") from e

        shelf = cls(root)
        if use_index or (use_index is None and shelf.index_path.exists()):
            shelf.enable_index()
        return shelf

    def close(self) -> None:
        if self.index is not None:
            self.index.close()
            self.index = None

    def __enter__(self) -> Shelf:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # =========================================================================
    # Layout
    # =========================================================================

    @property
    def state_dir(self) -> Path:
        return self.root / STATE_DIR

    @property
    def index_path(self) -> Path:
        return self.state_dir / INDEX_FILE

    @property
    def is_valid(self) -> bool:
        return self.root.is_dir()

    @property
    def has_index(self) -> bool:
        return self.index is not None

    def enable_index(self) -> ShelfIndex:
        if self.index is None:
            self.index = ShelfIndex(self.index_path)
        return self.index

    def _require_index(self) -> ShelfIndex:
        if self.index is None:
            raise NoIndexError(self.root)
        return self.index

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Group the index writes of a batch; a failed commit is only logged."""
        if self.index is None:
            yield
            return
        try:
            with self.index.transaction():
                yield
        except IndexFailure as e:
            logger.warning("Index changes of this batch were not saved: %s", e)

    def subject_path(self, subject: Subject) -> Path:
        return self.root / subject.path

    def subject_metadata_path(self, subject: Subject) -> Path:
        return self.subject_path(subject) / SUBJECT_METADATA_FILE

    def note_path(self, subject: Subject, note: Note) -> Path:
        return self.root / note.path(subject)

    def master_note_path(self, subject: Subject) -> Path:
        return self.subject_path(subject) / MASTER_NOTE_FILE

    def has_subject(self, subject: Subject) -> bool:
        return self.subject_path(subject).is_dir()

    def has_note(self, subject: Subject, note: Note) -> bool:
        return self.note_path(subject, note).is_file()

    def has_master_note(self, subject: Subject) -> bool:
        return self.master_note_path(subject).is_file()

    # =========================================================================
    # Loading
    # =========================================================================

    def load_subject(self, name: str) -> Subject:
        """Return the subject named `name` if the shelf knows about it.

        Raises:
            InvalidInputError: `name` is not a valid subject name.
            NotFoundError: neither a directory nor an index row exists.
        """
        subject = Subject(name)
        if self.has_subject(subject):
            return subject
        if self.index is not None and self.index.get_subject(subject) is not None:
            return subject
        raise NotFoundError(f"Subject '{subject.full_name}' does not exist in {self.root}")

    def load_subjects(self, names: Iterable[str]) -> list[Subject]:
        """Load every known subject of `names`, dropping the rest."""
        subjects: list[Subject] = []
        for name in names:
            try:
                subjects.append(self.load_subject(name))
            except (InvalidInputError, NotFoundError) as e:
                logger.warning("%s", e)
        return subjects

    def load_subjects_loose(self, names: Iterable[str]) -> list[Subject]:
        """Like `load_subjects`, but unknown names become new subject values."""
        subjects: list[Subject] = []
        for name in names:
            try:
                subjects.append(Subject(name))
            except InvalidInputError as e:
                logger.warning("%s", e)
        return subjects

    def get_subject_config(
        self,
        subject: Subject,
        defaults: SubjectConfig | None = None,
    ) -> SubjectConfig:
        """Effective configuration of `subject`.

        Metadata files are applied outermost first, so a subject inherits the
        overrides of its ancestors.
        """
        config = defaults or SubjectConfig()
        for level in subject.split_subjects():
            config = config.merged(SubjectConfig.load(self.subject_metadata_path(level)))
        return config

    # =========================================================================
    # Subjects
    # =========================================================================

    def _ensure_indexed(self, subject: Subject) -> bool:
        """Index `subject` unless it already is; True if a row was inserted."""
        if self.index is None or self.index.get_subject(subject) is not None:
            return False
        try:
            self.index.insert_subject(subject)
        except TexshelfError as e:
            logger.warning("Could not index subject '%s': %s", subject.full_name, e)
            return False
        return True

    def _materialize(self, subject: Subject) -> None:
        for level in subject.split_subjects():
            self.subject_path(level).mkdir(exist_ok=True)
            metadata = self.subject_metadata_path(level)
            if not metadata.exists():
                SubjectConfig(name=level.name).save(metadata)

    def create_subjects(
        self,
        subjects: Iterable[Subject],
        add_to_index: bool = True,
    ) -> list[Subject]:
        """Create subject directories (and their ancestors).

        With `add_to_index`, a row is inserted first; a subject that was
        already indexed before this batch is skipped. Other index problems are logged and the
        directory is created anyway. An existing directory counts as created.
        """
        created: list[Subject] = []
        # ancestors indexed on behalf of earlier subjects of this batch
        indexed_here: set[Subject] = set()
        with self._transaction():
            for subject in subjects:
                if add_to_index and self.index is not None:
                    for ancestor in subject.split_subjects()[:-1]:
                        if self._ensure_indexed(ancestor):
                            indexed_here.add(ancestor)
                    try:
                        self.index.insert_subject(subject)
                    except DuplicateEntryError:
                        if subject in indexed_here:
                            indexed_here.discard(subject)
                            logger.debug("Subject '%s' was indexed as an ancestor", subject.full_name)
                        else:
                            logger.warning("Subject '%s' is already indexed", subject.full_name)
                            continue
                    except TexshelfError as e:
                        logger.warning("Could not index subject '%s': %s", subject.full_name, e)

                try:
                    self._materialize(subject)
                except (OSError, TexshelfError) as e:
                    logger.warning("Could not create subject '%s': %s", subject.full_name, e)
                    continue

                created.append(subject)
        return created

    def delete_subjects(self, subjects: Iterable[Subject]) -> list[Subject]:
        """Delete subject directories recursively, with their index rows.

        A subject counts as deleted only if its directory was removed.
        """
        deleted: list[Subject] = []
        with self._transaction():
            for subject in subjects:
                if self.index is not None:
                    try:
                        self.index.delete_subject(subject)
                    except TexshelfError as e:
                        logger.warning("Could not unindex subject '%s': %s", subject.full_name, e)

                try:
                    shutil.rmtree(self.subject_path(subject))
                except OSError as e:
                    logger.warning("Could not delete subject '%s': %s", subject.full_name, e)
                    continue

                deleted.append(subject)
        return deleted

    def get_subjects(self, subjects: Iterable[Subject], sync: bool = False) -> list[Subject]:
        """Filter `subjects` to those on disk (and in the index, with `sync`)."""
        check = self.is_sync if sync else self.has_subject
        return [subject for subject in subjects if check(subject)]

    def is_sync(self, subject: Subject) -> bool:
        if self.index is None:
            return False
        return self.has_subject(subject) and self.index.get_subject(subject) is not None

    def get_subject_by_id(self, subject_id: int) -> Subject | None:
        record = self._require_index().get_subject_by_id(subject_id)
        return record.to_subject() if record else None

    def get_all_subjects_from_index(
        self,
        sort: str | None = "name",
        reverse: bool = False,
    ) -> list[Subject]:
        return [record.to_subject() for record in self._require_index().all_subjects(sort, reverse)]

    def _subject_from_dir(self, relative: Path) -> Subject:
        """Rebuild a subject from its directory, preferring recorded names."""
        names: list[str] = []
        current = self.root
        for part in relative.parts:
            current = current / part
            name = part
            metadata = current / SUBJECT_METADATA_FILE
            if metadata.exists():
                try:
                    recorded = SubjectConfig.load(metadata).name
                except TexshelfError as e:
                    logger.debug("Ignoring metadata of %s: %s", current, e)
                    recorded = None
                # only trust names that still map onto this directory
                if recorded and "/" not in recorded and slugify(recorded) == part:
                    name = recorded
            names.append(name)
        return Subject("/".join(names))

    def get_subjects_in_fs(self, subject: Subject | None = None) -> list[Subject]:
        """Discover subjects from the directory tree, hidden entries excluded.

        With `subject`, only its descendants are returned.
        """
        start = self.subject_path(subject) if subject else self.root
        if not start.is_dir():
            return []

        found: list[Subject] = []
        pending = [start]
        while pending:
            directory = pending.pop()
            for child in sorted(directory.iterdir()):
                if not child.is_dir() or _is_hidden(child):
                    continue
                try:
                    found.append(self._subject_from_dir(child.relative_to(self.root)))
                except InvalidInputError as e:
                    logger.debug("Skipping directory %s: %s", child, e)
                    continue
                pending.append(child)

        return sorted(found, key=lambda s: s.slug)

    def _subject_modified(self, subject: Subject) -> float:
        if self.index is not None:
            record = self.index.get_subject(subject)
            if record is not None:
                return record.datetime_modified.timestamp()
        try:
            return self.subject_path(subject).stat().st_mtime
        except OSError:
            return 0.0

    def sort_subjects_by_date(self, subjects: Iterable[Subject], reverse: bool = False) -> list[Subject]:
        return sorted(subjects, key=self._subject_modified, reverse=reverse)

    # =========================================================================
    # Notes
    # =========================================================================

    def create_notes(
        self,
        subject: Subject,
        notes: Iterable[Note],
        content: NoteContent | None = None,
        mode: ExportMode = ExportMode.STRICT,
        add_to_index: bool = True,
    ) -> list[Note]:
        """Write note files under an existing subject.

        Args:
            subject: Subject the notes belong to; its directory must exist.
            notes: Notes to create.
            content: Renders the text of a note; empty files without it.
            mode: Behaviour for note files that already exist.
            add_to_index: Insert index rows for the notes.

        Returns:
            The notes whose files exist with the requested content afterwards.
        """
        created: list[Note] = []
        if not self.has_subject(subject):
            logger.warning("Subject '%s' does not exist in %s", subject.full_name, self.root)
            return created

        with self._transaction():
            for note in notes:
                path = self.note_path(subject, note)
                exists = path.exists()

                if exists and mode is ExportMode.STRICT:
                    logger.warning("Note '%s' already exists at %s", note.title, path)
                    continue

                if add_to_index and self.index is not None:
                    try:
                        self.index.insert_note(subject, note)
                    except DuplicateEntryError:
                        if mode is ExportMode.STRICT:
                            logger.warning("Note '%s' is already indexed", note.title)
                            continue
                        logger.debug("Note '%s' is already indexed", note.title)
                    except TexshelfError as e:
                        logger.warning("Could not index note '%s': %s", note.title, e)

                if exists and mode is ExportMode.KEEP:
                    created.append(note)
                    continue

                try:
                    path.write_text(content(subject, note) if content else "", encoding="utf-8")
                except (OSError, TexshelfError) as e:
                    logger.warning("Could not write note '%s': %s", note.title, e)
                    continue

                created.append(note)
        return created

    def delete_notes(self, subject: Subject, notes: Iterable[Note]) -> list[Note]:
        """Delete note files and their index rows.

        A note counts as deleted only if its file was removed.
        """
        deleted: list[Note] = []
        with self._transaction():
            for note in notes:
                if self.index is not None:
                    try:
                        self.index.delete_note(subject, note)
                    except TexshelfError as e:
                        logger.warning("Could not unindex note '%s': %s", note.title, e)

                try:
                    self.note_path(subject, note).unlink()
                except OSError as e:
                    logger.warning("Could not delete note '%s': %s", note.title, e)
                    continue

                deleted.append(note)
        return deleted

    def get_notes(self, subject: Subject, notes: Iterable[Note], sync: bool = False) -> list[Note]:
        if sync:
            return [note for note in notes if self.is_note_sync(subject, note)]
        return [note for note in notes if self.has_note(subject, note)]

    def is_note_sync(self, subject: Subject, note: Note) -> bool:
        if self.index is None:
            return False
        return self.has_note(subject, note) and self.index.get_note(subject, note) is not None

    def get_note_by_id(self, note_id: int) -> tuple[Subject, Note] | None:
        """Return the note with `note_id` together with the subject it is under."""
        index = self._require_index()
        record = index.get_note_by_id(note_id)
        if record is None:
            return None
        subject = index.get_subject_by_id(record.subject_id)
        if subject is None:
            return None
        return subject.to_subject(), record.to_note()

    def get_all_notes_by_subject_from_index(
        self,
        subject: Subject,
        sort: str | None = "title",
        reverse: bool = False,
    ) -> list[Note]:
        return [record.to_note() for record in self._require_index().notes_of(subject, sort, reverse)]

    def get_notes_in_fs(self, subject: Subject, patterns: Iterable[str] | None = None) -> list[Note]:
        """Discover the notes of a subject from its files.

        Each pattern is matched against the subject directory itself (not
        recursively). The master note and hidden files are excluded. The file
        stem becomes the note title.
        """
        directory = self.subject_path(subject)
        if not directory.is_dir():
            return []
        if patterns is None:
            patterns = self.get_subject_config(subject).effective_files

        files: set[Path] = set()
        for pattern in patterns:
            for path in directory.glob(pattern):
                if path.is_file() and path.name != MASTER_NOTE_FILE and not _is_hidden(path):
                    files.add(path)

        notes: list[Note] = []
        for path in sorted(files):
            try:
                notes.append(Note.from_path(path))
            except InvalidInputError as e:
                logger.debug("Skipping %s: %s", path, e)
        return notes

    def _note_modified(self, subject: Subject, note: Note) -> float:
        try:
            return self.note_path(subject, note).stat().st_mtime
        except OSError:
            return 0.0

    def sort_notes_by_date(
        self,
        subject: Subject,
        notes: Iterable[Note],
        reverse: bool = False,
    ) -> list[Note]:
        return sorted(notes, key=lambda note: self._note_modified(subject, note), reverse=reverse)

    # =========================================================================
    # Master notes
    # =========================================================================

    def write_master_note(self, master: MasterNote, content: str) -> Path:
        """Write the master note of a subject, replacing any previous one."""
        if not self.has_subject(master.subject):
            raise NotFoundError(f"Subject '{master.subject.full_name}' does not exist in {self.root}")
        path = self.master_note_path(master.subject)
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise IoFailure(f"Cannot write {path}: {e}") from e
        return path

