"""Data models for shelf entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePath

from .errors import InvalidInputError
from .paths import PARENT_DIR, normalize
from .slug import slugify

NOTE_EXTENSION = ".tex"
MASTER_NOTE_FILE = "_master.tex"


def _clean_subject_name(name: str) -> str:
    """Normalize a user-given subject name into its canonical full name."""
    if PurePath(name).is_absolute():
        raise InvalidInputError(f"Subject name '{name}' must be relative to the shelf.")

    normalized = normalize(name)
    if normalized is None:
        raise InvalidInputError(f"Subject name '{name}' is empty.")

    components = [part.strip() for part in normalized.parts]
    components = [part for part in components if part]

    if not components:
        raise InvalidInputError(f"Subject name '{name}' is empty.")
    if PARENT_DIR in components:
        raise InvalidInputError(f"Subject name '{name}' points outside of the shelf.")

    for component in components:
        if not slugify(component):
            raise InvalidInputError(
                f"Subject name '{name}' has a component without any usable character: '{component}'."
            )

    return "/".join(components)


@dataclass(frozen=True)
class Subject:
    """A node in the subject hierarchy, stored as a directory of notes.

    The full name is normalized on construction: ``Bachelor I/Semester I/../.``
    becomes ``Bachelor I``. The on-disk path is the slug of every component.
    """

    full_name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "full_name", _clean_subject_name(self.full_name))

    def __str__(self) -> str:
        return self.full_name

    @property
    def components(self) -> tuple[str, ...]:
        return tuple(self.full_name.split("/"))

    @property
    def name(self) -> str:
        """Short name: the last component of the full name."""
        return self.components[-1]

    @property
    def path(self) -> Path:
        """Path of the subject directory, relative to the shelf root."""
        return Path(*(slugify(part) for part in self.components))

    @property
    def slug(self) -> str:
        """Slash-joined slugs of all components; unique per shelf."""
        return "/".join(slugify(part) for part in self.components)

    @property
    def depth(self) -> int:
        return len(self.components)

    @property
    def parent(self) -> Subject | None:
        if self.depth == 1:
            return None
        return Subject("/".join(self.components[:-1]))

    def split_subjects(self) -> list[Subject]:
        """Return every ancestor (outermost first) followed by this subject."""
        return [Subject("/".join(self.components[: i + 1])) for i in range(self.depth)]

    def is_ancestor_of(self, other: Subject) -> bool:
        return other.depth > self.depth and other.path.parts[: self.depth] == self.path.parts

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "full_name": self.full_name,
            "slug": self.slug,
            "path": self.path.as_posix(),
        }


@dataclass(frozen=True)
class Note:
    """A single LaTeX document belonging to a subject.

    A note only knows its title; its location comes from the subject it is
    placed under.
    """

    title: str

    def __post_init__(self) -> None:
        if not slugify(self.title):
            raise InvalidInputError(f"Note title '{self.title}' has no usable character.")

    def __str__(self) -> str:
        return self.title

    @property
    def slug(self) -> str:
        return slugify(self.title)

    @property
    def file_name(self) -> str:
        return f"{self.slug}{NOTE_EXTENSION}"

    def path(self, subject: Subject) -> Path:
        return subject.path / self.file_name

    @classmethod
    def from_path(cls, path: Path) -> Note:
        """Build a note from a file on disk; the stem becomes the title."""
        return cls(path.stem)

    def to_dict(self) -> dict:
        return {"title": self.title, "slug": self.slug, "file": self.file_name}


@dataclass
class MasterNote:
    """The aggregate document of a subject, including a list of its notes."""

    subject: Subject
    notes: list[Note] = field(default_factory=list)

    @property
    def file_name(self) -> str:
        return MASTER_NOTE_FILE

    @property
    def path(self) -> Path:
        return self.subject.path / MASTER_NOTE_FILE

    def push(self, *notes: Note) -> None:
        self.notes.extend(notes)

    def to_dict(self) -> dict:
        return {
            "subject": self.subject.to_dict(),
            "notes": [note.to_dict() for note in self.notes],
            "file": self.file_name,
        }


# The unit of work of a compilation environment.
Compilable = Note | MasterNote


def unit_name(unit: Compilable) -> str:
    """Human-readable name of a compilable unit, used in reports and logs."""
    if isinstance(unit, MasterNote):
        return f"{unit.subject.full_name} (master)"
    return unit.title
