"""Remove subjects and notes from a shelf."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..audit_log import ErasureCost, log_operation
from ..errors import InvalidInputError
from ..models import Note
from ..shelf import Shelf


def _count_files(directory: Path) -> int:
    if not directory.is_dir():
        return 0
    return sum(1 for path in directory.rglob("*") if path.is_file())


def run_remove_subjects(shelf_path: Path, names: list[str]) -> int:
    """Delete subjects with everything under them."""
    console = Console()
    err = Console(stderr=True)

    with Shelf.open(shelf_path) as shelf:
        subjects = shelf.load_subjects(names)
        files = {s: _count_files(shelf.subject_path(s)) for s in subjects}
        notes = {s: len(shelf.get_notes_in_fs(s, ["*.tex"])) for s in subjects}

        deleted = shelf.delete_subjects(subjects)

        for subject in subjects:
            if subject in deleted:
                console.print(f"[red]-[/red] {escape(subject.full_name)}")
            else:
                err.print(f"Subject '{subject.full_name}' was not removed", style="yellow", markup=False)

        if deleted:
            log_operation(
                shelf.root,
                "remove-subjects",
                erased=ErasureCost(
                    subjects=len(deleted),
                    notes=sum(notes[s] for s in deleted),
                    files=sum(files[s] for s in deleted),
                ),
                metadata={"subjects": [s.full_name for s in deleted]},
            )

    return 0 if len(deleted) == len(names) else 1


def run_remove_notes(shelf_path: Path, subject_name: str, titles: list[str]) -> int:
    console = Console()
    err = Console(stderr=True)

    with Shelf.open(shelf_path) as shelf:
        subject = shelf.load_subject(subject_name)

        notes: list[Note] = []
        for title in titles:
            try:
                notes.append(Note(title))
            except InvalidInputError as e:
                err.print(str(e), style="yellow", markup=False)

        deleted = shelf.delete_notes(subject, notes)

        for note in notes:
            if note in deleted:
                console.print(f"[red]-[/red] {escape(note.title)}")
            else:
                err.print(f"Note '{note.title}' was not removed", style="yellow", markup=False)

        if deleted:
            log_operation(
                shelf.root,
                "remove-notes",
                erased=ErasureCost(notes=len(deleted), files=len(deleted)),
                metadata={"subject": subject.full_name, "notes": [n.title for n in deleted]},
            )

    return 0 if len(deleted) == len(titles) else 1
