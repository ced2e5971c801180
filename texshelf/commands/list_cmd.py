"""List subjects of a shelf or the notes of some subjects."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..models import Subject
from ..shelf import Shelf


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def _list_subjects(console: Console, shelf: Shelf, sort: str, reverse: bool) -> None:
    subjects = shelf.get_subjects_in_fs()
    if sort == "date":
        subjects = shelf.sort_subjects_by_date(subjects, reverse=reverse)
    else:
        subjects = sorted(subjects, key=lambda s: s.full_name.lower(), reverse=reverse)

    if not subjects:
        console.print("No subjects yet.", style="yellow")
        return

    table = Table(title=f"Subjects in {escape(str(shelf.root))}")
    table.add_column("subject", style="cyan")
    table.add_column("path", style="dim")
    table.add_column("notes", justify="right")
    if shelf.has_index:
        table.add_column("indexed")

    for subject in subjects:
        row = [escape(subject.full_name), escape(subject.path.as_posix()), str(len(shelf.get_notes_in_fs(subject)))]
        if shelf.has_index:
            row.append(_yes_no(shelf.is_sync(subject)))
        table.add_row(*row)

    console.print(table)


def _list_notes(console: Console, shelf: Shelf, subject: Subject, sort: str, reverse: bool) -> None:
    notes = shelf.get_notes_in_fs(subject)
    if sort == "date":
        notes = shelf.sort_notes_by_date(subject, notes, reverse=reverse)
    else:
        notes = sorted(notes, key=lambda n: n.title.lower(), reverse=reverse)

    table = Table(title=escape(subject.full_name))
    table.add_column("note", style="cyan")
    table.add_column("file", style="dim")
    if shelf.has_index:
        table.add_column("indexed")

    for note in notes:
        row = [escape(note.title), note.file_name]
        if shelf.has_index:
            row.append(_yes_no(shelf.is_note_sync(subject, note)))
        table.add_row(*row)

    if shelf.has_master_note(subject):
        table.caption = "has a master note"

    console.print(table)


def run_list(
    shelf_path: Path,
    subject_names: list[str],
    *,
    sort: str = "name",
    reverse: bool = False,
) -> int:
    console = Console()

    with Shelf.open(shelf_path) as shelf:
        if not subject_names:
            _list_subjects(console, shelf, sort, reverse)
            return 0

        subjects = shelf.load_subjects(subject_names)
        for subject in subjects:
            _list_notes(console, shelf, subject, sort, reverse)

    return 0 if len(subjects) == len(subject_names) else 1
