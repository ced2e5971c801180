"""Add subjects and notes to a shelf."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..audit_log import CreationSummary, log_operation
from ..errors import InvalidInputError
from ..models import Note, Subject
from ..profile import Profile
from ..shelf import ExportMode, Shelf
from ..templates import DEFAULT_NOTE_TEMPLATE


def _report_missing(err: Console, kind: str, requested: list[str], done: list[str]) -> None:
    for name in requested:
        if name not in done:
            err.print(f"{kind} '{name}' was not created", style="yellow", markup=False)


def run_add_subjects(shelf_path: Path, names: list[str], *, add_to_index: bool = True) -> int:
    console = Console()
    err = Console(stderr=True)

    with Shelf.open(shelf_path) as shelf:
        subjects = shelf.load_subjects_loose(names)
        created = shelf.create_subjects(subjects, add_to_index=add_to_index)

        _report_missing(
            err,
            "Subject",
            [s.full_name for s in subjects],
            [s.full_name for s in created],
        )
        for subject in created:
            console.print(f"[green]+[/green] {escape(subject.full_name)} [dim]({escape(subject.path.as_posix())})[/dim]")

        if created:
            log_operation(
                shelf.root,
                "add-subjects",
                created=CreationSummary(subjects=len(created)),
                metadata={"subjects": [s.full_name for s in created]},
            )

    return 0 if len(created) == len(names) else 1


def _parse_notes(err: Console, titles: list[str]) -> list[Note]:
    notes: list[Note] = []
    for title in titles:
        try:
            notes.append(Note(title))
        except InvalidInputError as e:
            err.print(str(e), style="yellow", markup=False)
    return notes


def run_add_notes(
    shelf_path: Path,
    profile_path: Path,
    subject_name: str,
    titles: list[str],
    *,
    template: str = DEFAULT_NOTE_TEMPLATE,
    mode: ExportMode = ExportMode.STRICT,
    add_to_index: bool = True,
) -> int:
    """Create notes under an existing subject, rendered from a template."""
    console = Console()
    err = Console(stderr=True)

    profile = Profile.load_or_default(profile_path)
    # fail before touching the shelf if the template is unknown
    profile.templates.get(template)

    with Shelf.open(shelf_path) as shelf:
        subject = shelf.load_subject(subject_name)
        config = shelf.get_subject_config(subject, profile.subject_defaults)

        def content(subject: Subject, note: Note) -> str:
            return profile.render_note(subject, note, template, config)

        notes = _parse_notes(err, titles)
        created = shelf.create_notes(
            subject,
            notes,
            content,
            mode=mode,
            add_to_index=add_to_index,
        )

        _report_missing(err, "Note", [n.title for n in notes], [n.title for n in created])
        for note in created:
            console.print(f"[green]+[/green] {escape(note.title)} [dim]({escape(note.path(subject).as_posix())})[/dim]")

        if created:
            log_operation(
                shelf.root,
                "add-notes",
                created=CreationSummary(notes=len(created), files=len(created)),
                metadata={
                    "subject": subject.full_name,
                    "notes": [n.title for n in created],
                    "template": template,
                    "mode": mode.value,
                },
            )

    return 0 if len(created) == len(titles) else 1
