"""Compile the notes of subjects with the configured command."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..compile import DEFAULT_THREAD_COUNT, CompilationEnvironment, CompileResult, compile_all
from ..errors import InvalidInputError, ProcessFailure
from ..models import Note, unit_name
from ..profile import Profile
from ..shelf import Shelf


def report_results(console: Console, err: Console, results: list[CompileResult]) -> int:
    """Print compile results and return the exit code they amount to."""
    attempted = sum(len(r.compiled) + len(r.failed) for r in results)
    compiled = sum(len(r.compiled) for r in results)

    for result in results:
        for unit in result.compiled:
            console.print(f"[green]✓[/green] {escape(unit_name(unit))}")
        for unit in result.failed:
            err.print(f"✗ {escape(unit_name(unit))} [dim]({escape(str(result.path))})[/dim]", style="red")

    console.print(f"Compiled {compiled} of {attempted}")

    if attempted and not compiled:
        raise ProcessFailure("No document compiled successfully")
    return 0 if compiled == attempted else 1


def run_compile_subjects(
    shelf_path: Path,
    profile_path: Path,
    names: list[str],
    *,
    threads: int = DEFAULT_THREAD_COUNT,
    files: list[str] | None = None,
    command: str | None = None,
    timeout: float | None = None,
) -> int:
    """Compile every note found in each subject directory."""
    console = Console()
    err = Console(stderr=True)
    profile = Profile.load_or_default(profile_path)

    with Shelf.open(shelf_path) as shelf:
        subjects = shelf.load_subjects(names)

        environments = []
        for subject in subjects:
            config = shelf.get_subject_config(subject, profile.subject_defaults)
            notes = shelf.get_notes_in_fs(subject, files or config.effective_files)
            if not notes:
                err.print(f"No notes to compile in '{subject.full_name}'", style="yellow", markup=False)
                continue
            environments.append(
                CompilationEnvironment(
                    shelf.subject_path(subject),
                    notes,
                    command=command or config.effective_command,
                    thread_count=threads,
                    templates=profile.templates,
                    timeout=timeout,
                )
            )

        exit_code = report_results(console, err, compile_all(environments))

    return exit_code if len(subjects) == len(names) else 1


def run_compile_notes(
    shelf_path: Path,
    profile_path: Path,
    subject_name: str,
    titles: list[str],
    *,
    threads: int = DEFAULT_THREAD_COUNT,
    command: str | None = None,
    timeout: float | None = None,
) -> int:
    """Compile specific notes of one subject."""
    console = Console()
    err = Console(stderr=True)
    profile = Profile.load_or_default(profile_path)

    with Shelf.open(shelf_path) as shelf:
        subject = shelf.load_subject(subject_name)
        config = shelf.get_subject_config(subject, profile.subject_defaults)

        requested: list[Note] = []
        for title in titles:
            try:
                requested.append(Note(title))
            except InvalidInputError as e:
                err.print(str(e), style="yellow", markup=False)

        notes = shelf.get_notes(subject, requested)
        for note in requested:
            if note not in notes:
                err.print(f"Note '{note.title}' does not exist in '{subject.full_name}'", style="yellow", markup=False)

        environment = CompilationEnvironment(
            shelf.subject_path(subject),
            notes,
            command=command or config.effective_command,
            thread_count=threads,
            templates=profile.templates,
            timeout=timeout,
        )
        exit_code = report_results(console, err, [environment.compile()])

    return exit_code if len(notes) == len(titles) else 1
