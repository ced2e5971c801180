"""Write (and compile) the master note of subjects."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..audit_log import CreationSummary, log_operation
from ..compile import DEFAULT_THREAD_COUNT, CompilationEnvironment, compile_all
from ..errors import TexshelfError
from ..models import MasterNote
from ..profile import Profile
from ..shelf import Shelf
from ..templates import DEFAULT_MASTER_TEMPLATE
from .compile_cmd import report_results


def run_master(
    shelf_path: Path,
    profile_path: Path,
    names: list[str],
    *,
    skip_compilation: bool = False,
    files: list[str] | None = None,
    template: str = DEFAULT_MASTER_TEMPLATE,
    command: str | None = None,
    threads: int = DEFAULT_THREAD_COUNT,
    timeout: float | None = None,
) -> int:
    """Regenerate the master note of each subject from its current notes.

    The master note is always rewritten; it includes every note matched by
    the subject's file patterns, sorted by title.
    """
    console = Console()
    err = Console(stderr=True)

    profile = Profile.load_or_default(profile_path)
    profile.templates.get(template)

    with Shelf.open(shelf_path) as shelf:
        subjects = shelf.load_subjects(names)

        written: list[MasterNote] = []
        environments = []
        for subject in subjects:
            try:
                config = shelf.get_subject_config(subject, profile.subject_defaults)
                notes = shelf.get_notes_in_fs(subject, files or config.effective_files)
                master = MasterNote(subject, sorted(notes, key=lambda n: n.title.lower()))
                path = shelf.write_master_note(master, profile.render_master_note(master, template, config))
            except TexshelfError as e:
                err.print(f"Master note of '{subject.full_name}' was not written: {e}", style="yellow", markup=False)
                continue

            written.append(master)
            console.print(f"[green]+[/green] {escape(path.relative_to(shelf.root).as_posix())} ({len(master.notes)} notes)")

            if not skip_compilation:
                environments.append(
                    CompilationEnvironment(
                        shelf.subject_path(subject),
                        [master],
                        command=command or config.effective_command,
                        thread_count=threads,
                        templates=profile.templates,
                        timeout=timeout,
                    )
                )

        if written:
            log_operation(
                shelf.root,
                "master",
                created=CreationSummary(files=len(written)),
                metadata={
                    "subjects": [m.subject.full_name for m in written],
                    "template": template,
                    "compiled": not skip_compilation,
                },
            )

        exit_code = 0
        if environments:
            exit_code = report_results(console, err, compile_all(environments))

    if len(written) != len(names):
        err.print("Some master notes were not written", style="yellow")
        return 1
    return exit_code
