"""CLI entrypoint for texshelf."""

import logging
import sys
from pathlib import Path
from typing import Callable

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .compile import DEFAULT_THREAD_COUNT
from .errors import TexshelfError
from .profile import default_profile_path
from .shelf import ExportMode
from .templates import DEFAULT_MASTER_TEMPLATE, DEFAULT_NOTE_TEMPLATE


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


def _exit_with(run: Callable[[], int]) -> None:
    """Run a command and exit with its code, or the code of its error."""
    try:
        exit_code = run()
    except TexshelfError as e:
        Console(stderr=True).print(f"Error: {e}", style="bold red", markup=False)
        sys.exit(e.exit_code)
    sys.exit(exit_code)


@click.group()
@click.version_option(__version__, prog_name="texshelf")
@click.option(
    "--shelf",
    "-s",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    envvar="TEXSHELF_SHELF",
    default=None,
    help="Path to the shelf (defaults to the current directory)",
)
@click.option(
    "--profile",
    "-p",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    envvar="TEXSHELF_PROFILE",
    default=None,
    help="Path to the profile (defaults to the user config directory)",
)
@click.option("--verbose", is_flag=True, help="Log what happens to every item")
@click.pass_context
def cli(ctx: click.Context, shelf: Path | None, profile: Path | None, verbose: bool) -> None:
    """texshelf - manage a shelf of LaTeX study notes.

    Subjects are directories, notes are .tex files inside them. An optional
    index keeps ids and modification dates of both.
    """
    ctx.ensure_object(dict)
    _configure_logging(verbose)

    shelf = shelf or Path.cwd()
    if shelf.exists() and not shelf.is_dir():
        raise click.BadParameter(f"'{shelf}' is not a directory.", param_hint="--shelf / -s")

    ctx.obj["shelf"] = shelf.resolve()
    ctx.obj["profile"] = (profile or default_profile_path()).resolve()


@cli.command()
@click.option("--name", type=str, default=None, help="Name recorded in the profile")
@click.option("--index", "use_index", is_flag=True, help="Create an index for the shelf")
@click.pass_context
def init(ctx: click.Context, name: str | None, use_index: bool) -> None:
    """Create the profile and the shelf.

    Examples:

        texshelf init --name "Ada Lovelace"

        texshelf -s ~/notes init --index
    """
    from .commands.init_cmd import run_init

    _exit_with(lambda: run_init(ctx.obj["shelf"], ctx.obj["profile"], name=name, use_index=use_index))


@cli.group()
def add() -> None:
    """Add subjects or notes."""
    pass


@add.command("subjects")
@click.argument("names", nargs=-1, required=True)
@click.option("--index/--no-index", "add_to_index", default=True, help="Record the subjects in the index")
@click.pass_context
def add_subjects(ctx: click.Context, names: tuple[str, ...], add_to_index: bool) -> None:
    """Create subjects, including their parent subjects.

    Examples:

        texshelf add subjects "Calculus" "Calculus/Calculus I"
    """
    from .commands.add_cmd import run_add_subjects

    _exit_with(lambda: run_add_subjects(ctx.obj["shelf"], list(names), add_to_index=add_to_index))


@add.command("notes")
@click.argument("subject")
@click.argument("titles", nargs=-1, required=True)
@click.option(
    "--template",
    "-t",
    default=DEFAULT_NOTE_TEMPLATE,
    show_default=True,
    help="Profile template used for the note content",
)
@click.option(
    "--mode",
    type=click.Choice([m.value for m in ExportMode]),
    default=ExportMode.STRICT.value,
    show_default=True,
    help="What to do with notes that already exist",
)
@click.option("--index/--no-index", "add_to_index", default=True, help="Record the notes in the index")
@click.pass_context
def add_notes(
    ctx: click.Context,
    subject: str,
    titles: tuple[str, ...],
    template: str,
    mode: str,
    add_to_index: bool,
) -> None:
    """Create notes under SUBJECT.

    Examples:

        texshelf add notes Calculus "Limits" "Derivatives"

        texshelf add notes Calculus "Limits" --mode overwrite
    """
    from .commands.add_cmd import run_add_notes

    _exit_with(
        lambda: run_add_notes(
            ctx.obj["shelf"],
            ctx.obj["profile"],
            subject,
            list(titles),
            template=template,
            mode=ExportMode(mode),
            add_to_index=add_to_index,
        )
    )


@cli.group()
def remove() -> None:
    """Remove subjects or notes."""
    pass


@remove.command("subjects")
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def remove_subjects(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Delete subjects with all of their notes and child subjects."""
    from .commands.remove_cmd import run_remove_subjects

    _exit_with(lambda: run_remove_subjects(ctx.obj["shelf"], list(names)))


@remove.command("notes")
@click.argument("subject")
@click.argument("titles", nargs=-1, required=True)
@click.pass_context
def remove_notes(ctx: click.Context, subject: str, titles: tuple[str, ...]) -> None:
    """Delete notes of SUBJECT."""
    from .commands.remove_cmd import run_remove_notes

    _exit_with(lambda: run_remove_notes(ctx.obj["shelf"], subject, list(titles)))


@cli.command("list")
@click.argument("subjects", nargs=-1)
@click.option(
    "--sort",
    type=click.Choice(["name", "date"]),
    default="name",
    show_default=True,
    help="Sort by name or by modification date",
)
@click.option("--reverse", is_flag=True, help="Reverse the sort order")
@click.pass_context
def list_entries(ctx: click.Context, subjects: tuple[str, ...], sort: str, reverse: bool) -> None:
    """List all subjects, or the notes of SUBJECTS."""
    from .commands.list_cmd import run_list

    _exit_with(lambda: run_list(ctx.obj["shelf"], list(subjects), sort=sort, reverse=reverse))


def _compile_options(func):
    func = click.option(
        "--timeout",
        type=click.FloatRange(min=0, min_open=True),
        default=None,
        help="Seconds after which a single compilation is abandoned",
    )(func)
    func = click.option(
        "--command",
        "-c",
        default=None,
        help="Command template, e.g. 'pdflatex {{ note }}' (defaults to the profile's)",
    )(func)
    func = click.option(
        "--threads",
        "-j",
        type=click.IntRange(min=1),
        default=DEFAULT_THREAD_COUNT,
        show_default=True,
        help="Number of documents compiled at the same time",
    )(func)
    return func


@cli.group("compile")
def compile_group() -> None:
    """Compile notes with the configured command."""
    pass


@compile_group.command("subjects")
@click.argument("names", nargs=-1, required=True)
@click.option("--files", "-f", multiple=True, help="Glob of files to compile (repeatable)")
@_compile_options
@click.pass_context
def compile_subjects(
    ctx: click.Context,
    names: tuple[str, ...],
    files: tuple[str, ...],
    threads: int,
    command: str | None,
    timeout: float | None,
) -> None:
    """Compile every note of the given subjects.

    Examples:

        texshelf compile subjects Calculus Algebra -j 8

        texshelf compile subjects Calculus -c "pdflatex {{ note }}"
    """
    from .commands.compile_cmd import run_compile_subjects

    _exit_with(
        lambda: run_compile_subjects(
            ctx.obj["shelf"],
            ctx.obj["profile"],
            list(names),
            threads=threads,
            files=list(files) or None,
            command=command,
            timeout=timeout,
        )
    )


@compile_group.command("notes")
@click.argument("subject")
@click.argument("titles", nargs=-1, required=True)
@_compile_options
@click.pass_context
def compile_notes(
    ctx: click.Context,
    subject: str,
    titles: tuple[str, ...],
    threads: int,
    command: str | None,
    timeout: float | None,
) -> None:
    """Compile some notes of SUBJECT."""
    from .commands.compile_cmd import run_compile_notes

    _exit_with(
        lambda: run_compile_notes(
            ctx.obj["shelf"],
            ctx.obj["profile"],
            subject,
            list(titles),
            threads=threads,
            command=command,
            timeout=timeout,
        )
    )


@cli.command()
@click.argument("subjects", nargs=-1, required=True)
@click.option("--skip-compilation", is_flag=True, help="Only write the master notes")
@click.option("--files", "-f", multiple=True, help="Glob of notes to include (repeatable)")
@click.option(
    "--template",
    "-t",
    default=DEFAULT_MASTER_TEMPLATE,
    show_default=True,
    help="Profile template used for the master note",
)
@_compile_options
@click.pass_context
def master(
    ctx: click.Context,
    subjects: tuple[str, ...],
    skip_compilation: bool,
    files: tuple[str, ...],
    template: str,
    threads: int,
    command: str | None,
    timeout: float | None,
) -> None:
    """Write the master note of SUBJECTS and compile it."""
    from .commands.master_cmd import run_master

    _exit_with(
        lambda: run_master(
            ctx.obj["shelf"],
            ctx.obj["profile"],
            list(subjects),
            skip_compilation=skip_compilation,
            files=list(files) or None,
            template=template,
            command=command,
            threads=threads,
            timeout=timeout,
        )
    )


@cli.command()
@click.option("--last", "-n", type=click.IntRange(min=1), default=None, help="Show only the last N operations")
@click.pass_context
def history(ctx: click.Context, last: int | None) -> None:
    """Show the changes recorded for the shelf."""
    from .commands.history_cmd import run_history

    _exit_with(lambda: run_history(ctx.obj["shelf"], last=last))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
