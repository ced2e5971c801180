"""Set up a profile and a shelf."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..audit_log import CreationSummary, log_operation
from ..config import DEFAULT_PROFILE_NAME, ProfileConfig
from ..errors import AlreadyExistsError
from ..profile import Profile
from ..shelf import Shelf


def run_init(
    shelf_path: Path,
    profile_path: Path,
    *,
    name: str | None = None,
    use_index: bool = False,
) -> int:
    """Export a profile (unless one exists) and create the shelf directory."""
    console = Console()
    err = Console(stderr=True)

    profile = Profile(profile_path, ProfileConfig(name=name or DEFAULT_PROFILE_NAME))
    try:
        profile.export()
        console.print(f"Profile for [bold]{escape(profile.config.name)}[/bold] written to {escape(str(profile.path))}")
    except AlreadyExistsError:
        err.print(f"Profile at {profile.path} already exists, leaving it as is", style="yellow", markup=False)

    with Shelf.open(shelf_path, use_index=use_index or None) as shelf:
        log_operation(
            shelf.root,
            "init",
            created=CreationSummary(files=1 if shelf.has_index else 0),
            metadata={"profile": str(profile.path), "index": shelf.has_index},
        )
        suffix = " with an index" if shelf.has_index else ""
        console.print(f"Shelf ready at {shelf.root}{suffix}", style="green", markup=False)

    return 0
