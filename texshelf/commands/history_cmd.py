"""Show the audit log of a shelf."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..audit_log import format_audit_entry, read_audit_log


def run_history(shelf_path: Path, *, last: int | None = None) -> int:
    console = Console()

    entries = read_audit_log(shelf_path, last_n=last)
    if not entries:
        console.print("No recorded operations.", style="yellow")
        return 0

    for entry in entries:
        console.print(format_audit_entry(entry), highlight=False, markup=False)
    return 0
