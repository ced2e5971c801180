"""
Append-only record of the changes made to a shelf.

Every command that creates or removes subjects, notes or master notes writes
one JSON line to ``<shelf>/.texshelf/audit.log``. Deleting a subject removes
its whole directory tree, so the log is the only trace of what was there.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .shelf import STATE_DIR

logger = logging.getLogger(__name__)

AUDIT_LOG_FILE = "audit.log"


@dataclass
class ErasureCost:
    """What an operation removed."""

    subjects: int = 0
    notes: int = 0
    files: int = 0
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class CreationSummary:
    """What an operation wrote."""

    subjects: int = 0
    notes: int = 0
    files: int = 0
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class AuditEntry:
    timestamp: str
    operation: str
    erased: ErasureCost
    created: CreationSummary
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "operation": self.operation,
            "erased": asdict(self.erased),
            "created": asdict(self.created),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> AuditEntry:
        return cls(
            timestamp=data["timestamp"],
            operation=data["operation"],
            erased=ErasureCost(**data.get("erased", {})),
            created=CreationSummary(**data.get("created", {})),
            metadata=data.get("metadata", {}),
        )


def get_audit_log_path(shelf_root: Path) -> Path:
    return shelf_root / STATE_DIR / AUDIT_LOG_FILE


def log_operation(
    shelf_root: Path,
    operation: str,
    erased: ErasureCost | None = None,
    created: CreationSummary | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditEntry:
    """
    Append an operation to the audit log of a shelf.

    Args:
        shelf_root: Root directory of the shelf
        operation: Name of the operation (e.g., "add-notes", "remove-subjects")
        erased: Summary of what was removed
        created: Summary of what was written
        metadata: Additional context (e.g., subject names, template used)

    Returns:
        The appended entry
    """
    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        erased=erased or ErasureCost(),
        created=created or CreationSummary(),
        metadata=metadata or {},
    )

    log_path = get_audit_log_path(shelf_root)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict()) + "\n")

    return entry


def read_audit_log(shelf_root: Path, last_n: int | None = None) -> list[AuditEntry]:
    """
    Read entries from the audit log, oldest first.

    Args:
        shelf_root: Root directory of the shelf
        last_n: If specified, return only the last N entries
    """
    log_path = get_audit_log_path(shelf_root)
    if not log_path.exists():
        return []

    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(AuditEntry.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, TypeError):
                logger.debug("Skipping malformed audit line %d in %s", number, log_path)

    if last_n is not None:
        return entries[-last_n:] if last_n > 0 else []
    return entries


def _summarize(summary: ErasureCost | CreationSummary) -> str:
    parts = []
    for label in ("subjects", "notes", "files"):
        count = getattr(summary, label)
        if count:
            parts.append(f"{count} {label}")
    return ", ".join(parts)


def format_audit_entry(entry: AuditEntry) -> str:
    """Format an audit entry for human-readable display."""
    lines = [f"[{entry.timestamp}] {entry.operation}"]

    erased = _summarize(entry.erased)
    if erased:
        lines.append(f"  Erased: {erased}")

    created = _summarize(entry.created)
    if created:
        lines.append(f"  Created: {created}")

    for key, value in entry.metadata.items():
        lines.append(f"  {key}: {value}")

    return "\n".join(lines)
