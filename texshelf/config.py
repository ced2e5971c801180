"""
Configuration values stored as YAML next to the data they describe.

Two documents exist:

- ``<profile>/.profile.yml``: who the profile belongs to and the defaults
  applied to every subject (`ProfileConfig`).
- ``<shelf>/<subject>/info.yml``: the display name of a subject plus optional
  overrides of the profile defaults (`SubjectConfig`).

Unknown keys are preserved in ``extra`` so templates can use them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import InvalidInputError, IoFailure

DEFAULT_COMMAND = "latexmk -pdf {{ note }}"
DEFAULT_FILES = ["*.tex"]
DEFAULT_PROFILE_NAME = "New Student"
PROFILE_VERSION = "0.1.0"


def load_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping from `path`; an empty file is an empty mapping."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise IoFailure(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidInputError(f"Malformed YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInputError(f"Expected a mapping at the top of {path}")
    return data


def dump_yaml(path: Path, data: dict[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            yaml.safe_dump(data, sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
    except OSError as e:
        raise IoFailure(f"Cannot write {path}: {e}") from e


@dataclass
class SubjectConfig:
    """Per-subject settings. `None` means "inherit from the profile"."""

    name: str | None = None
    command: str | None = None
    files: list[str] | None = None  # stored as `_files`
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.name is not None:
            data["name"] = self.name
        if self.command is not None:
            data["command"] = self.command
        if self.files is not None:
            data["_files"] = list(self.files)
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubjectConfig:
        data = dict(data)
        files = data.pop("_files", None)
        if isinstance(files, str):
            files = [files]
        return cls(
            name=data.pop("name", None),
            command=data.pop("command", None),
            files=list(files) if files is not None else None,
            extra=data,
        )

    @classmethod
    def load(cls, path: Path) -> SubjectConfig:
        """Load from `path`; a missing file yields an empty config."""
        if not path.exists():
            return cls()
        return cls.from_dict(load_yaml(path))

    def save(self, path: Path) -> None:
        dump_yaml(path, self.to_dict())

    def merged(self, overrides: SubjectConfig) -> SubjectConfig:
        """Return a copy with every value set in `overrides` taking precedence."""
        extra = dict(self.extra)
        extra.update(overrides.extra)
        return SubjectConfig(
            name=overrides.name if overrides.name is not None else self.name,
            command=overrides.command if overrides.command is not None else self.command,
            files=overrides.files if overrides.files is not None else self.files,
            extra=extra,
        )

    @property
    def effective_command(self) -> str:
        return self.command or DEFAULT_COMMAND

    @property
    def effective_files(self) -> list[str]:
        return list(self.files) if self.files else list(DEFAULT_FILES)


@dataclass
class ProfileConfig:
    """Contents of a profile's metadata file."""

    name: str = DEFAULT_PROFILE_NAME
    version: str = PROFILE_VERSION
    subject: SubjectConfig = field(
        default_factory=lambda: SubjectConfig(command=DEFAULT_COMMAND, files=list(DEFAULT_FILES))
    )
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "subject": self.subject.to_dict(),
        }
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProfileConfig:
        data = dict(data)
        defaults = cls()
        subject = data.pop("subject", None) or {}
        if not isinstance(subject, dict):
            raise InvalidInputError("Profile key 'subject' must be a mapping")
        return cls(
            name=str(data.pop("name", defaults.name)),
            version=str(data.pop("version", defaults.version)),
            subject=defaults.subject.merged(SubjectConfig.from_dict(subject)),
            extra=data,
        )

    @classmethod
    def load(cls, path: Path) -> ProfileConfig:
        return cls.from_dict(load_yaml(path))

    def save(self, path: Path) -> None:
        dump_yaml(path, self.to_dict())
