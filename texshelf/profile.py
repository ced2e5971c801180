"""
Profiles: the per-user settings and templates used when writing notes.

A profile is a directory, separate from any shelf, holding a metadata file
(``.profile.yml``) and a templates directory (``.templates/``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import click

from .config import ProfileConfig, SubjectConfig
from .errors import AlreadyExistsError, InvalidInputError, InvalidProfileError, IoFailure
from .models import MasterNote, Note, Subject
from .templates import (
    BUILTIN_TEMPLATES,
    DEFAULT_MASTER_TEMPLATE,
    DEFAULT_NOTE_TEMPLATE,
    TEMPLATE_EXTENSION,
    TemplateRegistry,
)

logger = logging.getLogger(__name__)

APP_NAME = "texshelf"
PROFILE_METADATA_FILE = ".profile.yml"
TEMPLATES_DIR = ".templates"


def default_profile_path() -> Path:
    return Path(click.get_app_dir(APP_NAME))


@dataclass
class Profile:
    """A profile directory with its loaded configuration and templates."""

    path: Path
    config: ProfileConfig = field(default_factory=ProfileConfig)
    templates: TemplateRegistry = field(default_factory=TemplateRegistry)

    @property
    def metadata_path(self) -> Path:
        return self.path / PROFILE_METADATA_FILE

    @property
    def templates_path(self) -> Path:
        return self.path / TEMPLATES_DIR

    @property
    def is_valid(self) -> bool:
        return self.metadata_path.is_file() and self.templates_path.is_dir()

    @property
    def subject_defaults(self) -> SubjectConfig:
        return self.config.subject

    @classmethod
    def load(cls, path: Path) -> Profile:
        """Load an exported profile.

        Raises:
            InvalidProfileError: the metadata file or templates directory is
                missing, or the metadata cannot be parsed.
        """
        profile = cls(Path(path))
        if not profile.is_valid:
            raise InvalidProfileError(profile.path)

        try:
            profile.config = ProfileConfig.load(profile.metadata_path)
        except (InvalidInputError, IoFailure) as e:
            raise InvalidProfileError(profile.path) from e

        profile.templates = TemplateRegistry(profile.templates_path)
        return profile

    @classmethod
    def load_or_default(cls, path: Path) -> Profile:
        """Load the profile at `path`, or use the defaults if none was exported."""
        try:
            return cls.load(path)
        except InvalidProfileError as e:
            if e.__cause__ is not None:
                raise
            logger.info("No profile at %s, using defaults", path)
            return cls(Path(path))

    def export(self) -> None:
        """Write the profile to disk with the built-in templates as files.

        Raises:
            AlreadyExistsError: a valid profile already exists at the path.
        """
        if self.is_valid:
            raise AlreadyExistsError(f"A profile already exists at {self.path}")

        self.config.save(self.metadata_path)
        try:
            for name, text in BUILTIN_TEMPLATES.items():
                target = self.templates_path / f"{name}{TEMPLATE_EXTENSION}"
                target.parent.mkdir(parents=True, exist_ok=True)
                if not target.exists():
                    target.write_text(text, encoding="utf-8")
        except OSError as e:
            raise IoFailure(f"Cannot write templates to {self.templates_path}: {e}") from e

        self.templates = TemplateRegistry(self.templates_path)

    def _context(self, subject: Subject, subject_config: SubjectConfig | None) -> dict:
        config = subject_config or self.subject_defaults
        subject_data = dict(config.extra)
        subject_data.update(subject.to_dict())
        return {"profile": self.config.to_dict(), "subject": subject_data}

    def render_note(
        self,
        subject: Subject,
        note: Note,
        template: str = DEFAULT_NOTE_TEMPLATE,
        subject_config: SubjectConfig | None = None,
    ) -> str:
        context = self._context(subject, subject_config)
        return self.templates.render(template, note=note.to_dict(), **context)

    def render_master_note(
        self,
        master: MasterNote,
        template: str = DEFAULT_MASTER_TEMPLATE,
        subject_config: SubjectConfig | None = None,
    ) -> str:
        context = self._context(master.subject, subject_config)
        return self.templates.render(template, master=master.to_dict(), **context)
