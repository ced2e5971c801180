"""
Jinja2 templates for notes, master notes and compile commands.

Templates live as ``*.j2`` files under a profile's templates directory and
are named by their relative path without the extension (``master/_default``).
Built-in defaults are used when the directory does not override them.

The comment delimiters are ``{## ... ##}`` so LaTeX macro parameters such as
``{#1}`` pass through untouched.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    Template,
    TemplateError,
    TemplateNotFound,
)

from .errors import InvalidInputError, NotFoundError
from .paths import relative_path_from
from .slug import camel_case, slugify, snake_case, title_case

TEMPLATE_EXTENSION = ".j2"
DEFAULT_NOTE_TEMPLATE = "_default"
DEFAULT_MASTER_TEMPLATE = "master/_default"

NOTE_TEMPLATE = r"""\documentclass[class=memoir, crop=false, oneside, 14pt]{standalone}

% document metadata
\author{ {{- profile.name -}} }
\title{ {{- note.title -}} }
\date{ {{- reldate() -}} }

\begin{document}
\maketitle

{{ subject.name }}
\end{document}
"""

MASTER_NOTE_TEMPLATE = r"""\documentclass[class=memoir, crop=false, oneside, 12pt]{standalone}

% document metadata
\author{ {{- profile.name -}} }
\title{ {{- subject.name -}} }
\date{ {{- reldate() -}} }

\begin{document}
\maketitle

{% for note in master.notes %}
\input{ {{- note.file -}} }
{% endfor %}
\end{document}
"""

BUILTIN_TEMPLATES = {
    DEFAULT_NOTE_TEMPLATE: NOTE_TEMPLATE,
    DEFAULT_MASTER_TEMPLATE: MASTER_NOTE_TEMPLATE,
}


def reldate(format: str = "%Y-%m-%d", days: int = 0) -> str:
    """Today's date shifted by `days`, formatted with strftime."""
    return (datetime.now() + timedelta(days=days)).strftime(format)


def relpath(dst: str, base: str) -> str:
    """Path from `base` to `dst`, or an empty string if there is none."""
    result = relative_path_from(dst, base)
    return result.as_posix() if result is not None else ""


class TemplateRegistry:
    """Named templates backed by a jinja2 environment.

    Created once per profile and passed to whatever renders documents.
    """

    def __init__(self, templates_dir: Path | None = None):
        self.templates_dir = templates_dir
        loaders = []
        if templates_dir is not None and templates_dir.is_dir():
            loaders.append(FileSystemLoader(str(templates_dir)))
        loaders.append(
            DictLoader({f"{name}{TEMPLATE_EXTENSION}": text for name, text in BUILTIN_TEMPLATES.items()})
        )

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=False,
            keep_trailing_newline=True,
            comment_start_string="{##",
            comment_end_string="##}",
        )
        self.env.filters.update(
            kebab_case=slugify,
            snake_case=snake_case,
            title_case=title_case,
            camel_case=camel_case,
        )
        self.env.globals.update(reldate=reldate, relpath=relpath)

    def names(self) -> list[str]:
        return sorted(
            name[: -len(TEMPLATE_EXTENSION)]
            for name in self.env.list_templates(extensions=[TEMPLATE_EXTENSION.lstrip(".")])
        )

    def __contains__(self, name: str) -> bool:
        return name in self.names()

    def get(self, name: str) -> Template:
        try:
            return self.env.get_template(f"{name}{TEMPLATE_EXTENSION}")
        except TemplateNotFound as e:
            raise NotFoundError(f"No template named '{name}'") from e
        except TemplateError as e:
            raise InvalidInputError(f"Template '{name}' is invalid: {e}") from e

    def render(self, name: str, **context: Any) -> str:
        template = self.get(name)
        try:
            return template.render(**context)
        except TemplateError as e:
            raise InvalidInputError(f"Cannot render template '{name}': {e}") from e

    def render_string(self, source: str, **context: Any) -> str:
        try:
            return self.env.from_string(source).render(**context)
        except TemplateError as e:
            raise InvalidInputError(f"Cannot render '{source}': {e}") from e

    def render_command(self, command: str, file_name: str) -> str:
        """Substitute a document's file name into a command template.

        The file name is available as ``{{ note }}``.
        """
        return self.render_string(command, note=file_name)
