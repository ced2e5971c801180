"""
Case conversion for titles and subject names.

`slugify` is the one that matters for storage: every subject directory and
note file name on a shelf is derived from it. The other helpers are exposed
as template filters.
"""

from __future__ import annotations

import re

# Runs of whitespace or runs of hyphens separate words.
_WORD_SEPARATOR = re.compile(r"\s+|-+")
_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]+")


def _words(text: str) -> list[str]:
    words = (_NON_ALPHANUMERIC.sub("", token) for token in _WORD_SEPARATOR.split(text))
    return [word for word in words if word]


def slugify(text: str) -> str:
    """Return the kebab-case slug of `text`.

    Characters outside ``[A-Za-z0-9]`` are removed, words are lowercased and
    joined with single hyphens. The result may be empty.

    Example:
        >>> slugify("An introduction to calculus concepts")
        'an-introduction-to-calculus-concepts'
    """
    return "-".join(word.lower() for word in _words(text))


def snake_case(text: str) -> str:
    return "_".join(word.lower() for word in _words(text))


def title_case(text: str) -> str:
    return " ".join(word.capitalize() for word in _words(text))


def camel_case(text: str) -> str:
    return "".join(word.capitalize() for word in _words(text))
