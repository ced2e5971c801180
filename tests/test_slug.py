import re

import pytest

from texshelf.slug import camel_case, slugify, snake_case, title_case


@pytest.mark.parametrize(
    "text, expected",
    [
        ("The Quick Brown Fox: [It Jumps Over The Lazy Dog].", "the-quick-brown-fox-it-jumps-over-the-lazy-dog"),
        ("An introduction to calculus concepts", "an-introduction-to-calculus-concepts"),
        ("Calculus I", "calculus-i"),
        ("  leading and   trailing  ", "leading-and-trailing"),
        ("hyphen--runs - and spaces", "hyphen-runs-and-spaces"),
        (".Logs", "logs"),
        ("Émile's Notes", "miles-notes"),
    ],
)
def test_slugify(text: str, expected: str) -> None:
    assert slugify(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "---", "!?", "ñ"])
def test_slugify_may_be_empty(text: str) -> None:
    assert slugify(text) == ""


@pytest.mark.parametrize(
    "text",
    ["Quantum Mechanics II", "x -- y", "Tab\tSeparated\nWords", "a_b.c", "MiXeD CaSe 42"],
)
def test_slugify_is_restricted_and_stable(text: str) -> None:
    slug = slugify(text)
    assert re.fullmatch(r"[a-z0-9-]*", slug)
    assert slugify(text) == slug
    assert slugify(slug) == slug


def test_case_helpers() -> None:
    assert snake_case("Calculus I: Limits") == "calculus_i_limits"
    assert title_case("calculus i limits") == "Calculus I Limits"
    assert camel_case("calculus i-limits") == "CalculusILimits"
