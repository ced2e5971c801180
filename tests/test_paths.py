from pathlib import Path

import pytest

from texshelf.paths import normalize, relative_path_from


@pytest.mark.parametrize(
    "path, expected",
    [
        ("./tests/lanoma-profile/notes/calculus", "tests/lanoma-profile/notes/calculus"),
        ("../case/..", ".."),
        ("../case/../tests/../../../of", "../../../of"),
        ("./case/../tests/../../../of", "../../of"),
        ("./tests/../calculus/calculus-i/../", "calculus"),
        ("./Calculus/Calculus I", "Calculus/Calculus I"),
        ("./Calculus/../Calculus I/../../p", "../p"),
        ("Mathematics/Calculus/", "Mathematics/Calculus"),
    ],
)
def test_normalize(path: str, expected: str) -> None:
    assert normalize(path) == Path(expected)


@pytest.mark.parametrize("path", ["", ".", "./", "a/..", "./a/b/../.."])
def test_normalize_empty_result(path: str) -> None:
    assert normalize(path) is None


def test_normalize_keeps_root() -> None:
    assert normalize("/../etc/./passwd") == Path("/etc/passwd")
    assert normalize("/a/../..") == Path("/")


@pytest.mark.parametrize(
    "path",
    ["../case/..", "./case/../tests/../../../of", "a/b/../c/./d", "/x/../y", "../../a/b/.."],
)
def test_normalize_is_idempotent(path: str) -> None:
    once = normalize(path)
    assert once is not None
    assert normalize(once) == once


@pytest.mark.parametrize(
    "dst, base, expected",
    [
        ("common", "notes/calculus", "../../common"),
        ("./tests/lanoma-profile/common", "./tests/lanoma-profile/notes/calculus", "../../common"),
        ("./tests/lanoma-profile/common/calculus", "./tests/lanoma-profile/common", "calculus"),
        ("../rust", "./", "../rust"),
        ("../rust/././bin", "../rust/", "bin"),
        ("../rust", "../rust/../../../", "../../.."),
        ("/tests/lanoma-profile/common", "/dev/sda/calculus-drive", "../../../tests/lanoma-profile/common"),
    ],
)
def test_relative_path_from(dst: str, base: str, expected: str) -> None:
    assert relative_path_from(dst, base) == Path(expected)


def test_relative_path_from_same_path() -> None:
    assert relative_path_from("./tests/common", "./tests/common") == Path(".")


def test_relative_path_from_unresolvable() -> None:
    # climbing out of base first would need the real current directory
    assert relative_path_from("./", "../rust") is None
    # relative destination against an absolute base
    assert relative_path_from("./tests/lanoma-profile/common", "/dev/sda/calculus-drive") is None


def test_relative_path_from_absolute_destination() -> None:
    assert relative_path_from("/dev/sda", "notes/calculus") == Path("/dev/sda")


@pytest.mark.parametrize(
    "dst, base",
    [
        ("common", "notes/calculus"),
        ("notes/algebra/linear", "notes/calculus"),
        ("a/b/c", "a/b/c/d/e"),
        ("x", "y"),
        ("/usr/share/texmf", "/usr/local/bin"),
    ],
)
def test_relative_path_joined_onto_base_reaches_destination(dst: str, base: str) -> None:
    relative = relative_path_from(dst, base)
    assert relative is not None
    assert normalize(Path(base) / relative) == normalize(dst)
