from pathlib import Path

import pytest

from texshelf.config import (
    DEFAULT_COMMAND,
    DEFAULT_PROFILE_NAME,
    ProfileConfig,
    SubjectConfig,
    load_yaml,
)
from texshelf.errors import InvalidInputError


def test_subject_config_keeps_unknown_keys(tmp_path: Path) -> None:
    path = tmp_path / "info.yml"
    path.write_text("name: Calculus\n_files: '*.ltx'\nlecturer: Dr. Who\n", encoding="utf-8")

    config = SubjectConfig.load(path)
    assert config.name == "Calculus"
    assert config.files == ["*.ltx"]
    assert config.command is None
    assert config.extra == {"lecturer": "Dr. Who"}

    config.save(path)
    assert SubjectConfig.load(path) == config


def test_missing_subject_config_is_empty(tmp_path: Path) -> None:
    config = SubjectConfig.load(tmp_path / "info.yml")
    assert config == SubjectConfig()
    assert config.effective_command == DEFAULT_COMMAND
    assert config.effective_files == ["*.tex"]


def test_merge_prefers_overrides() -> None:
    base = SubjectConfig(name="Base", command="pdflatex {{ note }}", files=["*.tex"], extra={"a": 1, "b": 2})
    merged = base.merged(SubjectConfig(command="xelatex {{ note }}", extra={"b": 3}))

    assert merged.name == "Base"
    assert merged.command == "xelatex {{ note }}"
    assert merged.files == ["*.tex"]
    assert merged.extra == {"a": 1, "b": 3}


def test_profile_config_defaults_and_round_trip(tmp_path: Path) -> None:
    config = ProfileConfig()
    assert config.name == DEFAULT_PROFILE_NAME
    assert config.subject.command == DEFAULT_COMMAND

    path = tmp_path / ".profile.yml"
    ProfileConfig(name="Ada", extra={"university": "Cambridge"}).save(path)
    loaded = ProfileConfig.load(path)

    assert loaded.name == "Ada"
    assert loaded.extra == {"university": "Cambridge"}
    assert loaded.subject.effective_files == ["*.tex"]


def test_profile_subject_defaults_fill_gaps(tmp_path: Path) -> None:
    path = tmp_path / ".profile.yml"
    path.write_text("name: Ada\nsubject:\n  _files: ['*.ltx']\n", encoding="utf-8")

    loaded = ProfileConfig.load(path)
    assert loaded.subject.files == ["*.ltx"]
    assert loaded.subject.command == DEFAULT_COMMAND


@pytest.mark.parametrize("text", ["name: [unclosed\n", "- just\n- a list\n"])
def test_load_yaml_rejects_bad_documents(tmp_path: Path, text: str) -> None:
    path = tmp_path / "bad.yml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(InvalidInputError):
        load_yaml(path)


def test_load_yaml_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert load_yaml(path) == {}
