"""Tests for the run_* command implementations behind the CLI."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from texshelf.audit_log import read_audit_log
from texshelf.commands.add_cmd import run_add_notes, run_add_subjects
from texshelf.commands.compile_cmd import run_compile_notes, run_compile_subjects
from texshelf.commands.history_cmd import run_history
from texshelf.commands.init_cmd import run_init
from texshelf.commands.list_cmd import run_list
from texshelf.commands.master_cmd import run_master
from texshelf.commands.remove_cmd import run_remove_notes, run_remove_subjects
from texshelf.errors import NotFoundError, ProcessFailure
from texshelf.models import MASTER_NOTE_FILE
from texshelf.shelf import ExportMode


@pytest.fixture
def shelf_path(tmp_path: Path) -> Path:
    return tmp_path / "notes"


@pytest.fixture
def populated(shelf_path: Path, profile_path: Path) -> Path:
    """A shelf with Calculus (two notes) and Algebra (no notes)."""
    run_add_subjects(shelf_path, ["Calculus", "Algebra"])
    run_add_notes(shelf_path, profile_path, "Calculus", ["Limits", "Series"])
    return shelf_path


def test_init_creates_profile_and_indexed_shelf(tmp_path: Path, shelf_path: Path, capsys) -> None:
    profile_path = tmp_path / "profile"

    assert run_init(shelf_path, profile_path, name="Ada", use_index=True) == 0
    assert (profile_path / ".profile.yml").is_file()
    assert (shelf_path / ".texshelf" / "index.db").is_file()

    assert run_init(shelf_path, profile_path) == 0
    captured = capsys.readouterr()
    assert "already" in captured.err
    assert [e.operation for e in read_audit_log(shelf_path)] == ["init", "init"]


def test_add_subjects_reports_partial_batch(shelf_path: Path, capsys) -> None:
    assert run_add_subjects(shelf_path, ["Calculus/Calculus I", "../outside"]) == 1

    assert (shelf_path / "calculus" / "calculus-i").is_dir()
    captured = capsys.readouterr()
    assert "Calculus/Calculus I" in captured.out

    entry = read_audit_log(shelf_path)[-1]
    assert entry.operation == "add-subjects"
    assert entry.created.subjects == 1


def test_add_notes_renders_profile_template(populated: Path) -> None:
    text = (populated / "calculus" / "limits.tex").read_text(encoding="utf-8")
    assert r"\title{Limits}" in text
    assert r"\author{Ada Lovelace}" in text

    entry = read_audit_log(populated)[-1]
    assert entry.operation == "add-notes"
    assert entry.metadata["notes"] == ["Limits", "Series"]


def test_add_notes_modes(populated: Path, profile_path: Path) -> None:
    limits = populated / "calculus" / "limits.tex"
    limits.write_text("my own work", encoding="utf-8")

    assert run_add_notes(populated, profile_path, "Calculus", ["Limits"]) == 1
    assert run_add_notes(populated, profile_path, "Calculus", ["Limits"], mode=ExportMode.KEEP) == 0
    assert limits.read_text(encoding="utf-8") == "my own work"

    assert run_add_notes(populated, profile_path, "Calculus", ["Limits"], mode=ExportMode.OVERWRITE) == 0
    assert limits.read_text(encoding="utf-8") != "my own work"


def test_add_notes_errors(populated: Path, profile_path: Path) -> None:
    with pytest.raises(NotFoundError):
        run_add_notes(populated, profile_path, "Biology", ["Cells"])
    with pytest.raises(NotFoundError):
        run_add_notes(populated, profile_path, "Calculus", ["Cells"], template="no-such-template")


def test_remove_subjects_records_erasure(populated: Path) -> None:
    assert run_remove_subjects(populated, ["Calculus", "Geometry"]) == 1
    assert not (populated / "calculus").exists()

    entry = read_audit_log(populated)[-1]
    assert entry.operation == "remove-subjects"
    assert entry.erased.subjects == 1
    assert entry.erased.notes == 2
    # two notes plus the subject metadata file
    assert entry.erased.files == 3


def test_remove_notes(populated: Path) -> None:
    assert run_remove_notes(populated, "Calculus", ["Limits"]) == 0
    assert not (populated / "calculus" / "limits.tex").exists()
    assert run_remove_notes(populated, "Calculus", ["Limits"]) == 1


def test_list_subjects_and_notes(populated: Path, capsys) -> None:
    assert run_list(populated, []) == 0
    out = capsys.readouterr().out
    assert "Calculus" in out
    assert "Algebra" in out

    assert run_list(populated, ["Calculus"], sort="date", reverse=True) == 0
    out = capsys.readouterr().out
    assert "limits.tex" in out
    assert "series.tex" in out

    assert run_list(populated, ["Calculus", "Biology"]) == 1


def test_list_empty_shelf(shelf_path: Path, capsys) -> None:
    assert run_list(shelf_path, []) == 0
    assert "No subjects yet" in capsys.readouterr().out


def test_compile_subjects(populated: Path, profile_path: Path, file_check_command: str, capsys) -> None:
    exit_code = run_compile_subjects(populated, profile_path, ["Calculus"], command=file_check_command, threads=2)

    assert exit_code == 0
    assert "Compiled 2 of 2" in capsys.readouterr().out


def test_compile_with_only_failures(populated: Path, profile_path: Path, failing_command: str) -> None:
    with pytest.raises(ProcessFailure):
        run_compile_subjects(populated, profile_path, ["Calculus"], command=failing_command)


def test_compile_notes(populated: Path, profile_path: Path, file_check_command: str) -> None:
    assert run_compile_notes(populated, profile_path, "Calculus", ["Series"], command=file_check_command) == 0
    assert run_compile_notes(populated, profile_path, "Calculus", ["Series", "Missing"], command=file_check_command) == 1


def test_master_writes_and_compiles(populated: Path, profile_path: Path, file_check_command: str) -> None:
    assert run_master(populated, profile_path, ["Calculus"], command=file_check_command) == 0

    text = (populated / "calculus" / MASTER_NOTE_FILE).read_text(encoding="utf-8")
    assert text.index(r"\input{limits.tex}") < text.index(r"\input{series.tex}")

    entry = read_audit_log(populated)[-1]
    assert entry.operation == "master"
    assert entry.metadata["compiled"] is True


def test_master_skip_compilation(populated: Path, profile_path: Path, failing_command: str) -> None:
    assert run_master(populated, profile_path, ["Algebra"], skip_compilation=True, command=failing_command) == 0
    assert (populated / "algebra" / MASTER_NOTE_FILE).is_file()


def test_history(populated: Path, capsys) -> None:
    assert run_history(populated, last=1) == 0
    out = capsys.readouterr().out
    assert "add-notes" in out
    assert "add-subjects" not in out


def test_history_without_log(shelf_path: Path, capsys) -> None:
    assert run_history(shelf_path) == 0
    assert "No recorded operations" in capsys.readouterr().out


def test_master_continues_past_subject_without_directory(shelf_path: Path, profile_path: Path) -> None:
    run_init(shelf_path, profile_path, use_index=True)
    run_add_subjects(shelf_path, ["Algebra", "Biology"])
    shutil.rmtree(shelf_path / "biology")

    assert run_master(shelf_path, profile_path, ["Algebra", "Biology"], skip_compilation=True) == 1

    assert (shelf_path / "algebra" / MASTER_NOTE_FILE).is_file()
    entry = read_audit_log(shelf_path)[-1]
    assert entry.operation == "master"
    assert entry.metadata["subjects"] == ["Algebra"]


def test_names_with_brackets_are_printed_verbatim(shelf_path: Path, profile_path: Path, capsys) -> None:
    names = ["Notes [bold]draft[/bold]", "Topics [/x]"]

    assert run_add_subjects(shelf_path, names) == 0
    out = capsys.readouterr().out
    assert "Notes [bold]draft[/bold]" in out
    assert "Topics [/x]" in out
    assert read_audit_log(shelf_path)[-1].metadata["subjects"] == names

    assert run_add_notes(shelf_path, profile_path, "Topics [/x]", ["Week [1]"]) == 0
    assert "Week [1]" in capsys.readouterr().out

    assert run_remove_subjects(shelf_path, names) == 0
    assert "Topics [/x]" in capsys.readouterr().out
