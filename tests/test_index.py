from pathlib import Path

import pytest

from texshelf.errors import DuplicateEntryError, IndexFailure, NotFoundError
from texshelf.index import ShelfIndex
from texshelf.models import Note, Subject


@pytest.fixture
def index(tmp_path: Path):
    opened = ShelfIndex(tmp_path / "state" / "index.db")
    yield opened
    opened.close()


def test_subject_rows(index: ShelfIndex) -> None:
    subject = Subject("Calculus/Calculus I")
    subject_id = index.insert_subject(subject)

    record = index.get_subject(subject)
    assert record is not None
    assert record.id == subject_id
    assert record.name == "Calculus/Calculus I"
    assert record.slug == "calculus/calculus-i"
    assert record.to_subject() == subject
    assert index.get_subject_by_id(subject_id) == record


def test_absent_rows_are_none(index: ShelfIndex) -> None:
    assert index.get_subject(Subject("Nothing")) is None
    assert index.get_subject_by_id(42) is None
    assert index.get_note_by_id(42) is None
    assert index.get_note(Subject("Nothing"), Note("Here")) is None
    assert index.notes_of(Subject("Nothing")) == []


def test_subject_slug_is_unique(index: ShelfIndex) -> None:
    index.insert_subject(Subject("Calculus"))
    with pytest.raises(DuplicateEntryError):
        index.insert_subject(Subject("calculus"))


def test_note_slug_and_title_unique_per_subject(index: ShelfIndex) -> None:
    calculus = Subject("Calculus")
    algebra = Subject("Algebra")
    index.insert_subject(calculus)
    index.insert_subject(algebra)

    index.insert_note(calculus, Note("Limits"))
    with pytest.raises(DuplicateEntryError):
        index.insert_note(calculus, Note("limits"))

    # same title under another subject is fine
    index.insert_note(algebra, Note("Limits"))
    assert len(index.notes_of(calculus)) == 1
    assert len(index.notes_of(algebra)) == 1


def test_reserved_note_titles(index: ShelfIndex) -> None:
    subject = Subject("Calculus")
    index.insert_subject(subject)
    with pytest.raises(IndexFailure):
        index.insert_note(subject, Note("Main"))
    with pytest.raises(IndexFailure):
        index.insert_note(subject, Note("x" * 257))


def test_note_requires_indexed_subject(index: ShelfIndex) -> None:
    with pytest.raises(NotFoundError):
        index.insert_note(Subject("Calculus"), Note("Limits"))


def test_deleting_subject_cascades_to_notes(index: ShelfIndex) -> None:
    subject = Subject("Calculus")
    subject_id = index.insert_subject(subject)
    note_ids = [index.insert_note(subject, Note(title)) for title in ("Limits", "Derivatives")]
    assert index.count_notes(subject_id) == 2

    assert index.delete_subject(subject) is True

    assert index.count_notes(subject_id) == 0
    assert all(index.get_note_by_id(note_id) is None for note_id in note_ids)
    assert index.delete_subject(subject) is False


def test_deleting_subject_removes_descendants(index: ShelfIndex) -> None:
    index.insert_subject(Subject("Algebra"))
    index.insert_subject(Subject("Algebra/Precalculus"))
    index.insert_subject(Subject("Algebraic Topology"))

    index.delete_subject(Subject("Algebra"))

    assert [r.name for r in index.all_subjects()] == ["Algebraic Topology"]


def test_sorting_whitelist(index: ShelfIndex) -> None:
    for name in ("Calculus", "Algebra", "Biology"):
        index.insert_subject(Subject(name))

    assert [r.name for r in index.all_subjects("name")] == ["Algebra", "Biology", "Calculus"]
    assert [r.name for r in index.all_subjects("id", reverse=True)] == ["Biology", "Algebra", "Calculus"]
    with pytest.raises(IndexFailure):
        index.all_subjects("name; DROP TABLE subjects")


def test_transaction_rolls_back_on_error(index: ShelfIndex) -> None:
    with pytest.raises(RuntimeError):
        with index.transaction():
            index.insert_subject(Subject("Calculus"))
            raise RuntimeError("boom")

    assert index.get_subject(Subject("Calculus")) is None


def test_transaction_survives_duplicate(index: ShelfIndex) -> None:
    index.insert_subject(Subject("Calculus"))
    with index.transaction():
        with pytest.raises(DuplicateEntryError):
            index.insert_subject(Subject("Calculus"))
        index.insert_subject(Subject("Algebra"))

    assert {r.name for r in index.all_subjects()} == {"Algebra", "Calculus"}


def test_index_persists_between_connections(tmp_path: Path) -> None:
    path = tmp_path / "index.db"
    first = ShelfIndex(path)
    first.insert_subject(Subject("Calculus"))
    first.close()

    second = ShelfIndex(path)
    try:
        assert second.get_subject(Subject("Calculus")) is not None
    finally:
        second.close()
