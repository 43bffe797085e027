"""Tests for the JSON file store."""
import json

from storyworld.catalog.store import sample_books


def test_load_missing_file_returns_empty_list(store):
    assert store.load("books") == []


def test_load_corrupt_file_returns_empty_list(store):
    store.data_dir.mkdir(parents=True)
    store.path_for("books").write_text("{not json", encoding="utf-8")

    assert store.load("books") == []


def test_load_scalar_document_returns_empty_list(store):
    store.data_dir.mkdir(parents=True)
    store.path_for("books").write_text("42", encoding="utf-8")

    assert store.load("books") == []


def test_save_overwrites_whole_file(store):
    assert store.save("comments", [{"id": "a"}, {"id": "b"}]) is True
    assert store.save("comments", [{"id": "c"}]) is True

    assert json.loads(store.path_for("comments").read_text(encoding="utf-8")) == [{"id": "c"}]


def test_save_leaves_no_temp_files(store):
    store.save("views", {"totalViews": 1, "devices": []})

    assert [p.name for p in store.data_dir.iterdir()] == ["views.json"]


def test_save_failure_is_reported(store, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")
    store.data_dir = blocker / "nested"

    assert store.save("books", []) is False


def test_books_round_trip_field_for_field(store):
    books = sample_books()
    records = [b.to_json() for b in books]

    assert store.save("books", records) is True
    assert store.load("books") == records
