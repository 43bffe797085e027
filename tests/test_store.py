"""Tests for the catalogue repository."""
import json

import pytest

from storyworld.catalog.store import CatalogRepository
from storyworld.storage import JsonStore


def test_empty_store_is_seeded(store):
    repo = CatalogRepository(store, seed=True)
    repo.load()

    titles = [b.title for b in repo.books]
    assert "Counting with Colorful Cats" in titles
    assert len(store.load("books")) == len(titles)


def test_seeding_can_be_disabled(empty_repository):
    assert empty_repository.books == []


def test_existing_file_is_not_reseeded(store, make_book):
    store.save("books", [make_book("only-one", "My Own Book").to_json()])

    repo = CatalogRepository(store, seed=True)
    repo.load()

    assert [b.id for b in repo.books] == ["only-one"]


def test_restart_reloads_identical_records(store):
    first = CatalogRepository(store)
    first.load()
    first.like(first.books[0].id)

    second = CatalogRepository(JsonStore(store.data_dir))
    second.load()

    assert [b.to_json() for b in second.books] == [b.to_json() for b in first.books]


def test_invalid_records_are_skipped(store, make_book):
    store.save("books", [make_book("good").to_json(), {"id": "bad"}])

    repo = CatalogRepository(store)
    repo.load()

    assert [b.id for b in repo.books] == ["good"]


def test_insert_front_puts_newest_first(empty_repository, make_book):
    empty_repository.insert_front(make_book("a"))
    empty_repository.insert_front(make_book("b"))

    assert [b.id for b in empty_repository.books] == ["b", "a"]
    assert [r["id"] for r in empty_repository.store.load("books")] == ["b", "a"]


def test_insert_front_rejects_duplicate_id(empty_repository, make_book):
    empty_repository.insert_front(make_book("a"))

    with pytest.raises(ValueError):
        empty_repository.insert_front(make_book("a"))


def test_find_by_id(empty_repository, make_book):
    empty_repository.insert_front(make_book("a", "Alpha"))

    assert empty_repository.find_by_id("a").title == "Alpha"
    assert empty_repository.find_by_id("missing") is None


def test_like_n_times_adds_exactly_n(empty_repository, make_book):
    empty_repository.insert_front(make_book("a", likes=2))

    for _ in range(5):
        likes = empty_repository.like("a")

    assert likes == 7
    assert empty_repository.store.load("books")[0]["likes"] == 7


def test_unlike_never_goes_negative(empty_repository, make_book):
    empty_repository.insert_front(make_book("a", likes=1))

    assert empty_repository.unlike("a") == 0
    assert empty_repository.unlike("a") == 0


def test_like_unknown_book(empty_repository):
    assert empty_repository.like("nope") is None
    assert empty_repository.unlike("nope") is None


def test_increment_views(empty_repository, make_book):
    empty_repository.insert_front(make_book("a", views=3))

    book = empty_repository.increment_views("a")

    assert book.views == 4
    assert book.updated_at is not None


def test_browse_counts_listed_books_as_viewed(empty_repository, make_book):
    for i in range(3):
        empty_repository.insert_front(make_book(str(i), views=0))

    items, pagination = empty_repository.browse(limit=2)

    assert [b.views for b in items] == [1, 1]
    assert pagination.total_books == 3
    unlisted = [b for b in empty_repository.books if b not in items]
    assert [b.views for b in unlisted] == [0]
    saved = {r["id"]: r["views"] for r in empty_repository.store.load("books")}
    assert sorted(saved.values()) == [0, 1, 1]


def test_add_comment_trims_and_defaults_author(empty_repository, make_book):
    empty_repository.insert_front(make_book("a"))

    comment = empty_repository.add_comment("a", "  Lovely story!  ", author="   ")

    assert comment.comment == "Lovely story!"
    assert comment.author == "Anonymous"
    assert empty_repository.store.load("comments")[0]["bookId"] == "a"


@pytest.mark.parametrize("text", ["", "   \n\t", None])
def test_add_comment_rejects_blank_text(empty_repository, make_book, text):
    empty_repository.insert_front(make_book("a"))

    with pytest.raises(ValueError):
        empty_repository.add_comment("a", text)
    assert empty_repository.comments == []


def test_add_comment_unknown_book(empty_repository):
    assert empty_repository.add_comment("nope", "hello") is None


def test_comments_newest_first(empty_repository, make_book):
    empty_repository.insert_front(make_book("a"))
    first = empty_repository.add_comment("a", "first")
    second = empty_repository.add_comment("a", "second")
    first.created_at = first.created_at.replace(year=2020)

    assert [c.id for c in empty_repository.comments_for("a")] == [second.id, first.id]


@pytest.mark.parametrize("rating", [0, 6, -1, None])
def test_feedback_rating_out_of_range(empty_repository, make_book, rating):
    empty_repository.insert_front(make_book("a"))

    with pytest.raises(ValueError):
        empty_repository.add_feedback("a", rating)


def test_feedback_requires_book_id(empty_repository):
    with pytest.raises(ValueError):
        empty_repository.add_feedback("", 3)


def test_feedback_average(empty_repository, make_book):
    empty_repository.insert_front(make_book("a"))
    empty_repository.insert_front(make_book("b"))

    assert empty_repository.average_rating() is None
    empty_repository.add_feedback("a", 1, device_id="dev-1")
    empty_repository.add_feedback("a", 5, device_id="dev-1")
    empty_repository.add_feedback("b", 4)

    assert empty_repository.average_rating("a") == 3.0
    assert empty_repository.average_rating() == 3.33
    assert len(empty_repository.store.load("feedback")) == 3


def test_record_view_global_and_book(empty_repository, make_book):
    empty_repository.insert_front(make_book("a", views=0))

    counters, book = empty_repository.record_view("a", device_id="dev-1")
    counters, book = empty_repository.record_view(None, device_id="dev-1")
    counters, _ = empty_repository.record_view(None, device_id="dev-2")

    assert counters.total_views == 3
    assert counters.devices == ["dev-1", "dev-2"]
    assert book is None
    assert empty_repository.find_by_id("a").views == 1
    assert empty_repository.store.load("views") == {"totalViews": 3, "devices": ["dev-1", "dev-2"]}


def test_record_view_unknown_book_counts_nothing(empty_repository):
    assert empty_repository.record_view("nope") is None
    assert empty_repository.views.total_views == 0


def test_failed_persist_keeps_memory_state(empty_repository, make_book, tmp_path):
    empty_repository.insert_front(make_book("a", likes=0))
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    empty_repository.store.data_dir = blocker / "nested"

    assert empty_repository.like("a") == 1
    assert empty_repository.find_by_id("a").likes == 1


def test_stats(store):
    repo = CatalogRepository(store)
    repo.load()
    repo.add_feedback(repo.books[0].id, 4)

    stats = repo.stats()

    assert stats.total_books == 3
    assert stats.total_views == sum(b.views for b in repo.books)
    assert stats.average_rating == 4.0
    assert stats.genre_distribution == {"animal": 1, "educational": 1, "fairy": 1}
    assert stats.recent_books[0].title == "The Adventures of Sunny Bunny"


def test_views_file_loaded_on_start(store):
    store.data_dir.mkdir(parents=True, exist_ok=True)
    store.path_for("views").write_text(json.dumps({"totalViews": 12, "devices": ["x"]}))

    repo = CatalogRepository(store, seed=False)
    repo.load()

    assert repo.views.total_views == 12
    assert repo.views.devices == ["x"]


def test_file_with_only_invalid_records_is_not_reseeded(store, make_book):
    legacy = dict(make_book("legacy").to_json(), likes=-1)
    store.save("books", [legacy])

    repo = CatalogRepository(store, seed=True)
    repo.load()

    assert repo.books == []
    assert store.load("books") == [legacy]


def test_invalid_records_survive_later_saves(store, make_book):
    legacy = dict(make_book("legacy").to_json(), likes=-1)
    store.save("books", [make_book("good").to_json(), legacy])

    repo = CatalogRepository(store)
    repo.load()
    repo.like("good")

    saved = store.load("books")
    assert [r["id"] for r in saved] == ["good", "legacy"]
    assert saved[0]["likes"] == 1
    assert saved[1] == legacy
