"""
Pytest configuration and fixtures.
"""

import pytest
from fastapi.testclient import TestClient

from storyworld.catalog.schemas import Book
from storyworld.catalog.store import CatalogRepository
from storyworld.config import Settings
from storyworld.main import create_app
from storyworld.storage import JsonStore


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a throwaway data and upload directory."""
    return Settings(
        data_dir=tmp_path / "data",
        upload_dir=tmp_path / "uploads",
        max_file_size=1024,
        seed_sample_data=True,
    )


@pytest.fixture
def app(settings):
    """Create a test FastAPI application with seeded sample books."""
    return create_app(settings)


@pytest.fixture
def client(app):
    """Create a test client."""
    return TestClient(app)


@pytest.fixture
def repository(app):
    return app.state.repository


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "store")


def _make_book(book_id, title="A Book", **kwargs):
    fields = dict(
        id=book_id,
        title=title,
        author=kwargs.pop("author", "Someone"),
        description=kwargs.pop("description", ""),
        genre=kwargs.pop("genre", "animal"),
        created_at=kwargs.pop("created_at", "2024-01-01T00:00:00Z"),
    )
    fields.update(kwargs)
    return Book(**fields)


@pytest.fixture
def make_book():
    """Factory for Book records with sensible defaults."""
    return _make_book


@pytest.fixture
def empty_repository(store):
    repo = CatalogRepository(store, seed=False)
    repo.load()
    return repo
