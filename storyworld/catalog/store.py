"""
Data store for the catalogue API.

``CatalogRepository`` owns the four in-memory collections (books,
comments, feedback and the view counters) and is the only thing that
talks to the ``JsonStore``. Every mutation changes the in-memory state
first and then writes the affected collection back as a whole. A
failed write is logged; the in-memory state is kept as is, so memory
and disk stay diverged until the next successful write.

Mutate-then-persist runs under a single ``threading.Lock`` so that two
request threads in the same process cannot lose each other's updates.
Separate processes sharing the same data directory are still last
writer wins.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..storage import JsonStore
from .genres import GENRES
from .query import DEFAULT_LIMIT, DEFAULT_SORT, query_books
from .schemas import Book, Comment, Feedback, Pagination, Stats, ViewCounters, utcnow


logger = logging.getLogger(__name__)

BOOKS = "books"
COMMENTS = "comments"
FEEDBACK = "feedback"
VIEWS = "views"

RecordT = TypeVar("RecordT", bound=BaseModel)


def new_id() -> str:
    return str(uuid.uuid4())


def _sample_book(title, author, description, genre, age_group, slug, views, likes, created_at):
    return Book(
        id=new_id(),
        title=title,
        author=author,
        description=description,
        genre=genre,
        age_group=age_group,
        cover_filename=f"sample-{slug}.jpg",
        pdf_filename=f"sample-{slug}.pdf",
        cover_url=f"/api/static/covers/sample-{slug}.jpg",
        pdf_url=f"/api/static/pdfs/sample-{slug}.pdf",
        tags=[genre],
        views=views,
        likes=likes,
        created_at=created_at,
        updated_at=created_at,
    )


def sample_books() -> List[Book]:
    """The books installed into an empty catalogue on first start."""
    return [
        _sample_book(
            "The Adventures of Sunny Bunny",
            "Emma Johnson",
            "Join Sunny Bunny on his magical adventure through the Enchanted Forest.",
            "animal",
            "3-5",
            "bunny",
            1245,
            89,
            "2024-01-15T10:30:00Z",
        ),
        _sample_book(
            "Counting with Colorful Cats",
            "Dr. Lisa Wang",
            "Learn numbers and colors with adorable rainbow cats.",
            "educational",
            "2-4",
            "cats",
            892,
            67,
            "2024-01-10T14:20:00Z",
        ),
        _sample_book(
            "Princess Luna's Starry Night",
            "Michael Chen",
            "A beautiful bedtime story about collecting stars.",
            "fairy",
            "4-6",
            "luna",
            540,
            41,
            "2024-01-05T19:00:00Z",
        ),
    ]


def _parse_records(raw: Iterable, model: Type[RecordT], name: str) -> Tuple[List[RecordT], List[object]]:
    """Split raw entries into parsed records and the entries that failed validation."""
    records: List[RecordT] = []
    rejected: List[object] = []
    for entry in raw:
        try:
            records.append(model.model_validate(entry))
        except ValidationError as exc:
            logger.warning("Skipping invalid %s record: %s", name, exc.errors()[:1])
            rejected.append(entry)
    return records, rejected


class CatalogRepository:
    def __init__(self, store: JsonStore, seed: bool = True):
        self.store = store
        self.seed = seed
        self.books: List[Book] = []
        self.comments: List[Comment] = []
        self.feedback: List[Feedback] = []
        self.views = ViewCounters()
        # raw entries that failed validation, written back untouched on save
        self._rejected: Dict[str, List[object]] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Read every collection from disk, seeding books if there are none."""
        raw_books = self.store.load(BOOKS)
        raw_comments = self.store.load(COMMENTS)
        raw_feedback = self.store.load(FEEDBACK)
        raw_views = self.store.load(VIEWS)

        with self._lock:
            self.books, self._rejected[BOOKS] = _parse_records(
                raw_books if isinstance(raw_books, list) else [], Book, BOOKS
            )
            self.comments, self._rejected[COMMENTS] = _parse_records(
                raw_comments if isinstance(raw_comments, list) else [], Comment, COMMENTS
            )
            self.feedback, self._rejected[FEEDBACK] = _parse_records(
                raw_feedback if isinstance(raw_feedback, list) else [], Feedback, FEEDBACK
            )
            try:
                self.views = ViewCounters.model_validate(raw_views) if isinstance(raw_views, dict) else ViewCounters()
            except ValidationError as exc:
                logger.warning("Ignoring invalid views document: %s", exc.errors()[:1])
                self.views = ViewCounters()

            # only a missing or empty books file gets the sample data
            if not raw_books and self.seed:
                logger.info("Seeding sample data...")
                self.books = sample_books()
                self._persist(BOOKS)

        logger.info(
            "Loaded %d books, %d comments, %d feedback entries",
            len(self.books),
            len(self.comments),
            len(self.feedback),
        )

    def _persist(self, name: str) -> bool:
        if name == BOOKS:
            data = [b.to_json() for b in self.books]
        elif name == COMMENTS:
            data = [c.to_json() for c in self.comments]
        elif name == FEEDBACK:
            data = [f.to_json() for f in self.feedback]
        elif name == VIEWS:
            data = self.views.to_json()
        else:
            raise ValueError(f"Unknown collection: {name}")
        if isinstance(data, list):
            data.extend(self._rejected.get(name, []))
        ok = self.store.save(name, data)
        if not ok:
            logger.error("Failed to persist %s; in-memory state kept", name)
        return ok

    # ------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------
    def list_books(self) -> List[Book]:
        return list(self.books)

    def find_by_id(self, book_id: str) -> Optional[Book]:
        return next((b for b in self.books if b.id == str(book_id)), None)

    def insert_front(self, book: Book) -> Book:
        """Prepend ``book``; its id must already be unique."""
        with self._lock:
            if self.find_by_id(book.id) is not None:
                raise ValueError(f"Duplicate book id: {book.id}")
            self.books.insert(0, book)
            self._persist(BOOKS)
        return book

    def browse(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        sort: str = DEFAULT_SORT,
        page: int = 1,
        limit: int = DEFAULT_LIMIT,
    ) -> Tuple[List[Book], Pagination]:
        """Run a catalogue query and count every listed book as viewed."""
        with self._lock:
            items, pagination = query_books(
                self.books, search=search, genre=genre, sort=sort, page=page, limit=limit
            )
            if items:
                now = utcnow()
                for book in items:
                    book.views += 1
                    book.updated_at = now
                self._persist(BOOKS)
        return items, pagination

    def _bump(self, book_id: str, field: str, delta: int) -> Optional[Book]:
        with self._lock:
            book = self.find_by_id(book_id)
            if book is None:
                return None
            setattr(book, field, max(0, getattr(book, field) + delta))
            book.updated_at = utcnow()
            self._persist(BOOKS)
        return book

    def increment_views(self, book_id: str) -> Optional[Book]:
        return self._bump(book_id, "views", 1)

    def increment_likes(self, book_id: str) -> Optional[Book]:
        return self._bump(book_id, "likes", 1)

    def decrement_likes(self, book_id: str) -> Optional[Book]:
        return self._bump(book_id, "likes", -1)

    def like(self, book_id: str) -> Optional[int]:
        book = self.increment_likes(book_id)
        return book.likes if book else None

    def unlike(self, book_id: str) -> Optional[int]:
        book = self.decrement_likes(book_id)
        return book.likes if book else None

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------
    def add_comment(self, book_id: str, text: Optional[str], author: Optional[str] = None) -> Optional[Comment]:
        text = (text or "").strip()
        if not text:
            raise ValueError("Comment cannot be empty")
        with self._lock:
            if self.find_by_id(book_id) is None:
                return None
            comment = Comment(
                id=new_id(),
                book_id=str(book_id),
                author=(author or "").strip() or "Anonymous",
                comment=text,
            )
            self.comments.append(comment)
            self._persist(COMMENTS)
        return comment

    def comments_for(self, book_id: str) -> List[Comment]:
        """Comments on a book, newest first."""
        found = [c for c in self.comments if c.book_id == str(book_id)]
        found.sort(key=lambda c: c.created_at, reverse=True)
        return found

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------
    def add_feedback(
        self,
        book_id: Optional[str],
        rating: Optional[int],
        comment: Optional[str] = None,
        device_id: Optional[str] = None,
    ) -> Optional[Feedback]:
        book_id = (book_id or "").strip()
        if not book_id:
            raise ValueError("Book ID is required")
        if rating is None or isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValueError("Rating must be between 1 and 5")
        with self._lock:
            if self.find_by_id(book_id) is None:
                return None
            entry = Feedback(
                id=new_id(),
                book_id=book_id,
                rating=rating,
                comment=(comment or "").strip() or None,
                device_id=(device_id or "").strip() or None,
            )
            self.feedback.append(entry)
            self._persist(FEEDBACK)
        return entry

    def feedback_for(self, book_id: Optional[str] = None) -> List[Feedback]:
        if book_id is None:
            return list(self.feedback)
        return [f for f in self.feedback if f.book_id == str(book_id)]

    def average_rating(self, book_id: Optional[str] = None) -> Optional[float]:
        ratings = [f.rating for f in self.feedback_for(book_id)]
        if not ratings:
            return None
        return round(sum(ratings) / len(ratings), 2)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def record_view(
        self, book_id: Optional[str] = None, device_id: Optional[str] = None
    ) -> Optional[Tuple[ViewCounters, Optional[Book]]]:
        """Count one view site-wide and, when given, on a single book.

        Returns ``None`` if ``book_id`` names an unknown book; nothing
        is counted in that case.
        """
        with self._lock:
            book = None
            if book_id:
                book = self.find_by_id(book_id)
                if book is None:
                    return None
                book.views += 1
                book.updated_at = utcnow()
            self.views.total_views += 1
            device_id = (device_id or "").strip()
            if device_id and device_id not in self.views.devices:
                self.views.devices.append(device_id)
            self._persist(VIEWS)
            if book is not None:
                self._persist(BOOKS)
        return self.views, book

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------
    def genre_counts(self) -> Dict[str, int]:
        return dict(Counter(b.genre for b in self.books))

    def genres(self) -> List[dict]:
        counts = self.genre_counts()
        return [dict(g, book_count=counts.get(g["code"], 0)) for g in GENRES]

    def stats(self) -> Stats:
        recent = sorted(self.books, key=lambda b: b.created_at, reverse=True)[:5]
        return Stats(
            total_books=len(self.books),
            total_views=sum(b.views for b in self.books),
            total_likes=sum(b.likes for b in self.books),
            total_comments=len(self.comments),
            total_feedback=len(self.feedback),
            average_rating=self.average_rating(),
            site_views=self.views.total_views,
            unique_visitors=len(self.views.devices),
            genre_distribution=self.genre_counts(),
            age_group_distribution=dict(Counter(b.age_group for b in self.books)),
            recent_books=recent,
        )
