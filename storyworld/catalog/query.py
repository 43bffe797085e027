"""
Filtering, sorting and pagination over the in-memory book collection.

This module is pure: it never mutates the books it is given and never
touches disk. The repository decides what to do with the page (for
instance counting it as a view).
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from typing_extensions import Literal

from .schemas import Book, Pagination

SortField = Literal["newest", "oldest", "popular", "likes"]

# key function and whether the order is descending
_SORTS: Dict[str, Tuple[Callable[[Book], object], bool]] = {
    "newest": (lambda b: b.created_at, True),
    "oldest": (lambda b: b.created_at, False),
    "popular": (lambda b: b.views, True),
    "likes": (lambda b: b.likes, True),
}

DEFAULT_SORT = "newest"
DEFAULT_LIMIT = 12
MAX_LIMIT = 100


def _norm(s: Optional[str]) -> str:
    """Normalize a string for case-insensitive comparison."""
    return (s or "").strip().lower()


def matches_search(book: Book, term: str) -> bool:
    """Return True when ``term`` (already normalized) occurs in the book.

    The title, author, description and every tag are checked for a
    substring match. An empty term matches every book.
    """
    if not term:
        return True
    fields = [book.title, book.author, book.description]
    if any(term in _norm(f) for f in fields):
        return True
    return any(term in _norm(t) for t in book.tags)


def query_books(
    books: Sequence[Book],
    search: Optional[str] = None,
    genre: Optional[str] = None,
    sort: SortField = DEFAULT_SORT,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> Tuple[List[Book], Pagination]:
    """Filter, sort and slice ``books``.

    Parameters
    ----------
    books : Sequence[Book]
        The collection in its stored order (newest insertions first).
    search : Optional[str]
        Free-text term; see ``matches_search``.
    genre : Optional[str]
        Exact genre code. ``None``, empty or ``"all"`` disables the filter.
    sort : str
        One of ``newest``, ``oldest``, ``popular``, ``likes``. Ties keep
        the stored order.
    page : int
        1-indexed page number. Pages past the end yield no items.
    limit : int
        Page size.

    Returns
    -------
    Tuple[List[Book], Pagination]
        The books on the requested page and the pagination metadata.
    """
    if sort not in _SORTS:
        raise ValueError(f"Invalid sort option: {sort}")
    if page < 1:
        raise ValueError("Page must be 1 or greater")
    if limit < 1:
        raise ValueError("Limit must be 1 or greater")
    limit = min(limit, MAX_LIMIT)

    term = _norm(search)
    genre = (genre or "").strip()

    items = [b for b in books if matches_search(b, term)]
    if genre and genre != "all":
        items = [b for b in items if b.genre == genre]

    key, descending = _SORTS[sort]
    # list.sort is stable, including with reverse=True
    items.sort(key=key, reverse=descending)

    total = len(items)
    total_pages = (total + limit - 1) // limit
    start = (page - 1) * limit
    end = start + limit
    pagination = Pagination(
        current_page=page,
        total_pages=total_pages,
        total_books=total,
        has_more=page < total_pages,
        limit=limit,
    )
    return items[start:end], pagination
