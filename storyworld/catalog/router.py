"""
Route definitions for the catalogue API.

Endpoints under /api:
- GET    /books                   : list books with search/genre/sort/pagination
- POST   /books                   : upload a new book (multipart, cover + pdf)
- GET    /books/{book_id}         : one book with its comments
- POST   /books/{book_id}/like    : like a book
- DELETE /books/{book_id}/like    : take a like back
- POST   /books/{book_id}/comment : add a comment
- GET    /books/{book_id}/comments: comments, newest first
- POST   /feedback                : rate a book
- GET    /feedback                : list feedback (optionally for one book)
- POST   /views/increment         : count a page view
- GET    /stats                   : aggregate numbers for the dashboard
- GET    /genres                  : the genre list with book counts
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile

from ..config import Settings
from .genres import is_valid_genre
from .query import DEFAULT_LIMIT, DEFAULT_SORT, SortField
from .schemas import (
    Book,
    BookDetail,
    BookDetailResponse,
    BookListResponse,
    BookResponse,
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    FeedbackCreate,
    FeedbackListResponse,
    FeedbackResponse,
    GenreListResponse,
    LikesResponse,
    StatsResponse,
    ViewIncrement,
    ViewsResponse,
    utcnow,
)
from .store import CatalogRepository, new_id
from .uploads import COVER, PDF, read_upload, static_url, write_upload


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])

BOOK_NOT_FOUND = "Book not found"


def get_repository(request: Request) -> CatalogRepository:
    return request.app.state.repository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _split_tags(raw: Optional[str]) -> List[str]:
    return [t.strip() for t in (raw or "").split(",") if t.strip()]


@router.get("/books", response_model=BookListResponse)
def list_books(
    search: Optional[str] = Query(default=None, description="Text search (title/author/description/tags)"),
    genre: Optional[str] = Query(default=None, description="Genre code, or 'all'"),
    sort: SortField = Query(default=DEFAULT_SORT, description="newest, oldest, popular or likes"),
    page: int = Query(default=1, ge=1, description="1-indexed page"),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, description="Books per page"),
    repo: CatalogRepository = Depends(get_repository),
) -> BookListResponse:
    """
    Returns a page of books.

    Every book on the returned page has its view counter incremented:
    being listed counts as being viewed.
    """
    try:
        items, pagination = repo.browse(search=search, genre=genre, sort=sort, page=page, limit=limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BookListResponse(data=items, pagination=pagination)


@router.post("/books", response_model=BookResponse, status_code=201)
def upload_book(
    title: Optional[str] = Form(default=None),
    author: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    genre: Optional[str] = Form(default=None),
    age_group: Optional[str] = Form(default=None, alias="ageGroup"),
    tags: Optional[str] = Form(default=None),
    cover: Optional[UploadFile] = File(default=None),
    pdf: Optional[UploadFile] = File(default=None),
    repo: CatalogRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> BookResponse:
    fields = [title, author, description, genre, age_group]
    if any(not (f or "").strip() for f in fields):
        raise HTTPException(status_code=400, detail="All fields are required")
    genre = genre.strip()
    if not is_valid_genre(genre):
        raise HTTPException(status_code=400, detail=f"Invalid genre: {genre}")

    try:
        cover_data = read_upload(cover, COVER, settings.max_file_size)
        pdf_data = read_upload(pdf, PDF, settings.max_file_size)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    cover_filename = write_upload(cover_data, cover.filename, COVER, settings.upload_dir)
    pdf_filename = write_upload(pdf_data, pdf.filename, PDF, settings.upload_dir)

    now = utcnow()
    book = Book(
        id=new_id(),
        title=title.strip(),
        author=author.strip(),
        description=description.strip(),
        genre=genre,
        age_group=age_group.strip(),
        cover_filename=cover_filename,
        pdf_filename=pdf_filename,
        cover_url=static_url(COVER, cover_filename),
        pdf_url=static_url(PDF, pdf_filename),
        tags=_split_tags(tags),
        created_at=now,
        updated_at=now,
    )
    repo.insert_front(book)
    logger.info("Book uploaded: %s (%s)", book.title, book.id)
    return BookResponse(message="Book uploaded successfully!", data=book)


@router.get("/books/{book_id}", response_model=BookDetailResponse)
def get_book(book_id: str, repo: CatalogRepository = Depends(get_repository)) -> BookDetailResponse:
    book = repo.find_by_id(book_id)
    if book is None:
        raise HTTPException(status_code=404, detail=BOOK_NOT_FOUND)
    detail = BookDetail(**book.model_dump(), comments=repo.comments_for(book_id))
    return BookDetailResponse(data=detail)


@router.post("/books/{book_id}/like", response_model=LikesResponse)
def like_book(book_id: str, repo: CatalogRepository = Depends(get_repository)) -> LikesResponse:
    likes = repo.like(book_id)
    if likes is None:
        raise HTTPException(status_code=404, detail=BOOK_NOT_FOUND)
    return LikesResponse(likes=likes)


@router.delete("/books/{book_id}/like", response_model=LikesResponse)
def unlike_book(book_id: str, repo: CatalogRepository = Depends(get_repository)) -> LikesResponse:
    likes = repo.unlike(book_id)
    if likes is None:
        raise HTTPException(status_code=404, detail=BOOK_NOT_FOUND)
    return LikesResponse(likes=likes)


@router.post("/books/{book_id}/comment", response_model=CommentResponse, status_code=201)
def add_comment(
    book_id: str,
    req: CommentCreate,
    repo: CatalogRepository = Depends(get_repository),
) -> CommentResponse:
    try:
        comment = repo.add_comment(book_id, req.comment, author=req.author)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if comment is None:
        raise HTTPException(status_code=404, detail=BOOK_NOT_FOUND)
    return CommentResponse(data=comment)


@router.get("/books/{book_id}/comments", response_model=CommentListResponse)
def list_comments(book_id: str, repo: CatalogRepository = Depends(get_repository)) -> CommentListResponse:
    if repo.find_by_id(book_id) is None:
        raise HTTPException(status_code=404, detail=BOOK_NOT_FOUND)
    comments = repo.comments_for(book_id)
    return CommentListResponse(data=comments, count=len(comments))


@router.post("/feedback", response_model=FeedbackResponse, status_code=201)
def add_feedback(req: FeedbackCreate, repo: CatalogRepository = Depends(get_repository)) -> FeedbackResponse:
    try:
        entry = repo.add_feedback(req.book_id, req.rating, comment=req.comment, device_id=req.device_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if entry is None:
        raise HTTPException(status_code=404, detail=BOOK_NOT_FOUND)
    return FeedbackResponse(data=entry, average_rating=repo.average_rating(entry.book_id))


@router.get("/feedback", response_model=FeedbackListResponse)
def list_feedback(
    book_id: Optional[str] = Query(default=None, alias="bookId"),
    repo: CatalogRepository = Depends(get_repository),
) -> FeedbackListResponse:
    entries = repo.feedback_for(book_id)
    return FeedbackListResponse(data=entries, count=len(entries), average_rating=repo.average_rating(book_id))


@router.post("/views/increment", response_model=ViewsResponse)
def increment_views(
    req: Optional[ViewIncrement] = None,
    repo: CatalogRepository = Depends(get_repository),
) -> ViewsResponse:
    req = req or ViewIncrement()
    result = repo.record_view(book_id=req.book_id, device_id=req.device_id)
    if result is None:
        raise HTTPException(status_code=404, detail=BOOK_NOT_FOUND)
    counters, book = result
    return ViewsResponse(
        total_views=counters.total_views,
        unique_visitors=len(counters.devices),
        book_views=book.views if book is not None else None,
    )


@router.get("/stats", response_model=StatsResponse)
def get_stats(repo: CatalogRepository = Depends(get_repository)) -> StatsResponse:
    return StatsResponse(data=repo.stats())


@router.get("/genres", response_model=GenreListResponse)
def list_genres(repo: CatalogRepository = Depends(get_repository)) -> GenreListResponse:
    return GenreListResponse(data=repo.genres())
