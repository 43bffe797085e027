"""
Pydantic schema definitions for the catalog module.

The records stored on disk and returned over HTTP use camelCase keys
(``ageGroup``, ``coverUrl``, ``createdAt`` ...) because that is what the
front-end and the existing JSON files expect. On the Python side the
fields are snake_case; every model accepts either spelling when
parsing. Response wrappers always carry ``success`` so the front-end
can branch on a single flag.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict:
        """Dump the record the way it is written to the backing file."""
        return self.model_dump(mode="json", by_alias=True)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Legacy records may carry naive timestamps; treat them as UTC so
    # that sorting never compares naive and aware datetimes.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Book(_Record):
    """A single storybook.

    ``views`` and ``likes`` are the engagement counters; they never go
    below zero. ``cover_url`` and ``pdf_url`` point at the files served
    under ``/api/static``. ``tags`` keeps its first-seen order but drops
    duplicates and blanks.
    """

    id: str
    title: str
    author: str
    description: str = ""
    genre: str
    age_group: str = Field(default="all", alias="ageGroup")
    cover_filename: str = Field(default="", alias="coverFilename")
    pdf_filename: str = Field(default="", alias="pdfFilename")
    cover_url: str = Field(default="", alias="coverUrl")
    pdf_url: str = Field(default="", alias="pdfUrl")
    tags: List[str] = Field(default_factory=list)
    views: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, value: List[str]) -> List[str]:
        seen: List[str] = []
        for tag in value:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class Comment(_Record):
    id: str
    book_id: str = Field(alias="bookId")
    author: str = "Anonymous"
    comment: str
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class Feedback(_Record):
    id: str
    book_id: str = Field(alias="bookId")
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None
    device_id: Optional[str] = Field(default=None, alias="deviceId")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class ViewCounters(_Record):
    """Site-wide view counter plus the set of device ids seen so far."""

    total_views: int = Field(default=0, ge=0, alias="totalViews")
    devices: List[str] = Field(default_factory=list)


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(alias="currentPage")
    total_pages: int = Field(alias="totalPages")
    total_books: int = Field(alias="totalBooks")
    has_more: bool = Field(alias="hasMore")
    limit: int


# ---------------------------------------------------------------------------
# Request bodies
#
# Fields are optional here on purpose: presence and range checks happen
# in the repository so that the error messages are the human-readable
# ones the front-end shows, not pydantic's.


class CommentCreate(BaseModel):
    comment: Optional[str] = None
    author: Optional[str] = None


class FeedbackCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    book_id: Optional[str] = Field(default=None, alias="bookId")
    rating: Optional[int] = None
    comment: Optional[str] = None
    device_id: Optional[str] = Field(default=None, alias="deviceId")


class ViewIncrement(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    book_id: Optional[str] = Field(default=None, alias="bookId")
    device_id: Optional[str] = Field(default=None, alias="deviceId")


# ---------------------------------------------------------------------------
# Response envelopes


class BookDetail(Book):
    comments: List[Comment] = Field(default_factory=list)


class BookListResponse(BaseModel):
    success: bool = True
    data: List[Book]
    pagination: Pagination


class BookResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: Book


class BookDetailResponse(BaseModel):
    success: bool = True
    data: BookDetail


class LikesResponse(BaseModel):
    success: bool = True
    likes: int


class CommentResponse(BaseModel):
    success: bool = True
    data: Comment


class CommentListResponse(BaseModel):
    success: bool = True
    data: List[Comment]
    count: int


class FeedbackResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: Feedback
    average_rating: Optional[float] = Field(default=None, alias="averageRating")


class FeedbackListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: List[Feedback]
    count: int
    average_rating: Optional[float] = Field(default=None, alias="averageRating")


class ViewsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    total_views: int = Field(alias="totalViews")
    unique_visitors: int = Field(alias="uniqueVisitors")
    book_views: Optional[int] = Field(default=None, alias="bookViews")


class Stats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_books: int = Field(alias="totalBooks")
    total_views: int = Field(alias="totalViews")
    total_likes: int = Field(alias="totalLikes")
    total_comments: int = Field(alias="totalComments")
    total_feedback: int = Field(alias="totalFeedback")
    average_rating: Optional[float] = Field(default=None, alias="averageRating")
    site_views: int = Field(alias="siteViews")
    unique_visitors: int = Field(alias="uniqueVisitors")
    genre_distribution: Dict[str, int] = Field(alias="genreDistribution")
    age_group_distribution: Dict[str, int] = Field(alias="ageGroupDistribution")
    recent_books: List[Book] = Field(alias="recentBooks")


class StatsResponse(BaseModel):
    success: bool = True
    data: Stats


class Genre(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    name: str
    description: str
    icon: str
    color: str
    book_count: int = Field(default=0, alias="bookCount")


class GenreListResponse(BaseModel):
    success: bool = True
    data: List[Genre]
