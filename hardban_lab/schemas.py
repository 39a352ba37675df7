# Request models
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

Status = Literal["active", "inactive"]
ReleaseType = Literal["single", "ep", "album"]
ChapterStatus = Literal["draft", "review", "published"]


class PartialUpdate(BaseModel):
    """Update body: fields may be left out, but NOT NULL columns cannot be sent as null."""

    not_nullable: ClassVar[tuple] = ()

    @model_validator(mode="after")
    def reject_nulls(self):
        nulls = [name for name in self.not_nullable if name in self.model_fields_set and getattr(self, name) is None]
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self


# --- auth ---

class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_]+$")
    password: str = Field(min_length=8, max_length=128)
    email: Optional[str] = Field(default=None, max_length=255)
    display_name: Optional[str] = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    username: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class RoleUpdate(BaseModel):
    role: str


# --- music ---

class ArtistBase(BaseModel):
    stage_name: Optional[str] = Field(default=None, max_length=100)
    biography: Optional[str] = Field(default=None, max_length=5000)
    genres: Optional[List[str]] = Field(default=None, max_length=10)
    country: Optional[str] = Field(default=None, pattern=r"^[A-Z]{2}$")
    profile_image: Optional[str] = None
    social_links: Optional[Dict[str, Any]] = None
    contact_email: Optional[str] = Field(default=None, max_length=255)

    @field_validator("genres")
    @classmethod
    def check_genres(cls, value):
        if value is None:
            return value
        for genre in value:
            if not genre.strip() or len(genre) > 50:
                raise ValueError("each genre must be 1-50 characters")
        return [genre.strip() for genre in value]


class ArtistCreate(ArtistBase):
    name: str = Field(min_length=1, max_length=100)
    status: Status = "active"
    is_verified: bool = False


class ArtistUpdate(ArtistBase, PartialUpdate):
    not_nullable = ("name", "status", "is_verified")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    status: Optional[Status] = None
    is_verified: Optional[bool] = None


class ReleaseBase(BaseModel):
    genre: Optional[str] = Field(default=None, max_length=100)
    label: Optional[str] = Field(default=None, max_length=255)
    upc: Optional[str] = None
    release_date: Optional[date] = None
    cover_url: Optional[str] = None
    audio_url: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class ReleaseCreate(ReleaseBase):
    artist_id: int
    title: str = Field(min_length=1, max_length=255)
    release_type: ReleaseType = "single"


class ReleaseUpdate(ReleaseBase, PartialUpdate):
    not_nullable = ("title", "release_type")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    release_type: Optional[ReleaseType] = None


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class CloneRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    release_type: Optional[ReleaseType] = None
    release_date: Optional[date] = None


class TrackCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    track_number: Optional[int] = Field(default=None, ge=1)
    isrc: Optional[str] = None
    duration_seconds: Optional[int] = Field(default=None, ge=1, le=7200)
    explicit: bool = False
    audio_url: Optional[str] = None


class TrackUpdate(PartialUpdate):
    not_nullable = ("title", "track_number", "explicit")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    track_number: Optional[int] = Field(default=None, ge=1)
    isrc: Optional[str] = None
    duration_seconds: Optional[int] = Field(default=None, ge=1, le=7200)
    explicit: Optional[bool] = None
    audio_url: Optional[str] = None


class SplitIn(BaseModel):
    name: str
    role: str = "artist"
    percentage: Decimal


class SplitsReplace(BaseModel):
    splits: List[SplitIn] = Field(min_length=1)


class RoyaltyCreate(BaseModel):
    release_id: int
    platform: Optional[str] = Field(default=None, max_length=100)
    period_start: date
    period_end: date
    streams: int = Field(default=0, ge=0)
    gross_revenue: Decimal = Field(ge=0)
    net_revenue: Optional[Decimal] = Field(default=None, ge=0)


class PayoutCreate(BaseModel):
    artist_id: int
    amount: Decimal
    currency: str = Field(default="USD", min_length=3, max_length=3)
    method: Literal["bank_transfer", "paypal", "stripe", "wise"]
    notes: Optional[str] = None


class FailRequest(BaseModel):
    reason: Optional[str] = None


class DistributionSubmit(BaseModel):
    channel_ids: Optional[List[int]] = None


class DeliveryUpdate(BaseModel):
    status: str
    platform_url: Optional[str] = None
    error_message: Optional[str] = None


class MusicAnalyticsCreate(BaseModel):
    release_id: int
    platform: str = Field(min_length=1, max_length=255)
    date: date
    streams: int = Field(default=0, ge=0)
    revenue: Decimal = Field(default=Decimal("0"), ge=0)


class TaskCreate(BaseModel):
    text: str
    due_date: Optional[date] = None

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value):
        if not value.strip():
            raise ValueError("task text is required")
        return value.strip()


class TaskUpdate(BaseModel):
    completed: bool


# --- publishing ---

class AuthorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    bio: Optional[str] = None
    contact_email: Optional[str] = Field(default=None, max_length=255)
    status: Status = "active"


class AuthorUpdate(PartialUpdate):
    not_nullable = ("name", "status")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    bio: Optional[str] = None
    contact_email: Optional[str] = Field(default=None, max_length=255)
    status: Optional[Status] = None


class BookRights(BaseModel):
    territorial: bool = False
    translation: bool = False
    adaptation: bool = False
    audio: bool = False
    drm: bool = False


class ChapterIn(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: Optional[str] = None


class BookBase(BaseModel):
    isbn: Optional[str] = None
    description: Optional[str] = None
    genre: Optional[str] = Field(default=None, max_length=100)
    page_count: Optional[int] = Field(default=None, ge=1)
    price: Optional[Decimal] = Field(default=None, ge=0)
    keywords: Optional[str] = None
    cover_url: Optional[str] = None
    rights: Optional[BookRights] = None
    chapters: Optional[List[ChapterIn]] = None
    splits: Optional[List[SplitIn]] = None


class BookCreate(BookBase):
    author_id: int
    title: str = Field(min_length=1, max_length=255)
    language: str = Field(default="en", pattern=r"^[a-z]{2}$")


class BookUpdate(BookBase, PartialUpdate):
    not_nullable = ("title", "language")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    language: Optional[str] = Field(default=None, pattern=r"^[a-z]{2}$")


class ChapterCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: Optional[str] = None
    chapter_number: Optional[int] = Field(default=None, ge=1)
    status: ChapterStatus = "draft"


class ChapterUpdate(PartialUpdate):
    not_nullable = ("title", "chapter_number", "status")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = None
    chapter_number: Optional[int] = Field(default=None, ge=1)
    status: Optional[ChapterStatus] = None


class ChapterOrder(BaseModel):
    chapter_ids: List[int]


class StoreSubmit(BaseModel):
    store_ids: Optional[List[int]] = None


class PublishingAnalyticsCreate(BaseModel):
    book_id: int
    store: str = Field(min_length=1, max_length=255)
    date: date
    sales: int = Field(default=0, ge=0)
    revenue: Decimal = Field(default=Decimal("0"), ge=0)
