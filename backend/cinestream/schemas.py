"""Pydantic schemas used across the backend API."""
from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Annotated, Any, List, Optional, Type, TypeVar, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import InvalidInputError


def _reject_at_sign(value: str) -> str:
    if "@" in value:
        raise ValueError("username may not contain '@'")
    return value


def _dedupe(tags: List[str]) -> List[str]:
    return list(dict.fromkeys(tags))


NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
GenreTag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Username = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=3, max_length=50),
    AfterValidator(_reject_at_sign),
]
Password = Annotated[str, StringConstraints(min_length=6, max_length=128)]
GenreList = Annotated[List[GenreTag], Field(min_length=1), AfterValidator(_dedupe)]

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(model: Type[ModelT], data: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Validate raw input into `model`, reporting the first bad field."""

    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise InvalidInputError(first["msg"], field=field) from exc


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class Token(BaseModel):
    """JWT response payload."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class UserLogin(BaseModel):
    """Credentials supplied during login; either identifier is accepted."""

    email: Optional[str] = None
    username: Optional[str] = None
    password: str

    @model_validator(mode="after")
    def _require_identifier(self) -> "UserLogin":
        if not (self.email or self.username):
            raise ValueError("email or username is required")
        return self

    @property
    def identifier(self) -> str:
        return (self.email or self.username or "").strip()


class UserCreate(BaseModel):
    """Payload for user registration."""

    username: Username
    email: EmailStr
    password: Password


class ProfileUpdate(BaseModel):
    """Self-service profile fields. Role changes are not accepted here."""

    model_config = ConfigDict(extra="forbid")

    username: Optional[Username] = None
    email: Optional[EmailStr] = None
    password: Optional[Password] = None


class UserRead(BaseModel):
    """Public representation of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: EmailStr
    is_admin: bool
    created_at: datetime


class AuthResponse(Token):
    """Identity plus a freshly issued token."""

    id: int
    username: str
    email: EmailStr
    is_admin: bool


class VideoSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    thumbnail_url: str


class ProfileRead(UserRead):
    watchlist: List[VideoSummary] = Field(default_factory=list)
    watch_history: List[VideoSummary] = Field(default_factory=list)


class WatchlistRead(BaseModel):
    message: str
    watchlist: List[int]


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class VideoCreate(BaseModel):
    """Admin payload for a new catalog item.

    Publish and feature flags are ignored: new items always start hidden.
    """

    model_config = ConfigDict(extra="ignore")

    title: Title
    description: NonEmptyText
    director: NonEmptyText
    thumbnail_url: NonEmptyText
    content_url: NonEmptyText
    duration_seconds: int = Field(ge=0)
    genres: GenreList
    cast: List[NonEmptyText] = Field(default_factory=list)
    release_year: int = Field(ge=1800, le=2100)
    rating: float = Field(default=0.0, ge=0, le=5)


class VideoUpdate(BaseModel):
    """Partial update limited to editable catalog fields."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[Title] = None
    description: Optional[NonEmptyText] = None
    director: Optional[NonEmptyText] = None
    thumbnail_url: Optional[NonEmptyText] = None
    content_url: Optional[NonEmptyText] = None
    duration_seconds: Optional[int] = Field(default=None, ge=0)
    genres: Optional[GenreList] = None
    cast: Optional[List[NonEmptyText]] = None
    release_year: Optional[int] = Field(default=None, ge=1800, le=2100)
    rating: Optional[float] = Field(default=None, ge=0, le=5)

    @field_validator("*")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("field may not be null")
        return value


class VideoRead(BaseModel):
    """Catalog item as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    director: str
    thumbnail_url: str
    content_url: str
    duration_seconds: int
    formatted_duration: str
    genres: List[str]
    cast: List[str]
    release_year: int
    rating: float
    views: int
    is_published: bool
    is_featured: bool
    created_at: datetime
    updated_at: datetime


class VideoPage(BaseModel):
    videos: List[VideoRead]
    page: int
    pages: int
    total: int
