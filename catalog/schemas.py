import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


# --- Credentials ---

class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class Principal(BaseModel):
    """Identity resolved from a verified bearer token; lives for one request."""

    id: uuid.UUID


# --- Author ---

class AuthorResponse(BaseModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    model_config = ConfigDict(from_attributes=True)


# --- Article ---

class ArticleCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    publication_date: datetime


class ArticleUpdate(BaseModel):
    """
    Partial update payload.

    Only fields present in the request body are applied
    (``model_dump(exclude_unset=True)``); an omitted field keeps its stored
    value. Explicit ``null`` is rejected because every column is required.
    """

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)
    publication_date: datetime | None = None

    @field_validator("title", "description", "publication_date")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class ArticleResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    publication_date: datetime
    author_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    author: AuthorResponse | None = None


# --- Collection queries ---

class FilterSpec(BaseModel):
    """Filter and pagination request for the article collection."""

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)
    author_id: uuid.UUID | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    search: str | None = None

    @field_validator("search")
    @classmethod
    def _blank_search_is_no_search(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


class PageResult(BaseModel):
    data: list[ArticleResponse]
    total: int
    page: int
    limit: int
    total_pages: int


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_articles: int
    total_users: int
    cache_info: dict = {}
