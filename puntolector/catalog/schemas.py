"""
Pydantic schema definitions for the catalog module.

Write payloads (``AuthorWrite``, ``CategoryWrite``) are deliberately
loose: every field is optional and dates travel as strings, so that the
validator in ``validation.py`` can reject bad input with its own
messages instead of a generic schema error. Response models mirror the
records returned by the admin front-end: related records are embedded
and aggregate counts are exposed under ``_count``.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthorWrite(BaseModel):
    """Create/update payload for an author. ``id`` is only used on update."""

    id: Optional[str] = None
    name: Optional[str] = None
    bio: Optional[str] = None
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    photo_url: Optional[str] = None
    nationality_id: Optional[str] = None


class CategoryWrite(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    parent_id: Optional[str] = None
    sort_order: Optional[int] = None


class Nationality(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    country_code: Optional[str] = None
    flag_url: Optional[str] = None


class AuthorCount(BaseModel):
    books: int = 0


class Author(BaseModel):
    """An author with its nationality and the number of books it wrote."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    name: str
    bio: Optional[str] = None
    birth_date: Optional[date] = None
    death_date: Optional[date] = None
    photo_url: Optional[str] = None
    nationality_id: Optional[str] = None
    nationality: Optional[Nationality] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    count: AuthorCount = Field(default_factory=AuthorCount, alias="_count")


class CategoryRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class CategoryCount(BaseModel):
    books: int = 0
    children: int = 0


class Category(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    level: int = 0
    sort_order: int = 0
    parent_id: Optional[str] = None
    parent: Optional[CategoryRef] = None
    children: List[CategoryRef] = Field(default_factory=list)
    count: CategoryCount = Field(default_factory=CategoryCount, alias="_count")


class CategoryNode(BaseModel):
    """One node of the navigation tree returned by ``/categories/tree``."""

    id: str
    name: str
    color: Optional[str] = None
    level: int = 0
    sort_order: int = 0
    children: List["CategoryNode"] = Field(default_factory=list)


class Book(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    author: Optional[str] = None
    author_id: Optional[str] = None
    isbn: Optional[str] = None
    summary: Optional[str] = None
    language: Optional[str] = None
    published_at: Optional[date] = None


class Store(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    city: Optional[str] = None
    address: Optional[str] = None
    active: bool = True


class ListingStore(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    city: Optional[str] = None


class ListingBook(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    author: Optional[str] = None


class Listing(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    store_id: str
    book_id: str
    price: Optional[Decimal] = None
    currency: Optional[str] = None
    stock: int = 0
    active: bool = True
    created_at: Optional[datetime] = None
    stores: ListingStore
    books: ListingBook


class Upload(BaseModel):
    url: str
    path: str
    bucket: str


class Message(BaseModel):
    message: str
