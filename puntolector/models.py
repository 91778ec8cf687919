# puntolector/models.py
from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


book_categories = Table(
    "book_categories",
    Base.metadata,
    Column("book_id", String(36), ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", String(36), ForeignKey("categories.id"), primary_key=True),
)


class Nationality(Base):
    __tablename__ = "nationalities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(120), unique=True)
    country_code: Mapped[Optional[str]] = mapped_column(String(3))
    flag_url: Mapped[Optional[str]] = mapped_column(Text)

    authors: Mapped[List["Author"]] = relationship(back_populates="nationality")

    def __repr__(self):
        return f"<Nationality(id={self.id}, name='{self.name}')>"


class Author(Base):
    __tablename__ = "authors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), index=True)
    bio: Mapped[Optional[str]] = mapped_column(Text)
    birth_date: Mapped[Optional[date]] = mapped_column(Date)
    death_date: Mapped[Optional[date]] = mapped_column(Date)
    photo_url: Mapped[Optional[str]] = mapped_column(Text)
    nationality_id: Mapped[Optional[str]] = mapped_column(ForeignKey("nationalities.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    nationality: Mapped[Optional[Nationality]] = relationship(back_populates="authors")
    books: Mapped[List["Book"]] = relationship(back_populates="author_ref")

    def __repr__(self):
        return f"<Author(id={self.id}, name='{self.name}')>"


# Authoritative duplicate guard; the validator's lookup is advisory.
Index("uq_authors_name_lower", func.lower(Author.name), unique=True)


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    color: Mapped[Optional[str]] = mapped_column(String(32))
    level: Mapped[int] = mapped_column(Integer, default=0)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    parent_id: Mapped[Optional[str]] = mapped_column(ForeignKey("categories.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    parent: Mapped[Optional["Category"]] = relationship(
        back_populates="children", remote_side="Category.id"
    )
    children: Mapped[List["Category"]] = relationship(
        back_populates="parent", order_by="Category.sort_order"
    )
    books: Mapped[List["Book"]] = relationship(
        secondary=book_categories, back_populates="categories"
    )

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', level={self.level})>"


class Book(Base):
    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255), index=True)
    author: Mapped[Optional[str]] = mapped_column(String(255))
    author_id: Mapped[Optional[str]] = mapped_column(ForeignKey("authors.id"), index=True)
    isbn: Mapped[Optional[str]] = mapped_column(String(20), unique=True)
    summary: Mapped[Optional[str]] = mapped_column(Text)
    language: Mapped[Optional[str]] = mapped_column(String(8))
    published_at: Mapped[Optional[date]] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    author_ref: Mapped[Optional[Author]] = relationship(back_populates="books")
    categories: Mapped[List[Category]] = relationship(
        secondary=book_categories, back_populates="books"
    )
    listings: Mapped[List["Listing"]] = relationship(back_populates="book")


class Store(Base):
    __tablename__ = "stores"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(120))
    address: Mapped[Optional[str]] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    listings: Mapped[List["Listing"]] = relationship(back_populates="store")


class Listing(Base):
    """A book offered by a store."""

    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    store_id: Mapped[str] = mapped_column(ForeignKey("stores.id"), index=True)
    book_id: Mapped[str] = mapped_column(ForeignKey("books.id"), index=True)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    currency: Mapped[Optional[str]] = mapped_column(String(3))
    stock: Mapped[int] = mapped_column(Integer, default=0)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    store: Mapped[Store] = relationship(back_populates="listings")
    book: Mapped[Book] = relationship(back_populates="listings")
