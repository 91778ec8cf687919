"""
Write validation for authors and categories.

Each ``validate_*`` function performs read-only checks against the
session it is given and either raises one of the errors from
``puntolector.errors`` or returns the normalized values to persist. The
caller runs validation and the write inside the same transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Author, Book, Category, Nationality, book_categories
from . import hierarchy
from .schemas import AuthorWrite, CategoryWrite


@dataclass
class AuthorFields:
    name: str
    bio: Optional[str] = None
    birth_date: Optional[date] = None
    death_date: Optional[date] = None
    photo_url: Optional[str] = None
    nationality_id: Optional[str] = None


@dataclass
class CategoryFields:
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    parent_id: Optional[str] = None
    sort_order: int = 0
    level: int = 0


def _clean(value: Optional[str]) -> Optional[str]:
    """Trim ``value``; empty strings become ``None``."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_date(value: Optional[str], label: str) -> Optional[date]:
    """Parse an ISO calendar date (``YYYY-MM-DD``) or ISO datetime.

    Raises ``ValidationError`` with ``"Invalid <label> format"`` when the
    value cannot be read as a date.
    """
    value = _clean(value)
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError(f"Invalid {label} format") from None


def author_name_taken(session: Session, name: str, exclude_id: Optional[str] = None) -> bool:
    stmt = select(Author.id).where(func.lower(Author.name) == name.lower())
    if exclude_id:
        stmt = stmt.where(Author.id != exclude_id)
    return session.execute(stmt.limit(1)).first() is not None


def validate_author_write(
    session: Session, payload: AuthorWrite, existing_id: Optional[str] = None
) -> AuthorFields:
    name = _clean(payload.name)
    if not name:
        raise ValidationError("Author name is required")

    if existing_id is not None and session.get(Author, existing_id) is None:
        raise NotFoundError("Author not found")

    if author_name_taken(session, name, exclude_id=existing_id):
        if existing_id is None:
            raise ConflictError("An author with this name already exists")
        raise ConflictError("Another author with this name already exists")

    birth_date = parse_date(payload.birth_date, "birth date")
    death_date = parse_date(payload.death_date, "death date")
    if birth_date and death_date and death_date < birth_date:
        raise ValidationError("Death date cannot be before birth date")

    nationality_id = _clean(payload.nationality_id)
    if nationality_id and session.get(Nationality, nationality_id) is None:
        raise ValidationError("Invalid nationality selected")

    return AuthorFields(
        name=name,
        bio=_clean(payload.bio),
        birth_date=birth_date,
        death_date=death_date,
        photo_url=_clean(payload.photo_url),
        nationality_id=nationality_id,
    )


def validate_author_delete(session: Session, author_id: str) -> Author:
    author = session.get(Author, author_id)
    if author is None:
        raise NotFoundError("Author not found")
    books = session.execute(
        select(func.count(Book.id)).where(Book.author_id == author_id)
    ).scalar_one()
    if books > 0:
        raise ConflictError("Cannot delete author: has associated books")
    return author


def validate_category_write(
    session: Session, payload: CategoryWrite, existing_id: Optional[str] = None
) -> CategoryFields:
    name = _clean(payload.name)
    if not name:
        raise ValidationError("Name is required")

    if existing_id is not None and session.get(Category, existing_id) is None:
        raise NotFoundError("Category not found")

    parent_id = _clean(payload.parent_id)
    if parent_id:
        if session.get(Category, parent_id) is None:
            raise ValidationError("Parent category not found")
        if existing_id is not None:
            hierarchy.ensure_no_cycle(session, existing_id, parent_id)

    return CategoryFields(
        name=name,
        description=_clean(payload.description),
        color=_clean(payload.color),
        parent_id=parent_id,
        sort_order=payload.sort_order or 0,
        level=hierarchy.compute_level(session, parent_id),
    )


def validate_category_delete(session: Session, category_id: str) -> Category:
    category = session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    children = session.execute(
        select(func.count(Category.id)).where(Category.parent_id == category_id)
    ).scalar_one()
    if children > 0:
        raise ConflictError("Cannot delete category with subcategories")
    books = session.execute(
        select(func.count()).select_from(book_categories).where(
            book_categories.c.category_id == category_id
        )
    ).scalar_one()
    if books > 0:
        raise ConflictError("Cannot delete category with associated books")
    return category
