"""
Relational data access for the catalogue API.

Reads return response schemas with their related records and aggregate
counts already attached; writes take the normalized fields produced by
``validation.py``. Nothing here opens or commits a transaction: the
router owns the transaction so that validation and the write share it.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..errors import ConflictError
from ..models import Author, Book, Category, Listing, Nationality, Store, book_categories
from . import hierarchy, schemas
from .validation import AuthorFields, CategoryFields


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Counts

def _author_book_counts(session: Session, author_ids: List[str]) -> Dict[str, int]:
    if not author_ids:
        return {}
    rows = session.execute(
        select(Book.author_id, func.count(Book.id))
        .where(Book.author_id.in_(author_ids))
        .group_by(Book.author_id)
    )
    return {author_id: count for author_id, count in rows}


def _category_book_counts(session: Session, category_ids: List[str]) -> Dict[str, int]:
    if not category_ids:
        return {}
    rows = session.execute(
        select(book_categories.c.category_id, func.count())
        .where(book_categories.c.category_id.in_(category_ids))
        .group_by(book_categories.c.category_id)
    )
    return {category_id: count for category_id, count in rows}


# ---------------------------------------------------------------------------
# Serialization

def _author_out(author: Author, book_count: int) -> schemas.Author:
    return schemas.Author(
        id=author.id,
        name=author.name,
        bio=author.bio,
        birth_date=author.birth_date,
        death_date=author.death_date,
        photo_url=author.photo_url,
        nationality_id=author.nationality_id,
        nationality=(
            schemas.Nationality.model_validate(author.nationality)
            if author.nationality is not None
            else None
        ),
        created_at=author.created_at,
        updated_at=author.updated_at,
        count=schemas.AuthorCount(books=book_count),
    )


def _category_out(category: Category, book_count: int) -> schemas.Category:
    children = sorted(category.children, key=lambda c: (c.sort_order or 0, c.name))
    return schemas.Category(
        id=category.id,
        name=category.name,
        description=category.description,
        color=category.color,
        level=category.level,
        sort_order=category.sort_order,
        parent_id=category.parent_id,
        parent=(
            schemas.CategoryRef.model_validate(category.parent)
            if category.parent is not None
            else None
        ),
        children=[schemas.CategoryRef.model_validate(c) for c in children],
        count=schemas.CategoryCount(books=book_count, children=len(children)),
    )


# ---------------------------------------------------------------------------
# Authors

def list_authors(session: Session) -> List[schemas.Author]:
    authors = session.scalars(
        select(Author).options(selectinload(Author.nationality)).order_by(Author.name)
    ).all()
    counts = _author_book_counts(session, [a.id for a in authors])
    return [_author_out(a, counts.get(a.id, 0)) for a in authors]


def get_author(session: Session, author_id: str) -> Optional[schemas.Author]:
    author = session.get(Author, author_id)
    if author is None:
        return None
    session.refresh(author, ["nationality"])
    counts = _author_book_counts(session, [author.id])
    return _author_out(author, counts.get(author.id, 0))


def _flush_author(session: Session, author: Author, conflict_message: str) -> None:
    try:
        session.flush()
    except IntegrityError:
        logger.info("Unique index rejected author name %r", author.name)
        raise ConflictError(conflict_message) from None


def create_author(session: Session, fields: AuthorFields) -> Author:
    author = Author(
        name=fields.name,
        bio=fields.bio,
        birth_date=fields.birth_date,
        death_date=fields.death_date,
        photo_url=fields.photo_url,
        nationality_id=fields.nationality_id,
    )
    session.add(author)
    _flush_author(session, author, "An author with this name already exists")
    logger.info("Created author %s (%s)", author.id, author.name)
    return author


def update_author(session: Session, author_id: str, fields: AuthorFields) -> Author:
    author = session.get(Author, author_id)
    author.name = fields.name
    author.bio = fields.bio
    author.birth_date = fields.birth_date
    author.death_date = fields.death_date
    author.photo_url = fields.photo_url
    author.nationality_id = fields.nationality_id
    _flush_author(session, author, "Another author with this name already exists")
    logger.info("Updated author %s", author.id)
    return author


def delete_author(session: Session, author: Author) -> None:
    session.delete(author)
    session.flush()
    logger.info("Deleted author %s", author.id)


# ---------------------------------------------------------------------------
# Categories

def load_categories(session: Session) -> List[Category]:
    return list(
        session.scalars(
            select(Category).order_by(Category.level, Category.sort_order, Category.name)
        ).all()
    )


def list_categories(session: Session) -> List[schemas.Category]:
    categories = session.scalars(
        select(Category)
        .options(selectinload(Category.parent), selectinload(Category.children))
        .order_by(Category.level, Category.sort_order, Category.name)
    ).all()
    counts = _category_book_counts(session, [c.id for c in categories])
    return [_category_out(c, counts.get(c.id, 0)) for c in categories]


def get_category(session: Session, category_id: str) -> Optional[schemas.Category]:
    category = session.get(Category, category_id)
    if category is None:
        return None
    session.refresh(category, ["parent", "children"])
    counts = _category_book_counts(session, [category.id])
    return _category_out(category, counts.get(category.id, 0))


def create_category(session: Session, fields: CategoryFields) -> Category:
    category = Category(
        name=fields.name,
        description=fields.description,
        color=fields.color,
        parent_id=fields.parent_id,
        level=fields.level,
        sort_order=fields.sort_order,
    )
    session.add(category)
    session.flush()
    logger.info("Created category %s (%s) at level %d", category.id, category.name, category.level)
    return category


def update_category(session: Session, category_id: str, fields: CategoryFields) -> Category:
    category = session.get(Category, category_id)
    moved = category.parent_id != fields.parent_id or category.level != fields.level
    category.name = fields.name
    category.description = fields.description
    category.color = fields.color
    category.parent_id = fields.parent_id
    category.level = fields.level
    category.sort_order = fields.sort_order
    session.flush()
    if moved:
        hierarchy.relevel_descendants(session, category)
    logger.info("Updated category %s", category.id)
    return category


def delete_category(session: Session, category: Category) -> None:
    session.delete(category)
    session.flush()
    logger.info("Deleted category %s", category.id)


# ---------------------------------------------------------------------------
# Reference data and read-only listings

def list_nationalities(session: Session) -> List[Nationality]:
    return list(session.scalars(select(Nationality).order_by(Nationality.name)).all())


def _contains(column, text: str):
    """Case-insensitive ``column contains text``; ``%`` and ``_`` match literally."""
    escaped = text.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return func.lower(column).like(f"%{escaped}%", escape="\\")


def search_books(
    session: Session,
    search: Optional[str] = None,
    author: Optional[str] = None,
    limit: int = 50,
) -> List[Book]:
    """Case-insensitive substring search on title and author, ordered by title."""
    stmt = select(Book)
    if search:
        stmt = stmt.where(or_(_contains(Book.title, search), _contains(Book.author, search)))
    if author:
        stmt = stmt.where(_contains(Book.author, author))
    stmt = stmt.order_by(Book.title).limit(limit)
    return list(session.scalars(stmt).all())


def list_stores(session: Session, active: bool = True) -> List[Store]:
    return list(
        session.scalars(select(Store).where(Store.active == active).order_by(Store.name)).all()
    )


def list_listings(
    session: Session,
    store_id: Optional[str] = None,
    book_id: Optional[str] = None,
    active: bool = True,
) -> List[schemas.Listing]:
    stmt = (
        select(Listing)
        .options(selectinload(Listing.store), selectinload(Listing.book))
        .where(Listing.active == active)
    )
    if store_id:
        stmt = stmt.where(Listing.store_id == store_id)
    if book_id:
        stmt = stmt.where(Listing.book_id == book_id)
    stmt = stmt.order_by(Listing.created_at.desc())
    return [
        schemas.Listing(
            id=listing.id,
            store_id=listing.store_id,
            book_id=listing.book_id,
            price=listing.price,
            currency=listing.currency,
            stock=listing.stock,
            active=listing.active,
            created_at=listing.created_at,
            stores=schemas.ListingStore.model_validate(listing.store),
            books=schemas.ListingBook.model_validate(listing.book),
        )
        for listing in session.scalars(stmt).all()
    ]
