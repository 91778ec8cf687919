"""
Route definitions for the catalogue API.

Endpoints under /api:
- GET/POST/PUT/DELETE /authors     : author administration
- GET/POST/PUT/DELETE /categories  : category administration
- GET  /categories/tree            : nested category navigation
- GET  /nationalities              : reference data
- GET  /books, /stores, /listings  : read-only catalogue listings
- POST/DELETE /upload              : image upload to object storage

Every write runs validation and persistence inside one transaction.
Catalog errors propagate to the handler installed in ``main.py``;
database failures are logged and reported with a generic message.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import settings
from ..database import get_session
from ..errors import UnexpectedError, ValidationError
from ..storage import StorageError
from . import hierarchy, schemas, store, validation


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])


# ---------------------------------------------------------------------------
# Authors

@router.get("/authors", response_model=List[schemas.Author])
def list_authors(session: Session = Depends(get_session)):
    try:
        return store.list_authors(session)
    except SQLAlchemyError:
        logger.exception("Error fetching authors")
        raise UnexpectedError("Error loading authors")


@router.post("/authors", response_model=schemas.Author, status_code=201)
def create_author(payload: schemas.AuthorWrite, session: Session = Depends(get_session)):
    try:
        with session.begin():
            fields = validation.validate_author_write(session, payload)
            author = store.create_author(session, fields)
            return store.get_author(session, author.id)
    except SQLAlchemyError:
        logger.exception("Error creating author")
        raise UnexpectedError("Error creating author")


@router.put("/authors", response_model=schemas.Author)
def update_author(payload: schemas.AuthorWrite, session: Session = Depends(get_session)):
    if not payload.id:
        raise ValidationError("Author ID is required")
    try:
        with session.begin():
            fields = validation.validate_author_write(session, payload, existing_id=payload.id)
            author = store.update_author(session, payload.id, fields)
            return store.get_author(session, author.id)
    except SQLAlchemyError:
        logger.exception("Error updating author")
        raise UnexpectedError("Error updating author")


@router.delete("/authors", response_model=schemas.Message)
def delete_author(
    id: Optional[str] = Query(default=None, description="Author id"),
    session: Session = Depends(get_session),
):
    if not id:
        raise ValidationError("Author ID is required")
    try:
        with session.begin():
            author = validation.validate_author_delete(session, id)
            store.delete_author(session, author)
    except SQLAlchemyError:
        logger.exception("Error deleting author")
        raise UnexpectedError("Error deleting author")
    return schemas.Message(message="Author deleted successfully")


# ---------------------------------------------------------------------------
# Categories

@router.get("/categories", response_model=List[schemas.Category])
def list_categories(session: Session = Depends(get_session)):
    try:
        return store.list_categories(session)
    except SQLAlchemyError:
        logger.exception("Error fetching categories")
        raise UnexpectedError("Failed to fetch categories")


@router.get("/categories/tree", response_model=List[schemas.CategoryNode])
def category_tree(session: Session = Depends(get_session)):
    try:
        return hierarchy.build_tree(store.load_categories(session))
    except SQLAlchemyError:
        logger.exception("Error building category tree")
        raise UnexpectedError("Failed to fetch categories")


@router.post("/categories", response_model=schemas.Category, status_code=201)
def create_category(payload: schemas.CategoryWrite, session: Session = Depends(get_session)):
    try:
        with session.begin():
            fields = validation.validate_category_write(session, payload)
            category = store.create_category(session, fields)
            return store.get_category(session, category.id)
    except SQLAlchemyError:
        logger.exception("Error creating category")
        raise UnexpectedError("Failed to create category")


@router.put("/categories", response_model=schemas.Category)
def update_category(payload: schemas.CategoryWrite, session: Session = Depends(get_session)):
    if not payload.id or not (payload.name or "").strip():
        raise ValidationError("ID and name are required")
    try:
        with session.begin():
            fields = validation.validate_category_write(session, payload, existing_id=payload.id)
            category = store.update_category(session, payload.id, fields)
            return store.get_category(session, category.id)
    except SQLAlchemyError:
        logger.exception("Error updating category")
        raise UnexpectedError("Failed to update category")


@router.delete("/categories", response_model=schemas.Message)
def delete_category(
    id: Optional[str] = Query(default=None, description="Category id"),
    session: Session = Depends(get_session),
):
    if not id:
        raise ValidationError("ID is required")
    try:
        with session.begin():
            category = validation.validate_category_delete(session, id)
            store.delete_category(session, category)
    except SQLAlchemyError:
        logger.exception("Error deleting category")
        raise UnexpectedError("Failed to delete category")
    return schemas.Message(message="Category deleted successfully")


# ---------------------------------------------------------------------------
# Read-only listings

@router.get("/nationalities", response_model=List[schemas.Nationality])
def list_nationalities(session: Session = Depends(get_session)):
    try:
        return store.list_nationalities(session)
    except SQLAlchemyError:
        logger.exception("Error fetching nationalities")
        raise UnexpectedError("Error loading nationalities")


@router.get("/books", response_model=List[schemas.Book])
def list_books(
    search: Optional[str] = Query(default=None, description="Title or author contains"),
    author: Optional[str] = Query(default=None, description="Author contains"),
    limit: int = Query(default=settings.BOOKS_DEFAULT_LIMIT, ge=1, le=500),
    session: Session = Depends(get_session),
):
    try:
        return store.search_books(session, search=search, author=author, limit=limit)
    except SQLAlchemyError:
        logger.exception("Error fetching books")
        raise UnexpectedError("Failed to fetch books")


@router.get("/stores", response_model=List[schemas.Store])
def list_stores(
    active: bool = Query(default=True),
    session: Session = Depends(get_session),
):
    try:
        return store.list_stores(session, active=active)
    except SQLAlchemyError:
        logger.exception("Error fetching stores")
        raise UnexpectedError("Failed to fetch stores")


@router.get("/listings", response_model=List[schemas.Listing])
def list_listings(
    store_id: Optional[str] = Query(default=None),
    book_id: Optional[str] = Query(default=None),
    active: bool = Query(default=True),
    session: Session = Depends(get_session),
):
    try:
        return store.list_listings(session, store_id=store_id, book_id=book_id, active=active)
    except SQLAlchemyError:
        logger.exception("Error fetching listings")
        raise UnexpectedError("Failed to fetch listings")


# ---------------------------------------------------------------------------
# Image upload
#
# Files are pushed to the storage client kept on ``app.state.storage``.
# Object names are ``<epoch millis>-<random>.<ext>`` so that two uploads
# of the same file never collide.

def _object_name(filename: Optional[str]) -> str:
    name = filename or ""
    ext = name.rsplit(".", 1)[-1] if "." in name else ""
    if not (ext.isascii() and ext.isalnum()):
        ext = "bin"
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.{ext.lower()}"


@router.post("/upload", response_model=schemas.Upload)
def upload_image(
    request: Request,
    file: Optional[UploadFile] = File(default=None),
    bucket: Optional[str] = Form(default=None),
):
    if file is None:
        raise ValidationError("No file provided")
    if not (file.content_type or "").startswith("image/"):
        raise ValidationError("File must be an image")

    bucket = bucket or settings.DEFAULT_BUCKET
    path = _object_name(file.filename)
    data = file.file.read()
    try:
        url = request.app.state.storage.upload(bucket, path, data, file.content_type)
    except StorageError:
        logger.exception("Storage upload failed for %s/%s", bucket, path)
        raise UnexpectedError("Failed to upload image")
    return schemas.Upload(url=url, path=path, bucket=bucket)


@router.delete("/upload")
def delete_image(
    request: Request,
    path: Optional[str] = Query(default=None),
    bucket: Optional[str] = Query(default=None),
):
    if not path:
        raise ValidationError("No file path provided")
    bucket = bucket or settings.DEFAULT_BUCKET
    try:
        request.app.state.storage.remove(bucket, path)
    except StorageError:
        logger.exception("Storage delete failed for %s/%s", bucket, path)
        raise UnexpectedError("Failed to delete image")
    return {"success": True, "message": "Image deleted successfully"}
