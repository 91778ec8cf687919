"""
Catalog package for the Punto Lector administration API.

This package contains the request schemas, the write validators, the
category hierarchy helpers, the data-access layer and the route
definitions that expose the bookstore catalogue (authors, categories,
nationalities, books, stores and listings) as a REST API. The routes
are mounted by ``puntolector.main.create_app``.
"""

from .router import router as catalog_router  # noqa: F401
