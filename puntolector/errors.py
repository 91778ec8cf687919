"""
Error taxonomy shared by the catalog modules.

Every error carries the HTTP status it is reported with, so the
exception handler registered in ``main.py`` can render any of them as
``{"error": message}`` without a lookup table.
"""


class CatalogError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Malformed or missing input."""

    status_code = 400


class ConflictError(CatalogError):
    """Uniqueness or referential-safety violation."""

    status_code = 400


class NotFoundError(CatalogError):
    status_code = 404


class UnexpectedError(CatalogError):
    """Store or storage failure. The message is generic by construction."""

    status_code = 500
