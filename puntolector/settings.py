"""
Runtime configuration for the Punto Lector API.

Values are read once from environment variables at import time. The
application factory in ``main.py`` accepts explicit overrides for the
database and the storage client, which is how the tests run against an
in-memory database.
"""

import os

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./puntolector.db")

# CORS
CORS_ORIGIN = os.getenv("CORS_ORIGIN", "*")

# Object storage (Supabase-compatible REST endpoint)
STORAGE_URL = os.getenv("STORAGE_URL", "")
STORAGE_KEY = os.getenv("STORAGE_KEY", "")
DEFAULT_BUCKET = os.getenv("DEFAULT_BUCKET", "author_photos")
STORAGE_TIMEOUT = 10  # seconds

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Listing defaults
BOOKS_DEFAULT_LIMIT = int(os.getenv("BOOKS_DEFAULT_LIMIT", "50"))
