"""Punto Lector bookstore catalogue administration API."""

__version__ = "1.0.0"
