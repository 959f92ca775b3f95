"""
FastAPI RESTful API for the book store.

This package provides:
- Paginated book search with structured, delimited-string and JSON filters
- Book create, read, replace and delete operations
- A schemaless users collection
"""

__version__ = "1.0.0"
