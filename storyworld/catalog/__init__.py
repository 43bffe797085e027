"""
Catalog package for the Kid's Story World API.

This package holds the storybook collection and everything that works
on it: the pydantic schemas, the query engine (search, genre filter,
sorting, pagination), the repository that owns the in-memory
collections and writes them back to JSON files, upload handling and
the REST routes mounted under ``/api``.
"""

from .router import router as catalog_router  # noqa: F401
