"""Service layer for database operations."""

from .comment_service import CommentService, StorageError
from .database import DatabaseService, open_database

__all__ = [
    "CommentService",
    "DatabaseService",
    "StorageError",
    "open_database",
]
