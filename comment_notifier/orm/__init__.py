"""ORM models for database persistence."""

from .base import Base
from .comment import StoredComment

__all__ = [
    "Base",
    "StoredComment",
]
