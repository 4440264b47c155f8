"""Comment store: the system of record for comments already notified."""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError

from ..orm.comment import StoredComment
from .database import DatabaseService

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when the comment store cannot answer or record a comment."""


class CommentService:
    """Existence checks and idempotent inserts against the ``comments`` table."""

    def __init__(self, db: DatabaseService):
        self.db = db

    async def exists(self, comment_id: str) -> bool:
        """Check if a comment has already been recorded.

        Raises:
            StorageError: If the lookup fails. Callers must not read a
                failure as "not present".
        """
        try:
            async with self.db.session() as session:
                result = await session.execute(
                    select(StoredComment.id).where(StoredComment.id == comment_id)
                )
                return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            raise StorageError(f"Lookup of comment {comment_id} failed: {e}") from e

    async def insert(self, comment: StoredComment) -> bool:
        """Record a comment.

        Inserting an id that is already present is a successful no-op.

        Returns:
            True if a new row was written, False if the id already existed.

        Raises:
            StorageError: If the write fails.
        """
        values = {
            "id": comment.id,
            "account_id": comment.account_id,
            "claim_id": comment.claim_id,
            "claim_name": comment.claim_name,
            "commenter_id": comment.commenter_id,
            "commenter_name": comment.commenter_name,
            "commenter_url": comment.commenter_url,
            "comment": comment.comment,
            "is_hidden": bool(comment.is_hidden),
            "timestamp": comment.timestamp,
        }
        statement = insert(StoredComment.__table__).values(**values).on_conflict_do_nothing(
            index_elements=["id"]
        )

        try:
            async with self.db.session() as session:
                result = await session.execute(statement)
                inserted = result.rowcount == 1
        except SQLAlchemyError as e:
            raise StorageError(f"Insert of comment {comment.id} failed: {e}") from e

        if not inserted:
            logger.debug("Comment %s already stored, insert skipped", comment.id)
        return inserted

    async def get(self, comment_id: str) -> Optional[StoredComment]:
        """Fetch a stored comment by id."""
        try:
            async with self.db.session() as session:
                return await session.get(StoredComment, comment_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Fetch of comment {comment_id} failed: {e}") from e

    async def count(self) -> int:
        """Number of comments recorded."""
        try:
            async with self.db.session() as session:
                result = await session.execute(select(func.count(StoredComment.id)))
                return result.scalar_one()
        except SQLAlchemyError as e:
            raise StorageError(f"Counting comments failed: {e}") from e
