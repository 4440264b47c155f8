"""StoredComment model: the append-only log of comments already seen."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class StoredComment(Base):
    """One row per comment id ever observed.

    Rows are inserted once and never updated or deleted. The column set is
    relied on by external tooling, so it carries no bookkeeping columns.
    """

    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    account_id: Mapped[str] = mapped_column(String, nullable=False)
    claim_id: Mapped[str] = mapped_column(String, nullable=False)
    claim_name: Mapped[str] = mapped_column(String, nullable=False)
    commenter_id: Mapped[str] = mapped_column(String, nullable=False)
    commenter_name: Mapped[str] = mapped_column(String, nullable=False)
    commenter_url: Mapped[str] = mapped_column(String, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    is_hidden: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    # Author-supplied creation time, not ingestion time
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<StoredComment(id={self.id}, claim={self.claim_name}, "
            f"commenter={self.commenter_name}, hidden={self.is_hidden})>"
        )
