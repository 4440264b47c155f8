"""Records returned by the LBRY JSON-RPC list methods."""

from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Account(BaseModel):
    """A wallet account; only its id matters for listing claims."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    name: str = ""
    is_default: bool = False


class Claim(BaseModel):
    """A named content entry owned by an account."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str = Field(alias="claim_id")
    name: str
    timestamp: Optional[datetime] = None


class Comment(BaseModel):
    """A comment left on a claim."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str = Field(alias="comment_id")
    claim_id: str
    comment: str
    commenter_id: str = Field(alias="channel_id")
    commenter_name: str = Field(alias="channel_name")
    commenter_url: str = Field(alias="channel_url")
    is_hidden: bool = False
    # Epoch seconds on the wire, parsed as UTC
    timestamp: datetime


class PageResult(BaseModel, Generic[T]):
    """The ``result`` member of a paginated list response."""

    model_config = ConfigDict(extra="ignore")

    items: list[T]
    page: int = 1
    page_size: int = 0
    total_items: int = 0
    total_pages: int
