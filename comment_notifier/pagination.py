"""Lazy, restartable sequences over paginated list endpoints.

A ``Paginated`` producer requests page 1, then 2, and so on, until the page
number exceeds the ``total_pages`` reported by the most recent response. The
server is authoritative on the page count; nothing is guessed from how many
items came back.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Generic, Optional, TypeVar

from .models import Account, Claim, Comment

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceKind(str, Enum):
    """The three list endpoints, in ownership order."""

    ACCOUNTS = "accounts"
    CLAIMS = "claims"
    COMMENTS = "comments"


@dataclass
class Page(Generic[T]):
    """One bounded response: its items plus the server's page count."""

    items: list[T]
    total_pages: int
    page: int = 1
    total_items: Optional[int] = None


PageFetcher = Callable[[int, int], Awaitable[Page[T]]]


class Paginated(Generic[T]):
    """Async-iterable of pages produced by ``fetch(page_number, page_size)``.

    Every ``async for`` starts over at page 1. An error raised by ``fetch``
    propagates out of the iteration; pages already yielded stay yielded.
    """

    def __init__(self, fetch: PageFetcher, page_size: int, label: str = "") -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.fetch = fetch
        self.page_size = page_size
        self.label = label

    def __aiter__(self) -> AsyncIterator[Page[T]]:
        return self.pages()

    async def pages(self) -> AsyncIterator[Page[T]]:
        page_number = 1
        while True:
            logger.debug("Fetching %s page %d", self.label or "items", page_number)
            page = await self.fetch(page_number, self.page_size)
            yield page

            page_number += 1
            if page_number > page.total_pages:
                break

    async def items(self) -> AsyncIterator[T]:
        """Flatten the pages into their items, in page order."""
        async for page in self.pages():
            for item in page.items:
                yield item


class PageSource(ABC):
    """Anything that can answer ``list_page`` for the three resource kinds.

    Subclasses implement the single network call; the producers for accounts,
    claims and comments are layered on top through the parent key.
    """

    @abstractmethod
    async def list_page(
        self,
        kind: ResourceKind,
        parent_key: Optional[str],
        page: int,
        page_size: int,
    ) -> Page:
        """Fetch one page of ``kind`` under ``parent_key`` (None for accounts)."""

    def paginate(self, kind: ResourceKind, parent_key: Optional[str], page_size: int) -> Paginated:
        async def fetch(page: int, size: int) -> Page:
            return await self.list_page(kind, parent_key, page, size)

        label = kind.value if parent_key is None else f"{kind.value} of {parent_key}"
        return Paginated(fetch, page_size, label=label)

    def accounts(self, page_size: int) -> Paginated[Account]:
        return self.paginate(ResourceKind.ACCOUNTS, None, page_size)

    def claims(self, account_id: str, page_size: int) -> Paginated[Claim]:
        return self.paginate(ResourceKind.CLAIMS, account_id, page_size)

    def comments(self, claim_id: str, page_size: int) -> Paginated[Comment]:
        return self.paginate(ResourceKind.COMMENTS, claim_id, page_size)
