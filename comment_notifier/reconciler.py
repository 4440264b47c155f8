"""Reconciliation engine: walk accounts, claims and comments; store and notify new ones."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Protocol

from .lbry_client import LbryApiError
from .models import Account, Claim, Comment
from .notifier import NotificationError
from .orm.comment import StoredComment
from .pagination import PageSource
from .services.comment_service import CommentService, StorageError

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def send(self, comment: StoredComment) -> None: ...


class FailureKind(str, Enum):
    """Where in a run something went wrong."""

    ACCOUNT_PAGE = "accounts"
    CLAIM_PAGE = "claims"
    COMMENT_PAGE = "comments"
    STORAGE = "storage"
    NOTIFICATION = "notification"


@dataclass
class ResourceFailure:
    """One isolated failure: what kind, for which resource key, and why."""

    kind: FailureKind
    key: Optional[str]
    message: str


@dataclass
class RunReport:
    """Counters and failures collected over one reconciliation run."""

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    accounts: int = 0
    claims: int = 0
    comments_seen: int = 0
    new_comments: int = 0
    notified: int = 0
    failures: list[ResourceFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def record_failure(self, kind: FailureKind, key: Optional[str], error: Exception) -> None:
        self.failures.append(ResourceFailure(kind=kind, key=key, message=str(error)))

    def summary(self) -> str:
        elapsed = ""
        if self.finished_at is not None:
            elapsed = f" in {(self.finished_at - self.started_at).total_seconds():.1f}s"
        return (
            f"{self.accounts} account(s), {self.claims} claim(s), "
            f"{self.comments_seen} comment(s) seen, {self.new_comments} new, "
            f"{self.notified} notified, {len(self.failures)} failure(s){elapsed}"
        )


def to_stored_comment(account: Account, claim: Claim, comment: Comment) -> StoredComment:
    """Denormalize a fetched comment with its provenance."""
    return StoredComment(
        id=comment.id,
        account_id=account.id,
        claim_id=comment.claim_id,
        claim_name=claim.name,
        commenter_id=comment.commenter_id,
        commenter_name=comment.commenter_name,
        commenter_url=comment.commenter_url,
        comment=comment.comment,
        is_hidden=comment.is_hidden,
        timestamp=comment.timestamp,
    )


class Reconciler:
    """Runs one full traversal per call to ``run``.

    A comment is novel when its id is not in the store. Novel comments are
    inserted first and notified second; a failed insert means no notification,
    a failed notification leaves the comment stored and is never retried.
    Fetch failures skip only the subtree they occurred in.
    """

    def __init__(
        self,
        source: PageSource,
        store: CommentService,
        notifier: Notifier,
        page_size: int,
        account_concurrency: int = 1,
    ) -> None:
        if account_concurrency < 1:
            raise ValueError("account_concurrency must be at least 1")
        self.source = source
        self.store = store
        self.notifier = notifier
        self.page_size = page_size
        self.account_concurrency = account_concurrency

    async def run(self) -> RunReport:
        """Walk the whole hierarchy once. Always completes; failures are reported."""
        report = RunReport()
        logger.info("Finding new comments")

        tasks: list[asyncio.Task] = []
        try:
            await self._walk_accounts(report, tasks)
        finally:
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        report.finished_at = datetime.now(timezone.utc)
        logger.info("Done reading comments: %s", report.summary())
        return report

    async def _walk_accounts(self, report: RunReport, tasks: list[asyncio.Task]) -> None:
        semaphore = asyncio.Semaphore(self.account_concurrency)

        try:
            async for account in self.source.accounts(self.page_size).items():
                report.accounts += 1
                if self.account_concurrency == 1:
                    await self._walk_account(account, report)
                    continue

                await semaphore.acquire()
                task = asyncio.create_task(self._walk_account(account, report))
                task.add_done_callback(lambda _: semaphore.release())
                tasks.append(task)
        except LbryApiError as e:
            logger.warning("Error fetching accounts: %s", e)
            report.record_failure(FailureKind.ACCOUNT_PAGE, None, e)

    async def _walk_account(self, account: Account, report: RunReport) -> None:
        logger.debug("Walking claims of account %s", account.id)
        try:
            async for claim in self.source.claims(account.id, self.page_size).items():
                report.claims += 1
                await self._walk_claim(account, claim, report)
        except LbryApiError as e:
            logger.warning("Error fetching claims of account %s: %s", account.id, e)
            report.record_failure(FailureKind.CLAIM_PAGE, account.id, e)

    async def _walk_claim(self, account: Account, claim: Claim, report: RunReport) -> None:
        logger.debug("Walking comments of claim %s (%s)", claim.id, claim.name)
        try:
            async for comment in self.source.comments(claim.id, self.page_size).items():
                report.comments_seen += 1
                await self._reconcile(account, claim, comment, report)
        except LbryApiError as e:
            logger.warning("Error fetching comments of claim %s: %s", claim.id, e)
            report.record_failure(FailureKind.COMMENT_PAGE, claim.id, e)

    async def _reconcile(
        self, account: Account, claim: Claim, comment: Comment, report: RunReport
    ) -> None:
        try:
            if await self.store.exists(comment.id):
                return

            record = to_stored_comment(account, claim, comment)
            # Another subtree may have stored the same id since the lookup
            if not await self.store.insert(record):
                return
        except StorageError as e:
            logger.error("Skipping comment %s, storage unavailable: %s", comment.id, e)
            report.record_failure(FailureKind.STORAGE, comment.id, e)
            return

        report.new_comments += 1
        logger.info("Logging new comment %s on %s", comment.id, claim.name)

        try:
            await self.notifier.send(record)
        except NotificationError as e:
            logger.error("Comment %s stored but not notified: %s", comment.id, e)
            report.record_failure(FailureKind.NOTIFICATION, comment.id, e)
            return

        report.notified += 1
