"""In-memory collaborators for reconciliation tests."""

import math
from typing import Optional

from comment_notifier.lbry_client import LbryApiError
from comment_notifier.models import Account, Claim, Comment
from comment_notifier.notifier import NotificationError
from comment_notifier.orm.comment import StoredComment
from comment_notifier.pagination import Page, PageSource, ResourceKind


def make_comment(
    comment_id: str,
    claim_id: str = "claim1",
    timestamp: int = 100,
    body: Optional[str] = None,
    commenter: str = "@alice",
) -> Comment:
    return Comment(
        comment_id=comment_id,
        claim_id=claim_id,
        comment=body if body is not None else f"body of {comment_id}",
        channel_id=f"{commenter}-id",
        channel_name=commenter,
        channel_url=f"lbry://{commenter}",
        is_hidden=False,
        timestamp=timestamp,
    )


class FakeSource(PageSource):
    """In-memory account → claim → comment hierarchy with failure injection."""

    def __init__(self) -> None:
        self.accounts_list: list[Account] = []
        self.claims_by_account: dict[str, list[Claim]] = {}
        self.comments_by_claim: dict[str, list[Comment]] = {}
        self.failures: set[tuple[ResourceKind, Optional[str]]] = set()
        self.calls: list[tuple[ResourceKind, Optional[str], int]] = []

    def add_account(self, account_id: str) -> None:
        self.accounts_list.append(Account(id=account_id, name=account_id))
        self.claims_by_account.setdefault(account_id, [])

    def add_claim(self, account_id: str, claim_id: str, name: str) -> None:
        self.claims_by_account.setdefault(account_id, []).append(
            Claim(claim_id=claim_id, name=name)
        )
        self.comments_by_claim.setdefault(claim_id, [])

    def add_comment(self, comment: Comment) -> None:
        self.comments_by_claim.setdefault(comment.claim_id, []).append(comment)

    def fail(self, kind: ResourceKind, parent_key: Optional[str] = None) -> None:
        self.failures.add((kind, parent_key))

    async def list_page(self, kind, parent_key, page, page_size) -> Page:
        self.calls.append((kind, parent_key, page))
        if (kind, parent_key) in self.failures:
            raise LbryApiError(f"{kind.value} of {parent_key} unavailable", status_code=503)

        if kind is ResourceKind.ACCOUNTS:
            items = self.accounts_list
        elif kind is ResourceKind.CLAIMS:
            items = self.claims_by_account.get(parent_key, [])
        else:
            items = self.comments_by_claim.get(parent_key, [])

        start = (page - 1) * page_size
        return Page(
            items=list(items[start:start + page_size]),
            total_pages=math.ceil(len(items) / page_size),
            page=page,
            total_items=len(items),
        )


class RecordingNotifier:
    """Collects every comment it is asked to send."""

    def __init__(self, fail_for: Optional[set[str]] = None) -> None:
        self.sent: list[StoredComment] = []
        self.fail_for = fail_for or set()

    async def send(self, comment: StoredComment) -> None:
        if comment.id in self.fail_for:
            raise NotificationError(f"mail server refused {comment.id}")
        self.sent.append(comment)

    @property
    def sent_ids(self) -> list[str]:
        return [c.id for c in self.sent]


class FakeSMTP:
    """Records what a real SMTP connection would have been asked to do."""

    instances: list["FakeSMTP"] = []
    fail_with: Exception | None = None

    def __init__(self, host, port, timeout=None):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in_as = None
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in_as = (username, password)

    def send_message(self, message):
        self.messages.append(message)
