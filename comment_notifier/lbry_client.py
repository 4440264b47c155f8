"""JSON-RPC client for the LBRY SDK list methods."""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .config import ApiConfig
from .models import Account, Claim, Comment, PageResult
from .pagination import Page, PageSource, ResourceKind

logger = logging.getLogger(__name__)


class LbryApiError(RuntimeError):
    """Raised when a list request fails or returns something unusable."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# method name, parent parameter name, item model
_METHODS: dict[ResourceKind, tuple[str, Optional[str], type]] = {
    ResourceKind.ACCOUNTS: ("account_list", None, Account),
    ResourceKind.CLAIMS: ("claim_list", "account_id", Claim),
    ResourceKind.COMMENTS: ("comment_list", "claim_id", Comment),
}


class LbryClient(PageSource):
    """Lists accounts, claims and comments from a running LBRY SDK."""

    def __init__(self, config: ApiConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.config = config
        self.client = httpx.AsyncClient(timeout=config.timeout, transport=transport)

    async def __aenter__(self) -> "LbryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the underlying connection pool."""
        await self.client.aclose()

    async def list_page(
        self,
        kind: ResourceKind,
        parent_key: Optional[str],
        page: int,
        page_size: int,
    ) -> Page:
        method, parent_param, model = _METHODS[kind]

        params: dict[str, Any] = {"page": page, "page_size": page_size}
        if parent_param is not None:
            if parent_key is None:
                raise ValueError(f"{method} requires {parent_param}")
            params[parent_param] = parent_key

        result = await self._call(method, params)

        try:
            parsed = PageResult[model].model_validate(result)
        except ValidationError as e:
            raise LbryApiError(f"Invalid response received from {method}: {e}") from e

        logger.debug(
            "%s page %d/%d returned %d item(s)",
            method,
            page,
            parsed.total_pages,
            len(parsed.items),
        )
        return Page(
            items=parsed.items,
            total_pages=parsed.total_pages,
            page=parsed.page,
            total_items=parsed.total_items,
        )

    async def list_accounts(self, page: int, page_size: int) -> Page:
        return await self.list_page(ResourceKind.ACCOUNTS, None, page, page_size)

    async def list_claims(self, account_id: str, page: int, page_size: int) -> Page:
        return await self.list_page(ResourceKind.CLAIMS, account_id, page, page_size)

    async def list_comments(self, claim_id: str, page: int, page_size: int) -> Page:
        return await self.list_page(ResourceKind.COMMENTS, claim_id, page, page_size)

    async def _call(self, method: str, params: dict[str, Any]) -> Any:
        """POST a JSON-RPC request and return its ``result`` member."""
        payload = {"method": method, "params": params}

        try:
            response = await self.client.post(self.config.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise LbryApiError(
                f"{method} failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise LbryApiError(f"{method} request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise LbryApiError(f"Invalid response received from {method}: not JSON") from e

        if not isinstance(body, dict):
            raise LbryApiError(f"Invalid response received from {method}")

        if body.get("error"):
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise LbryApiError(f"{method} returned an error: {message}")

        if "result" not in body:
            raise LbryApiError(f"Invalid response received from {method}: missing result")

        return body["result"]
