"""Async HTTP list client — turns list endpoints into fetch strategies."""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from pagekit.core.config import Settings
from pagekit.core.logging import get_logger
from pagekit.exceptions import InvalidCursorError, PaginatorConfigError
from pagekit.models import ListOptions, ListResponse, ListResponseMeta

log = get_logger("pagekit.http")

_NEXT_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="next"')
_PREV_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="prev"')


class ApiClient:
    """Thin async wrapper around a resource API's list endpoints.

    No retries: a failed request surfaces as the underlying
    :class:`httpx.HTTPError`, which the paginator propagates unchanged.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers: dict[str, str] = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> ApiClient:
        if not settings.api_url:
            raise PaginatorConfigError("PAGEKIT_API_URL is not set")
        return cls(
            settings.api_url,
            settings.api_token,
            timeout=settings.http_timeout,
            **kwargs,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def list_page(self, path: str, options: ListOptions) -> ListResponse[dict[str, Any]]:
        """GET one page from a ``{"items": [...], "meta": {...}}`` endpoint."""
        params = options.to_query_params()
        log.debug("api.list_page", path=path, params=params)
        response = await self._client.get(path, params=params)
        response.raise_for_status()
        return ListResponse[dict[str, Any]].model_validate(response.json())

    def fetcher(self, path: str) -> Callable[[ListOptions], Awaitable[ListResponse[dict[str, Any]]]]:
        """Return a cursor fetch strategy bound to *path*."""

        async def fetch(options: ListOptions) -> ListResponse[dict[str, Any]]:
            return await self.list_page(path, options)

        return fetch

    def link_fetcher(
        self, path: str
    ) -> Callable[[ListOptions], Awaitable[ListResponse[dict[str, Any]]]]:
        """Return a fetch strategy for APIs paginated by ``Link`` headers.

        The endpoint returns a bare JSON array. The cursor is the absolute
        URL of the next page taken from ``Link: <...>; rel="next"``; the
        first request goes to *path* with the options as query params.
        """

        async def fetch(options: ListOptions) -> ListResponse[dict[str, Any]]:
            if options.cursor is None:
                response = await self._client.get(path, params=options.to_query_params())
            else:
                if not options.cursor.startswith(("http://", "https://")):
                    raise InvalidCursorError(options.cursor, "expected a next-page URL")
                response = await self._client.get(options.cursor)
            response.raise_for_status()

            data = response.json()
            items = data if isinstance(data, list) else [data]
            link_header = response.headers.get("Link", "")
            log.debug("api.link_page", path=path, count=len(items), has_next="next" in link_header)
            return ListResponse(
                items=items,
                meta=ListResponseMeta(
                    count=len(items),
                    next_cursor=self._parse_link(link_header, _NEXT_LINK_RE),
                    prev_cursor=self._parse_link(link_header, _PREV_LINK_RE),
                ),
            )

        return fetch

    # ── internal ───────────────────────────────────────────────────────────

    @staticmethod
    def _parse_link(link_header: str, pattern: re.Pattern[str]) -> str | None:
        """Extract one relation's URL from a ``Link`` header."""
        match = pattern.search(link_header)
        return match.group(1) if match else None
