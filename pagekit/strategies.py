"""Fetch strategies — adapt a remote pagination protocol to the engine.

Every strategy is an async callable ``(ListOptions) -> ListResponse``.
The engine treats ``next_cursor`` as opaque; only the strategy that
minted a cursor knows what it means.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pagekit.core.logging import get_logger
from pagekit.exceptions import InvalidCursorError
from pagekit.models import DEFAULT_LIMIT, ListOptions, ListResponse, ListResponseMeta

log = get_logger("pagekit.strategies")

T = TypeVar("T")


@dataclass
class CursorPage(Generic[T]):
    """One page as returned by a cursor-based upstream."""

    items: list[T]
    next_token: str | None = None
    prev_token: str | None = None
    total: int | None = None


@dataclass
class OffsetPage(Generic[T]):
    """One page as returned by an offset/limit upstream."""

    items: list[T]
    total: int = 0


class CursorStrategy(Generic[T]):
    """Pass the engine's cursor upstream verbatim and hand back upstream's token."""

    def __init__(self, fetch: Callable[[ListOptions], Awaitable[CursorPage[T]]]) -> None:
        self._fetch = fetch

    async def __call__(self, options: ListOptions) -> ListResponse[T]:
        page = await self._fetch(options)
        items = list(page.items)
        return ListResponse(
            items=items,
            meta=ListResponseMeta(
                total=page.total if page.total is not None else 0,
                count=len(items),
                next_cursor=page.next_token,
                prev_cursor=page.prev_token,
            ),
        )


class OffsetStrategy(Generic[T]):
    """Drive an offset/limit upstream behind the cursor interface.

    The running offset is private to the strategy. After each call it
    advances by the page size, and ``next_cursor`` is the decimal string
    of the new offset while it is still below ``total``. A call without a
    cursor starts a fresh traversal and rewinds the offset to 0.

    One instance serves one traversal at a time; a cursor that does not
    match the private offset raises :class:`InvalidCursorError`.
    """

    def __init__(
        self,
        fetch: Callable[[ListOptions, int, int], Awaitable[OffsetPage[T]]],
        page_size: int | None = None,
    ) -> None:
        if page_size is not None and page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self._fetch = fetch
        self._page_size = page_size
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    def reset(self) -> None:
        self._offset = 0

    async def __call__(self, options: ListOptions) -> ListResponse[T]:
        if options.cursor is None:
            self._offset = 0
        elif options.cursor != str(self._offset):
            raise InvalidCursorError(options.cursor, f"expected offset cursor {self._offset!s}")
        limit = options.limit or self._page_size or DEFAULT_LIMIT

        page = await self._fetch(options, self._offset, limit)

        self._offset += limit
        items = list(page.items)
        next_cursor = str(self._offset) if self._offset < page.total else None
        log.debug(
            "offset_strategy.page",
            offset=self._offset - limit,
            limit=limit,
            total=page.total,
            next_cursor=next_cursor,
        )
        return ListResponse(
            items=items,
            meta=ListResponseMeta(total=page.total, count=len(items), next_cursor=next_cursor),
        )
