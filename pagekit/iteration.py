"""Lazy page streams and eager drain helpers.

Each call to :func:`paginate_pages` builds a fresh paginator, so a
stream restarts only by calling it again. Pages are fetched on demand;
abandoning the iteration leaves nothing behind but the pages already
fetched.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TypeVar

from pagekit.engine import FetchStrategy, PaginationConfig, create_paginator
from pagekit.core.config import load_settings
from pagekit.models import ListOptions

T = TypeVar("T")


async def paginate_pages(config: PaginationConfig[T]) -> AsyncIterator[list[T]]:
    """Yield pages one at a time; the next page is fetched only when pulled."""
    paginator = create_paginator(config)
    while paginator.has_next():
        yield await paginator.next()


async def paginate_items(config: PaginationConfig[T]) -> AsyncIterator[T]:
    """Yield individual items across all pages, in order."""
    async for page in paginate_pages(config):
        for item in page:
            yield item


async def fetch_all_items(config: PaginationConfig[T]) -> list[T]:
    """Drain every page of *config* into one list."""
    items: list[T] = []
    async for page in paginate_pages(config):
        items.extend(page)
    return items


async def fetch_all_pages(
    fetch_page: FetchStrategy[T],
    initial_options: ListOptions | None = None,
    *,
    max_items: int | None = None,
    max_pages: int | None = None,
) -> list[T]:
    """Drain a bare fetch strategy into one list.

    Without a ``limit`` in *initial_options* the page size comes from
    ``PAGEKIT_DEFAULT_PAGE_SIZE`` (default ``DEFAULT_FETCH_ALL_LIMIT``).
    """
    options = initial_options or ListOptions()
    if options.limit is None:
        options = options.model_copy(update={"limit": load_settings().default_page_size})
    return await fetch_all_items(
        PaginationConfig(
            fetch_page=fetch_page,
            initial_options=options,
            max_items=max_items,
            max_pages=max_pages,
        )
    )
