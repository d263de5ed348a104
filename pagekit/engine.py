"""Pagination engine — one state machine for every paginated list endpoint.

A :class:`PaginationEngine` drives a single injected fetch strategy through
a remote collection:

    FRESH ──next()──▶ ITERATING ──next()──▶ EXHAUSTED | LIMIT_REACHED
      ▲                                               │
      └──────────────────── reset() ──────────────────┘

Termination is decided only by the absence of ``meta.next_cursor`` and
the caller's ``max_items`` / ``max_pages`` bounds. State changes only on
a successful fetch, all fields at once.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pagekit.core.logging import get_logger
from pagekit.exceptions import PaginatorConfigError
from pagekit.models import ListOptions, ListResponse, ListResponseMeta, PaginationState

if TYPE_CHECKING:
    from pagekit.instrumentation import Observability

log = get_logger("pagekit.engine")

T = TypeVar("T")

FetchStrategy = Callable[[ListOptions], Awaitable[ListResponse[T]]]
PageCallback = Callable[[list[T]], Any]
ItemCallback = Callable[[T], Any]
PageHook = Callable[[list[T], ListResponseMeta], Any]


@dataclass(frozen=True)
class PaginationConfig(Generic[T]):
    """Immutable configuration for one paginator.

    ``max_items`` / ``max_pages`` of ``None`` mean unbounded.
    ``initial_options.limit`` is the page-size hint sent on every fetch.
    ``on_page(items, meta)`` runs after each committed page and is the
    only place the upstream metadata (``total``, ``prev_cursor``) surfaces.
    """

    fetch_page: FetchStrategy[T]
    initial_options: ListOptions = field(default_factory=ListOptions)
    max_items: int | None = None
    max_pages: int | None = None
    observability: Observability | None = None
    service_name: str | None = None
    attributes: Mapping[str, Any] = field(default_factory=dict)
    on_page: PageHook[T] | None = None

    def __post_init__(self) -> None:
        if self.fetch_page is None or not callable(self.fetch_page):
            raise PaginatorConfigError("fetch_page must be a callable fetch strategy")
        if self.on_page is not None and not callable(self.on_page):
            raise PaginatorConfigError("on_page must be callable")
        for name in ("max_items", "max_pages"):
            value = getattr(self, name)
            if value is not None and (isinstance(value, bool) or value < 1):
                raise PaginatorConfigError(f"{name} must be a positive int or None, got {value!r}")
        if self.initial_options is None:
            object.__setattr__(self, "initial_options", ListOptions())


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class Paginator(ABC, Generic[T]):
    """Public paginator interface.

    Subclasses supply the primitives (``has_next``, ``next``,
    ``current_page``, ``get_pagination_state``, ``reset``); the traversal
    operations are built on them here, so a wrapper that overrides
    ``next`` sees every page fetched by ``get_all_items`` and friends.
    """

    @abstractmethod
    def has_next(self) -> bool:
        """True while more pages may be fetched within the configured bounds."""

    @abstractmethod
    async def next(self) -> list[T]:
        """Fetch and return the next page, or ``[]`` without I/O when done."""

    @property
    @abstractmethod
    def current_page(self) -> list[T] | None:
        """The most recently fetched page, ``None`` before the first fetch."""

    @abstractmethod
    def get_pagination_state(self) -> PaginationState:
        """Return a snapshot of the traversal progress."""

    @abstractmethod
    def reset(self) -> None:
        """Return to the initial state."""

    async def get_current_page(self) -> list[T]:
        """Return the last fetched page, fetching the first one lazily."""
        if self.current_page is None:
            await self.next()
        return list(self.current_page or [])

    async def get_all_items(self) -> list[T]:
        """Fetch every remaining page and return the items in order."""
        items: list[T] = []
        while self.has_next():
            items.extend(await self.next())
        return items

    async def for_each_page(self, callback: PageCallback[T]) -> None:
        """Invoke *callback* once per page.

        The next page is fetched only after the callback settles. Any
        fetch or callback error aborts the traversal.
        """
        while self.has_next():
            page = await self.next()
            await _maybe_await(callback(page))

    async def for_each_item(self, callback: ItemCallback[T]) -> None:
        """Invoke *callback* sequentially for every item, in page order."""

        async def _each(page: list[T]) -> None:
            for item in page:
                await _maybe_await(callback(item))

        await self.for_each_page(_each)


class PaginationEngine(Paginator[T]):
    """Base state machine. Knows nothing about tracing or metrics."""

    def __init__(self, config: PaginationConfig[T]) -> None:
        self._config = config
        self._max_items = config.max_items
        self._max_pages = config.max_pages
        self._state = PaginationState()
        self._current_page: list[T] | None = None
        self._lock = asyncio.Lock()
        self._generation = 0

    @property
    def config(self) -> PaginationConfig[T]:
        return self._config

    @property
    def current_page(self) -> list[T] | None:
        return self._current_page

    def has_next(self) -> bool:
        state = self._state
        if not state.has_more:
            return False
        if self._max_items is not None and state.items_fetched >= self._max_items:
            return False
        if self._max_pages is not None and state.pages_fetched >= self._max_pages:
            return False
        return True

    async def next(self) -> list[T]:
        async with self._lock:
            if not self.has_next():
                return []

            state = self._state
            generation = self._generation
            options = self._config.initial_options.with_cursor(state.cursor)
            log.debug(
                "paginator.fetch",
                page=state.pages_fetched + 1,
                cursor=state.cursor,
                limit=options.limit,
            )
            response = await self._config.fetch_page(options)

            items = list(response.items)
            if generation != self._generation:
                # reset() ran while the fetch was in flight; the page belongs
                # to the abandoned traversal.
                log.debug("paginator.stale_page_dropped", items=len(items))
                return items

            next_cursor = response.meta.next_cursor or None
            self._state = dataclasses.replace(
                state,
                cursor=next_cursor,
                has_more=next_cursor is not None,
                pages_fetched=state.pages_fetched + 1,
                items_fetched=state.items_fetched + len(items),
                last_fetch_at=datetime.now(timezone.utc),
            )
            self._current_page = items

            if next_cursor is None:
                log.debug(
                    "paginator.exhausted",
                    pages_fetched=self._state.pages_fetched,
                    items_fetched=self._state.items_fetched,
                )
            if self._config.on_page is not None:
                # Runs after the commit: a failing hook propagates but the
                # page stays counted.
                await _maybe_await(self._config.on_page(list(items), response.meta))
            return list(items)

    def get_pagination_state(self) -> PaginationState:
        # Frozen dataclass: handing out the instance is already a snapshot.
        return self._state

    def reset(self) -> None:
        self._state = PaginationState()
        self._current_page = None
        self._generation += 1


def create_paginator(
    config: PaginationConfig[T], inner: Paginator[T] | None = None
) -> Paginator[T]:
    """Build a paginator for *config*, instrumented when observability is on.

    *inner* defaults to a fresh :class:`PaginationEngine` over *config*;
    pass a composed paginator (a classifier, say) to have its traversal
    operations traced as well. Without an explicit ``config.observability``
    the collaborator is resolved from ``PAGEKIT_*`` settings; the no-op
    backend yields *inner* unwrapped.
    """
    from pagekit.instrumentation import (
        InstrumentedPaginator,
        NoopObservability,
        resolve_observability,
    )

    paginator = inner if inner is not None else PaginationEngine(config)
    observability, service_name = resolve_observability(config)
    if isinstance(observability, NoopObservability):
        return paginator
    return InstrumentedPaginator(
        paginator,
        observability,
        attributes=config.attributes,
        service_name=service_name,
    )
