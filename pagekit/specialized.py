"""Specialized paginators — per-page bookkeeping layered on any paginator.

A specialized paginator composes an inner :class:`Paginator` and only
*observes* each freshly fetched page. ``has_next``, the cursor and the
progress counters always come from the inner paginator unchanged.
"""

from __future__ import annotations

import dataclasses
from collections import Counter
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pagekit.engine import (
    FetchStrategy,
    ItemCallback,
    PageCallback,
    PaginationConfig,
    PaginationEngine,
    Paginator,
    create_paginator,
)
from pagekit.instrumentation import AttributeValue, Observability, resolve_observability
from pagekit.models import ListOptions, PaginationState

T = TypeVar("T")


class ClassifyingPaginator(Paginator[T]):
    """Count the items of every page per category.

    ``classify(item)`` returns a category key, or ``None`` to leave the
    item uncounted. ``category_counts`` accumulates across the traversal;
    ``last_page_counts`` holds the most recent page only.
    """

    def __init__(
        self,
        inner: Paginator[T],
        classify: Callable[[T], str | None],
        *,
        observability: Observability | None = None,
        metric_prefix: str | None = None,
        metric_tags: Mapping[str, AttributeValue] | None = None,
    ) -> None:
        self._inner = inner
        self._classify = classify
        self._observability = observability
        self._metric_prefix = metric_prefix
        self._metric_tags = dict(metric_tags or {})
        self.category_counts: Counter[str] = Counter()
        self.last_page_counts: Counter[str] = Counter()

    @property
    def inner(self) -> Paginator[T]:
        return self._inner

    @property
    def current_page(self) -> list[T] | None:
        return self._inner.current_page

    def has_next(self) -> bool:
        return self._inner.has_next()

    async def next(self) -> list[T]:
        before = self._inner.get_pagination_state().pages_fetched
        page = await self._inner.next()
        if self._inner.get_pagination_state().pages_fetched != before:
            self._observe(page)
        return page

    def _observe(self, page: list[T]) -> None:
        counts: Counter[str] = Counter()
        for item in page:
            category = self._classify(item)
            if category is not None:
                counts[category] += 1
        self.last_page_counts = counts
        self.category_counts.update(counts)

        if self._observability is None or self._metric_prefix is None:
            return
        for category, count in counts.items():
            if count > 0:
                self._observability.record_metric(
                    f"{self._metric_prefix}.{category.lower()}", count, self._metric_tags
                )

    def get_pagination_state(self) -> PaginationState:
        return self._inner.get_pagination_state()

    def reset(self) -> None:
        self._inner.reset()
        self.category_counts = Counter()
        self.last_page_counts = Counter()


def operation_type(operation: Any) -> str | None:
    """Read ``type`` from a mapping or an attribute, upper-cased."""
    if isinstance(operation, Mapping):
        value = operation.get("type")
    else:
        value = getattr(operation, "type", None)
    return str(value).upper() if value else None


class OperationPaginator(Paginator[T]):
    """Paginate ledger operations, tallying debits and credits per page.

    The classifier sits directly on the engine and instrumentation wraps
    the classifier, so every public operation opens its scope while the
    counts still see each fetched page.
    """

    def __init__(
        self,
        config: PaginationConfig[T],
        *,
        observability: Observability | None = None,
    ) -> None:
        if observability is not None:
            config = dataclasses.replace(config, observability=observability)
        observability, service_name = resolve_observability(config)
        config = dataclasses.replace(
            config, observability=observability, service_name=service_name
        )
        self._classifier: ClassifyingPaginator[T] = ClassifyingPaginator(
            PaginationEngine(config),
            operation_type,
            observability=observability,
            metric_prefix="operations.paginator",
            metric_tags=config.attributes,
        )
        self._paginator = create_paginator(config, inner=self._classifier)

    @property
    def inner(self) -> Paginator[T]:
        return self._paginator

    @property
    def category_counts(self) -> Counter[str]:
        return self._classifier.category_counts

    @property
    def last_page_counts(self) -> Counter[str]:
        return self._classifier.last_page_counts

    @property
    def debit_count(self) -> int:
        return self.category_counts["DEBIT"]

    @property
    def credit_count(self) -> int:
        return self.category_counts["CREDIT"]

    @property
    def current_page(self) -> list[T] | None:
        return self._paginator.current_page

    def has_next(self) -> bool:
        return self._paginator.has_next()

    async def next(self) -> list[T]:
        return await self._paginator.next()

    async def get_current_page(self) -> list[T]:
        return await self._paginator.get_current_page()

    async def get_all_items(self) -> list[T]:
        return await self._paginator.get_all_items()

    async def for_each_page(self, callback: PageCallback[T]) -> None:
        await self._paginator.for_each_page(callback)

    async def for_each_item(self, callback: ItemCallback[T]) -> None:
        await self._paginator.for_each_item(callback)

    def get_pagination_state(self) -> PaginationState:
        return self._paginator.get_pagination_state()

    def reset(self) -> None:
        self._paginator.reset()


def operation_config(
    fetch_page: FetchStrategy[T],
    *,
    organization_id: str,
    ledger_id: str,
    account_id: str,
    initial_options: ListOptions | None = None,
    **kwargs: Any,
) -> PaginationConfig[T]:
    """Config for an account's operation listing, tagged with its identifiers."""
    attributes = {"orgId": organization_id, "ledgerId": ledger_id, "accountId": account_id}
    attributes.update(kwargs.pop("attributes", {}) or {})
    return PaginationConfig(
        fetch_page=fetch_page,
        initial_options=initial_options or ListOptions(),
        attributes=attributes,
        **kwargs,
    )
