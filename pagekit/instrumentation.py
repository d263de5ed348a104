"""Instrumentation for paginators — scopes, metrics and the wrapping decorator.

The core :class:`~pagekit.engine.PaginationEngine` never traces anything;
:class:`InstrumentedPaginator` wraps any paginator and opens one
``paginator.<operation>`` scope per public call, closing it exactly once
on every exit path.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Literal, Protocol, TypeVar

from pagekit.core.config import Settings, load_settings
from pagekit.core.logging import get_logger
from pagekit.engine import ItemCallback, PageCallback, PaginationConfig, Paginator
from pagekit.models import PaginationState

T = TypeVar("T")

AttributeValue = Any
ScopeStatus = Literal["ok", "error"]

PAGE_METRIC = "paginator.page"
DEFAULT_SERVICE_NAME = "pagekit-paginator"


class Scope(Protocol):
    """A named, timed unit of work (a tracing span or its equivalent)."""

    def set_attribute(self, key: str, value: AttributeValue) -> None: ...

    def record_exception(self, exc: BaseException) -> None: ...

    def set_status(self, status: ScopeStatus, detail: str | None = None) -> None: ...

    def end(self) -> None: ...


class Observability(Protocol):
    """Tracing/metrics collaborator consumed by :class:`InstrumentedPaginator`."""

    def start_scope(self, name: str) -> Scope: ...

    def record_metric(
        self, name: str, value: float, tags: Mapping[str, AttributeValue]
    ) -> None: ...


# ── backends ──────────────────────────────────────────────────────────────


class _NoopScope:
    def set_attribute(self, key: str, value: AttributeValue) -> None:
        pass

    def record_exception(self, exc: BaseException) -> None:
        pass

    def set_status(self, status: ScopeStatus, detail: str | None = None) -> None:
        pass

    def end(self) -> None:
        pass


class NoopObservability:
    """Discards every scope and metric."""

    def start_scope(self, name: str) -> Scope:
        return _NoopScope()

    def record_metric(self, name: str, value: float, tags: Mapping[str, AttributeValue]) -> None:
        pass


class _LogScope:
    def __init__(self, logger: Any, name: str) -> None:
        self._log = logger
        self.name = name
        self.attributes: dict[str, AttributeValue] = {}
        self.status: ScopeStatus | None = None
        self.detail: str | None = None
        self.exception: BaseException | None = None
        self._started = time.monotonic()

    def set_attribute(self, key: str, value: AttributeValue) -> None:
        self.attributes[key] = value

    def record_exception(self, exc: BaseException) -> None:
        self.exception = exc

    def set_status(self, status: ScopeStatus, detail: str | None = None) -> None:
        self.status = status
        self.detail = detail

    def end(self) -> None:
        duration_ms = round((time.monotonic() - self._started) * 1000, 3)
        fields: dict[str, Any] = {
            "scope": self.name,
            "status": self.status,
            "duration_ms": duration_ms,
            **self.attributes,
        }
        if self.detail is not None:
            fields["detail"] = self.detail
        if self.exception is not None:
            fields["error"] = f"{type(self.exception).__name__}: {self.exception}"
            self._log.warning("paginator.scope", **fields)
        else:
            self._log.debug("paginator.scope", **fields)


class LogObservability:
    """structlog-backed observability: one log event per closed scope."""

    def __init__(self, logger: Any | None = None) -> None:
        self._log = logger or get_logger("pagekit.observability")

    def start_scope(self, name: str) -> Scope:
        return _LogScope(self._log, name)

    def record_metric(self, name: str, value: float, tags: Mapping[str, AttributeValue]) -> None:
        self._log.debug("paginator.metric", metric=name, value=value, **dict(tags))


def observability_from_settings(settings: Settings) -> Observability:
    """Pick the observability backend named by ``settings.observability``."""
    if settings.observability == "log":
        return LogObservability()
    if settings.observability == "otel":
        from pagekit.otel import OpenTelemetryObservability

        return OpenTelemetryObservability(settings.service_name)
    return NoopObservability()


def resolve_observability(config: PaginationConfig) -> tuple[Observability, str]:
    """Return the observability collaborator and service name for *config*.

    An explicit ``config.observability`` wins; otherwise both come from
    :func:`~pagekit.core.config.load_settings`.
    """
    observability, service_name = config.observability, config.service_name
    if observability is None:
        settings = load_settings()
        observability = observability_from_settings(settings)
        service_name = service_name or settings.service_name
    return observability, service_name or DEFAULT_SERVICE_NAME


# ── decorator ─────────────────────────────────────────────────────────────


class InstrumentedPaginator(Paginator[T]):
    """Wrap *inner* so every public operation is traced.

    Scopes are tagged with the configured attributes plus the progress
    counters (``pagesFetched``, ``itemsFetched``, ``hasMore``). A
    ``paginator.page`` metric is recorded after each ``next()`` that
    actually fetched a page.
    """

    def __init__(
        self,
        inner: Paginator[T],
        observability: Observability,
        *,
        attributes: Mapping[str, AttributeValue] | None = None,
        service_name: str = DEFAULT_SERVICE_NAME,
    ) -> None:
        self._inner = inner
        self._observability = observability
        self._attributes = dict(attributes or {})
        self._service_name = service_name

    @property
    def inner(self) -> Paginator[T]:
        return self._inner

    @contextmanager
    def _scope(self, operation: str) -> Iterator[Scope]:
        scope = self._observability.start_scope(f"paginator.{operation}")
        try:
            for key, value in self._attributes.items():
                scope.set_attribute(key, value)
            for key, value in self._inner.get_pagination_state().as_attributes().items():
                scope.set_attribute(key, value)
            yield scope
            scope.set_status("ok")
        except asyncio.CancelledError:
            scope.set_attribute("cancelled", True)
            scope.set_status("error", "cancelled")
            raise
        except Exception as exc:
            scope.record_exception(exc)
            scope.set_status("error", str(exc))
            raise
        finally:
            scope.end()

    @property
    def current_page(self) -> list[T] | None:
        return self._inner.current_page

    def has_next(self) -> bool:
        with self._scope("has_next") as scope:
            result = self._inner.has_next()
            scope.set_attribute("hasNext", result)
            return result

    async def next(self) -> list[T]:
        with self._scope("next") as scope:
            before = self._inner.get_pagination_state().pages_fetched
            page = await self._inner.next()
            after = self._inner.get_pagination_state()
            if after.pages_fetched != before:
                self._observability.record_metric(
                    PAGE_METRIC,
                    len(page),
                    {"service_name": self._service_name, **self._attributes},
                )
            scope.set_attribute("itemCount", len(page))
            scope.set_attribute("hasMore", after.has_more)
            return page

    async def get_current_page(self) -> list[T]:
        with self._scope("get_current_page") as scope:
            page = await super().get_current_page()
            scope.set_attribute("itemCount", len(page))
            return page

    async def get_all_items(self) -> list[T]:
        with self._scope("get_all_items") as scope:
            items = await super().get_all_items()
            scope.set_attribute("totalItems", len(items))
            return items

    async def for_each_page(self, callback: PageCallback[T]) -> None:
        with self._scope("for_each_page") as scope:
            await super().for_each_page(callback)
            scope.set_attribute("pagesProcessed", self._inner.get_pagination_state().pages_fetched)

    async def for_each_item(self, callback: ItemCallback[T]) -> None:
        with self._scope("for_each_item") as scope:
            await super().for_each_item(callback)
            scope.set_attribute("itemsProcessed", self._inner.get_pagination_state().items_fetched)

    def get_pagination_state(self) -> PaginationState:
        return self._inner.get_pagination_state()

    def reset(self) -> None:
        with self._scope("reset"):
            self._inner.reset()
