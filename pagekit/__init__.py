"""pagekit — bounded, resumable traversal of paginated list endpoints."""

from pagekit.core.logging import setup_logging
from pagekit.engine import (
    FetchStrategy,
    PaginationConfig,
    PaginationEngine,
    Paginator,
    create_paginator,
)
from pagekit.exceptions import InvalidCursorError, PaginatorConfigError, PaginatorError
from pagekit.instrumentation import (
    InstrumentedPaginator,
    LogObservability,
    NoopObservability,
    Observability,
    Scope,
)
from pagekit.iteration import fetch_all_items, fetch_all_pages, paginate_items, paginate_pages
from pagekit.models import ListOptions, ListResponse, ListResponseMeta, PaginationState
from pagekit.specialized import ClassifyingPaginator, OperationPaginator
from pagekit.strategies import CursorPage, CursorStrategy, OffsetPage, OffsetStrategy

__all__ = [
    "ClassifyingPaginator",
    "CursorPage",
    "CursorStrategy",
    "FetchStrategy",
    "InstrumentedPaginator",
    "InvalidCursorError",
    "ListOptions",
    "ListResponse",
    "ListResponseMeta",
    "LogObservability",
    "NoopObservability",
    "Observability",
    "OffsetPage",
    "OffsetStrategy",
    "OperationPaginator",
    "PaginationConfig",
    "PaginationEngine",
    "PaginationState",
    "Paginator",
    "PaginatorConfigError",
    "PaginatorError",
    "Scope",
    "create_paginator",
    "fetch_all_items",
    "fetch_all_pages",
    "paginate_items",
    "paginate_pages",
    "setup_logging",
]
