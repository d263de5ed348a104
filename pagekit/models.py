"""List request/response models and pagination state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")

DEFAULT_LIMIT = 10
DEFAULT_FETCH_ALL_LIMIT = 50

SortDirection = Literal["asc", "desc"]
FilterValue = Union[str, int, float, bool]


class ListOptions(BaseModel):
    """Options for a single list request.

    Immutable: the engine derives a fresh copy per fetch with
    :meth:`with_cursor` and never mutates the caller's instance.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    limit: PositiveInt | None = None
    cursor: str | None = None
    sort_by: str | None = None
    sort_direction: SortDirection | None = None
    filters: dict[str, FilterValue] = Field(default_factory=dict)

    def with_cursor(self, cursor: str | None) -> ListOptions:
        """Return a copy of these options positioned at *cursor*."""
        return self.model_copy(update={"cursor": cursor})

    def to_query_params(self) -> dict[str, str | int | float]:
        """Flatten into HTTP query parameters.

        Filters are inlined next to the standard keys, booleans become
        ``true``/``false`` and unset values are dropped.
        """
        params: dict[str, str | int | float] = {}
        standard = {
            "limit": self.limit,
            "cursor": self.cursor,
            "sortBy": self.sort_by,
            "sortDirection": self.sort_direction,
        }
        for key, value in {**standard, **self.filters}.items():
            if value is None:
                continue
            if isinstance(value, bool):
                params[key] = "true" if value else "false"
            else:
                params[key] = value
        return params


class ListResponseMeta(BaseModel):
    """Page metadata.

    ``next_cursor`` is present iff more pages exist. ``total`` and
    ``count`` are informational only; 0 when upstream does not report them.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = Field(default=0, ge=0)
    count: int = Field(default=0, ge=0)
    next_cursor: str | None = None
    prev_cursor: str | None = None

    @field_validator("next_cursor", "prev_cursor")
    @classmethod
    def _empty_cursor_is_absent(cls, value: str | None) -> str | None:
        return value or None


class ListResponse(BaseModel, Generic[T]):
    """One page of items plus its metadata."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    items: list[T]
    meta: ListResponseMeta = Field(default_factory=ListResponseMeta)


@dataclass(frozen=True)
class PaginationState:
    """Snapshot of a traversal's progress.

    ``cursor`` is the cursor for the *next* fetch, i.e. the previous
    response's ``next_cursor``.
    """

    cursor: str | None = None
    has_more: bool = True
    pages_fetched: int = 0
    items_fetched: int = 0
    last_fetch_at: datetime | None = None

    def as_attributes(self) -> dict[str, Any]:
        """Progress counters keyed the way instrumentation scopes expect them."""
        return {
            "pagesFetched": self.pages_fetched,
            "itemsFetched": self.items_fetched,
            "hasMore": self.has_more,
        }
