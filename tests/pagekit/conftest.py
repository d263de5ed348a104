"""Fixtures for paginator tests — fake upstreams and a recording observability."""

from __future__ import annotations

import asyncio

import pytest

from pagekit.models import ListOptions, ListResponse, ListResponseMeta


class FakeCollection:
    """In-memory cursor upstream: the cursor is the decimal start index."""

    def __init__(self, items, page_size=3, fail_on=None):
        self.items = list(items)
        self.page_size = page_size
        self.fail_on = fail_on
        self.calls: list[ListOptions] = []
        self.gate: asyncio.Event | None = None
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, options: ListOptions) -> ListResponse:
        self.calls.append(options)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            if self.fail_on is not None and len(self.calls) == self.fail_on:
                raise RuntimeError("upstream unavailable")
            start = int(options.cursor) if options.cursor else 0
            limit = options.limit or self.page_size
            end = min(start + limit, len(self.items))
            return ListResponse(
                items=self.items[start:end],
                meta=ListResponseMeta(
                    total=len(self.items),
                    count=end - start,
                    next_cursor=str(end) if end < len(self.items) else None,
                    prev_cursor=str(max(start - limit, 0)) if start > 0 else None,
                ),
            )
        finally:
            self.in_flight -= 1


class RecordingScope:
    def __init__(self, name):
        self.name = name
        self.attributes = {}
        self.status = None
        self.detail = None
        self.exceptions = []
        self.end_calls = 0

    def set_attribute(self, key, value):
        self.attributes[key] = value

    def record_exception(self, exc):
        self.exceptions.append(exc)

    def set_status(self, status, detail=None):
        self.status = status
        self.detail = detail

    def end(self):
        self.end_calls += 1


class RecordingObservability:
    def __init__(self):
        self.scopes: list[RecordingScope] = []
        self.metrics: list[tuple[str, float, dict]] = []

    def start_scope(self, name):
        scope = RecordingScope(name)
        self.scopes.append(scope)
        return scope

    def record_metric(self, name, value, tags):
        self.metrics.append((name, value, dict(tags)))

    def named(self, name):
        return [s for s in self.scopes if s.name == name]


@pytest.fixture
def make_collection():
    return FakeCollection


@pytest.fixture
def observability():
    return RecordingObservability()
