"""Tests for classifying / operation paginators."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from pagekit.engine import PaginationConfig, PaginationEngine
from pagekit.instrumentation import InstrumentedPaginator, NoopObservability
from pagekit.models import ListOptions
from pagekit.specialized import (
    ClassifyingPaginator,
    OperationPaginator,
    operation_config,
    operation_type,
)


@dataclass
class Operation:
    id: str
    type: str
    amount: int


OPERATIONS = [
    {"id": "op1", "type": "DEBIT"},
    {"id": "op2", "type": "CREDIT"},
    {"id": "op3", "type": "DEBIT"},
    {"id": "op4", "type": "DEBIT"},
    {"id": "op5", "type": "CREDIT"},
    {"id": "op6", "type": "ADJUSTMENT"},
    {"id": "op7", "type": None},
]


def _engine(collection, **kwargs):
    return PaginationEngine(
        PaginationConfig(fetch_page=collection, initial_options=ListOptions(limit=3), **kwargs)
    )


# ── TestClassifyingPaginator ──────────────────────────────────────────────


class TestClassifyingPaginator:
    @pytest.mark.anyio
    async def test_counts_per_page_and_total(self, make_collection):
        paginator = ClassifyingPaginator(_engine(make_collection(OPERATIONS)), operation_type)

        await paginator.next()
        assert paginator.last_page_counts == {"DEBIT": 2, "CREDIT": 1}

        await paginator.next()
        assert paginator.last_page_counts == {"DEBIT": 1, "CREDIT": 1, "ADJUSTMENT": 1}
        assert paginator.category_counts == {"DEBIT": 3, "CREDIT": 2, "ADJUSTMENT": 1}

    @pytest.mark.anyio
    async def test_none_category_not_counted(self, make_collection):
        paginator = ClassifyingPaginator(_engine(make_collection(OPERATIONS)), operation_type)
        await paginator.get_all_items()
        assert sum(paginator.category_counts.values()) == 6
        assert paginator.last_page_counts == {}

    @pytest.mark.anyio
    async def test_termination_untouched(self, make_collection):
        inner_collection = make_collection(OPERATIONS)
        plain = _engine(make_collection(OPERATIONS), max_pages=2)
        classified = ClassifyingPaginator(_engine(inner_collection, max_pages=2), lambda op: "X")

        plain_items = await plain.get_all_items()
        classified_items = await classified.get_all_items()

        assert classified_items == plain_items
        assert classified.has_next() is plain.has_next() is False
        plain_state = plain.get_pagination_state()
        classified_state = classified.get_pagination_state()
        assert classified_state.pages_fetched == plain_state.pages_fetched
        assert classified_state.items_fetched == plain_state.items_fetched
        assert classified_state.cursor == plain_state.cursor
        assert classified_state.has_more == plain_state.has_more

    @pytest.mark.anyio
    async def test_noop_next_not_classified(self, make_collection):
        paginator = ClassifyingPaginator(_engine(make_collection(OPERATIONS[:2])), operation_type)
        await paginator.get_all_items()
        counts = dict(paginator.category_counts)

        await paginator.next()

        assert paginator.category_counts == counts
        assert paginator.last_page_counts == {"DEBIT": 1, "CREDIT": 1}

    @pytest.mark.anyio
    async def test_reset_clears_counts(self, make_collection):
        paginator = ClassifyingPaginator(_engine(make_collection(OPERATIONS)), operation_type)
        await paginator.get_all_items()

        paginator.reset()

        assert paginator.category_counts == {}
        assert paginator.last_page_counts == {}
        assert paginator.get_pagination_state().pages_fetched == 0
        await paginator.get_all_items()
        assert paginator.category_counts["DEBIT"] == 3

    @pytest.mark.anyio
    async def test_metrics_for_nonzero_categories(self, make_collection, observability):
        paginator = ClassifyingPaginator(
            _engine(make_collection(OPERATIONS[:3])),
            operation_type,
            observability=observability,
            metric_prefix="operations.paginator",
            metric_tags={"accountId": "acc_1"},
        )

        await paginator.next()

        assert sorted(observability.metrics) == [
            ("operations.paginator.credit", 1, {"accountId": "acc_1"}),
            ("operations.paginator.debit", 2, {"accountId": "acc_1"}),
        ]

    @pytest.mark.anyio
    async def test_current_page_delegates(self, make_collection):
        paginator = ClassifyingPaginator(_engine(make_collection(OPERATIONS)), operation_type)
        assert paginator.current_page is None
        page = await paginator.get_current_page()
        assert page == OPERATIONS[:3]
        assert paginator.last_page_counts == {"DEBIT": 2, "CREDIT": 1}


# ── TestOperationPaginator ────────────────────────────────────────────────


class TestOperationPaginator:
    def test_operation_type(self):
        assert operation_type({"type": "debit"}) == "DEBIT"
        assert operation_type(Operation("op1", "CREDIT", 10)) == "CREDIT"
        assert operation_type({"id": "op"}) is None
        assert operation_type(object()) is None

    @pytest.mark.anyio
    async def test_debit_credit_counts(self, make_collection):
        config = operation_config(
            make_collection(OPERATIONS),
            organization_id="org_1",
            ledger_id="ldg_1",
            account_id="acc_1",
            initial_options=ListOptions(limit=3),
            observability=NoopObservability(),
        )
        paginator = OperationPaginator(config)

        items = await paginator.get_all_items()

        assert items == OPERATIONS
        assert paginator.debit_count == 3
        assert paginator.credit_count == 2
        assert isinstance(paginator.inner, ClassifyingPaginator)

    @pytest.mark.anyio
    async def test_instrumented_with_identifiers(self, make_collection, observability):
        config = operation_config(
            make_collection(OPERATIONS),
            organization_id="org_1",
            ledger_id="ldg_1",
            account_id="acc_1",
            initial_options=ListOptions(limit=3),
            observability=observability,
            attributes={"region": "eu"},
        )
        paginator = OperationPaginator(config)

        await paginator.next()

        assert isinstance(paginator.inner, InstrumentedPaginator)
        names = [m[0] for m in observability.metrics]
        assert names.count("paginator.page") == 1
        assert "operations.paginator.debit" in names
        debit = next(m for m in observability.metrics if m[0] == "operations.paginator.debit")
        assert debit[2] == {
            "orgId": "org_1",
            "ledgerId": "ldg_1",
            "accountId": "acc_1",
            "region": "eu",
        }
        (scope,) = observability.named("paginator.next")
        assert scope.attributes["accountId"] == "acc_1"

    @pytest.mark.anyio
    async def test_traversal_operations_open_scopes(self, make_collection, observability):
        config = operation_config(
            make_collection(OPERATIONS),
            organization_id="org_1",
            ledger_id="ldg_1",
            account_id="acc_1",
            initial_options=ListOptions(limit=3),
            observability=observability,
        )
        paginator = OperationPaginator(config)

        items = await paginator.get_all_items()
        paginator.reset()
        seen = []
        await paginator.for_each_item(seen.append)

        assert items == seen == OPERATIONS
        (all_items,) = observability.named("paginator.get_all_items")
        assert all_items.attributes["totalItems"] == len(OPERATIONS)
        assert all_items.attributes["accountId"] == "acc_1"
        assert len(observability.named("paginator.for_each_item")) == 1
        assert len(observability.named("paginator.reset")) == 1
        assert all(scope.end_calls == 1 for scope in observability.scopes)
        assert paginator.debit_count == 3
        assert paginator.credit_count == 2

    @pytest.mark.anyio
    async def test_current_page_scope(self, make_collection, observability):
        config = PaginationConfig(
            fetch_page=make_collection(OPERATIONS),
            initial_options=ListOptions(limit=3),
            observability=observability,
        )
        paginator = OperationPaginator(config)

        page = await paginator.get_current_page()

        assert page == OPERATIONS[:3]
        assert len(observability.named("paginator.get_current_page")) == 1
        assert paginator.last_page_counts == {"DEBIT": 2, "CREDIT": 1}

    @pytest.mark.anyio
    async def test_observability_argument_overrides_config(self, make_collection, observability):
        config = PaginationConfig(
            fetch_page=make_collection(OPERATIONS[:2]),
            initial_options=ListOptions(limit=3),
            observability=NoopObservability(),
        )
        paginator = OperationPaginator(config, observability=observability)

        await paginator.get_all_items()

        assert isinstance(paginator.inner, InstrumentedPaginator)
        assert observability.named("paginator.get_all_items")
        names = [m[0] for m in observability.metrics]
        assert "operations.paginator.debit" in names

    @pytest.mark.anyio
    async def test_typed_operations(self, make_collection):
        ops = [Operation(f"op{i}", "DEBIT" if i % 2 else "CREDIT", i) for i in range(5)]
        config = PaginationConfig(
            fetch_page=make_collection(ops),
            initial_options=ListOptions(limit=2),
            observability=NoopObservability(),
        )
        paginator = OperationPaginator(config)

        await paginator.get_all_items()

        assert paginator.debit_count == 2
        assert paginator.credit_count == 3
