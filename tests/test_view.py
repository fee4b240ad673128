"""
Tests for billtracker/view.py

Filtering, stable sorting and per-status totals over a bill snapshot.
"""

import pytest

from billtracker.models import Amount, Bill, BillStatus
from billtracker.view import (
    ALL,
    SortKey,
    aggregate_totals,
    collation_key,
    derive_view,
    parse_filter,
    parse_sort_key,
    select_and_order,
)
from tests.conftest import make_bill


def ids(bills):
    return [b.id for b in bills]


# ================================================================
# TESTS: aggregate_totals
# ================================================================


class TestAggregateTotals:

    def test_scenario_totals(self, scenario_bills) -> None:
        totals = aggregate_totals(scenario_bills)
        assert totals == {BillStatus.PAID: 10, BillStatus.UNPAID: 5, BillStatus.PENDING: 7}

    def test_totals_keyed_by_status_name(self, scenario_bills) -> None:
        totals = aggregate_totals(scenario_bills)
        assert totals["Paid"] == 10

    def test_empty_collection_gives_zero_per_status(self) -> None:
        assert aggregate_totals([]) == {s: 0.0 for s in BillStatus}

    def test_sums_several_bills_of_one_status(self) -> None:
        bills = [make_bill("a", "Unpaid", 1.5), make_bill("b", "Unpaid", 2.25), make_bill("c", "Paid", 4)]
        totals = aggregate_totals(bills)
        assert totals[BillStatus.UNPAID] == pytest.approx(3.75)
        assert totals[BillStatus.PAID] == pytest.approx(4)
        assert totals[BillStatus.PENDING] == 0.0

    def test_unrecognised_status_is_ignored(self) -> None:
        odd = Bill.model_construct(
            id="x", type="Other", name=None, payment_method="",
            amount=Amount(value=99), status="Overdue",
        )
        totals = aggregate_totals([odd, make_bill("1", "Paid", 10)])
        assert totals == {BillStatus.PAID: 10, BillStatus.UNPAID: 0.0, BillStatus.PENDING: 0.0}

    def test_currencies_are_not_converted(self) -> None:
        bills = [make_bill("1", "Paid", 10, currency="EUR"), make_bill("2", "Paid", 10, currency="USD")]
        assert aggregate_totals(bills)[BillStatus.PAID] == 20


# ================================================================
# TESTS: select_and_order filtering
# ================================================================


class TestFiltering:

    def test_all_default_is_identity(self, scenario_bills) -> None:
        result = select_and_order(scenario_bills, ALL, SortKey.DEFAULT)
        assert result == scenario_bills
        assert result is not scenario_bills

    def test_filter_unpaid(self, scenario_bills) -> None:
        assert ids(select_and_order(scenario_bills, "Unpaid", "default")) == ["2"]

    def test_filter_keeps_relative_order(self) -> None:
        bills = [make_bill("a", "Paid", 3), make_bill("b", "Unpaid", 1), make_bill("c", "Paid", 2)]
        assert ids(select_and_order(bills, BillStatus.PAID)) == ["a", "c"]

    def test_filter_is_case_insensitive(self, scenario_bills) -> None:
        assert ids(select_and_order(scenario_bills, "pending")) == ["3"]

    def test_filter_without_matches_is_empty(self) -> None:
        assert select_and_order([make_bill("a", "Paid", 1)], "Unpaid") == []

    def test_empty_collection(self) -> None:
        assert select_and_order([], ALL, SortKey.AMOUNT_DESC) == []

    def test_unknown_filter_rejected(self, scenario_bills) -> None:
        with pytest.raises(ValueError):
            select_and_order(scenario_bills, "Overdue")


# ================================================================
# TESTS: select_and_order sorting
# ================================================================


class TestSorting:

    def test_amount_asc_scenario(self, scenario_bills) -> None:
        assert ids(select_and_order(scenario_bills, ALL, "amount-asc")) == ["2", "3", "1"]

    def test_amount_desc_scenario(self, scenario_bills) -> None:
        assert ids(select_and_order(scenario_bills, ALL, "amount-desc")) == ["1", "3", "2"]

    def test_equal_amounts_keep_input_order_both_ways(self) -> None:
        bills = [
            make_bill("a", "Paid", 5),
            make_bill("b", "Paid", 10),
            make_bill("c", "Paid", 5),
            make_bill("d", "Paid", 10),
        ]
        assert ids(select_and_order(bills, ALL, SortKey.AMOUNT_DESC)) == ["b", "d", "a", "c"]
        assert ids(select_and_order(bills, ALL, SortKey.AMOUNT_ASC)) == ["a", "c", "b", "d"]

    def test_name_asc_falls_back_to_type(self) -> None:
        bills = [
            make_bill("1", "Paid", 1, type="Streaming", name="banana"),
            make_bill("2", "Paid", 1, type="Other", name="Apple"),
            make_bill("3", "Paid", 1, type="Energy"),
            make_bill("4", "Paid", 1, type="Other", name="éclair"),
        ]
        assert ids(select_and_order(bills, ALL, SortKey.NAME_ASC)) == ["2", "1", "4", "3"]

    def test_name_asc_puts_lowercase_first_on_case_ties(self) -> None:
        bills = [make_bill("upper", "Paid", 1, name="A"), make_bill("lower", "Paid", 1, name="a")]
        assert ids(select_and_order(bills, ALL, "name-asc")) == ["lower", "upper"]

    def test_name_asc_identical_names_are_stable(self) -> None:
        bills = [make_bill("x", "Paid", 1, type="Energy"), make_bill("y", "Paid", 2, type="Energy")]
        assert ids(select_and_order(bills, ALL, "name-asc")) == ["x", "y"]

    @pytest.mark.parametrize("legacy, current", [
        ("amount-high-low", "amount-desc"),
        ("amount-low-high", "amount-asc"),
        ("name-az", "name-asc"),
    ])
    def test_legacy_sort_names(self, scenario_bills, legacy, current) -> None:
        assert select_and_order(scenario_bills, ALL, legacy) == select_and_order(scenario_bills, ALL, current)

    def test_unknown_sort_key_keeps_insertion_order(self, scenario_bills) -> None:
        assert ids(select_and_order(scenario_bills, ALL, "by-colour")) == ["1", "2", "3"]

    def test_sort_after_filter(self) -> None:
        bills = [make_bill("a", "Paid", 9), make_bill("b", "Unpaid", 1), make_bill("c", "Paid", 3)]
        assert ids(select_and_order(bills, "Paid", "amount-asc")) == ["c", "a"]

    def test_input_is_not_mutated_and_calls_are_idempotent(self, scenario_bills) -> None:
        before = list(scenario_bills)
        first = select_and_order(scenario_bills, ALL, SortKey.AMOUNT_ASC)
        second = select_and_order(scenario_bills, ALL, SortKey.AMOUNT_ASC)
        assert first == second
        assert scenario_bills == before


# ================================================================
# TESTS: helpers and derive_view
# ================================================================


class TestHelpers:

    def test_parse_sort_key_none_is_default(self) -> None:
        assert parse_sort_key(None) is SortKey.DEFAULT

    def test_parse_filter_all(self) -> None:
        assert parse_filter("All") is None
        assert parse_filter(None) is None

    def test_collation_ignores_accents_and_case(self) -> None:
        assert collation_key("Énergie")[0] == collation_key("energie")[0]

    def test_derive_view_totals_cover_unfiltered_collection(self, scenario_bills) -> None:
        view = derive_view(scenario_bills, "Paid", "default")
        assert ids(view.items) == ["1"]
        assert view.totals[BillStatus.UNPAID] == 5
        assert view.totals[BillStatus.PENDING] == 7
