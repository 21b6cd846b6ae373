"""Tests for P&L reconciliation."""

import pandas as pd
import pytest

from ops_core.pnl.ledger import LEDGER_COLUMNS
from ops_core.pnl.reconcile import error_margin_pct, reconcile
from ops_core.pnl.rollup import AggregatedPnLRecord, calculate_pnl

from conftest import ledger_rows

SCENARIO_BUCKETS = [
    "revenue_produced_goods",
    "revenue_trade_goods",
    "purchase_cost_of_goods",
    "wages_and_salaries",
    "housing_costs",
    "office_costs",
    "income_from_receivables",
]


class TestMissingCategories:
    def test_complete_period_passes(self, scenario_entries: pd.DataFrame) -> None:
        record = calculate_pnl(scenario_entries, "loc-1", 2025, 3)
        result = reconcile(record, scenario_entries, expected_buckets=SCENARIO_BUCKETS)

        assert result.is_valid
        assert result.status == "pass"
        assert result.missing_categories == []
        assert result.unmapped_subcategories == []
        assert result.error_margin == 0.0
        assert result.actual_result == result.calculated_result == pytest.approx(15500)

    def test_zero_buckets_reported(self, scenario_entries: pd.DataFrame) -> None:
        record = calculate_pnl(scenario_entries, "loc-1", 2025, 3)
        result = reconcile(record, scenario_entries)

        assert not result.is_valid
        assert result.status == "fail"
        assert "vehicle_costs" in result.missing_categories
        assert "depreciation" in result.missing_categories
        assert "housing_costs" not in result.missing_categories

    def test_record_only_uses_record_totals(self, scenario_entries: pd.DataFrame) -> None:
        record = calculate_pnl(scenario_entries, "loc-1", 2025, 3)
        result = reconcile(record, expected_buckets=["housing_costs", "insurance_costs"])

        assert result.missing_categories == ["insurance_costs"]

    def test_period_without_data_has_no_missing_categories(self) -> None:
        result = reconcile(AggregatedPnLRecord("loc-1", 2025, 3))
        assert result.missing_categories == []
        assert result.is_valid


class TestUnmapped:
    def test_unmapped_label_is_a_discrepancy(self, scenario_entries: pd.DataFrame) -> None:
        extra = pd.DataFrame(
            ledger_rows(
                "loc-1",
                2025,
                3,
                [
                    ("Overige bedrijfskosten", "Mysterieuze kosten", -200.0),
                    ("Overige bedrijfskosten", "Mysterieuze kosten", -50.0),
                ],
            ),
            columns=LEDGER_COLUMNS,
        )
        entries = pd.concat([scenario_entries, extra], ignore_index=True)
        record = calculate_pnl(entries, "loc-1", 2025, 3)
        result = reconcile(record, entries, expected_buckets=SCENARIO_BUCKETS)

        assert record.resultaat == pytest.approx(15500)
        assert result.unmapped_subcategories == ["Mysterieuze kosten"]
        assert result.unmapped_amount == pytest.approx(-250)
        assert not result.is_valid
        assert "Mysterieuze kosten" in result.summary()


class TestBalance:
    def test_external_result_outside_tolerance(self, scenario_entries: pd.DataFrame) -> None:
        record = calculate_pnl(scenario_entries, "loc-1", 2025, 3)
        result = reconcile(record, scenario_entries, expected_result=15000, expected_buckets=SCENARIO_BUCKETS)

        assert result.actual_result == 15000
        assert result.error_margin == pytest.approx(3.33)
        assert result.status == "fail"

    def test_external_result_within_tolerance(self, scenario_entries: pd.DataFrame) -> None:
        record = calculate_pnl(scenario_entries, "loc-1", 2025, 3)
        result = reconcile(record, scenario_entries, expected_result=15550, expected_buckets=SCENARIO_BUCKETS)

        assert result.error_margin == pytest.approx(0.32)
        assert result.is_valid

    def test_custom_tolerance(self, scenario_entries: pd.DataFrame) -> None:
        record = calculate_pnl(scenario_entries, "loc-1", 2025, 3)
        result = reconcile(
            record,
            scenario_entries,
            expected_result=15000,
            expected_buckets=SCENARIO_BUCKETS,
            tolerance_pct=5.0,
        )
        assert result.is_valid

    @pytest.mark.parametrize(
        "calculated, actual, expected",
        [(100.0, 100.0, 0.0), (90.0, 100.0, 10.0), (-110.0, -100.0, 10.0), (0.0, 0.0, 0.0), (5.0, 0.0, 100.0)],
    )
    def test_error_margin(self, calculated, actual, expected) -> None:
        assert error_margin_pct(calculated, actual) == pytest.approx(expected)


def test_totals_are_cent_rounded_with_and_without_entries() -> None:
    lines = [
        ("Huisvestingskosten", "Elektra", 0.1),
        ("Huisvestingskosten", "Elektra", 0.2),
        ("Huisvestingskosten", "Elektra", -0.3),
        ("Kantoorkosten", "Kantoorbenodigdheden", -10.0),
    ]
    entries = pd.DataFrame(ledger_rows("loc-1", 2025, 3, lines), columns=LEDGER_COLUMNS)
    record = calculate_pnl(entries, "loc-1", 2025, 3)
    buckets = ["housing_costs", "office_costs"]

    assert record.housing_costs == 0.0
    assert reconcile(record, entries, expected_buckets=buckets).missing_categories == ["housing_costs"]
    assert reconcile(record, expected_buckets=buckets).missing_categories == ["housing_costs"]


def test_group_revenue_counts_and_negative_group_line_is_unmapped() -> None:
    lines = [
        ("Netto-omzet groepen", "Omzet bier groep", 1000.0),
        ("Netto-omzet groepen", "Retour groep", -40.0),
    ]
    entries = pd.DataFrame(ledger_rows("loc-1", 2025, 3, lines), columns=LEDGER_COLUMNS)
    record = calculate_pnl(entries, "loc-1", 2025, 3)
    result = reconcile(record, entries, expected_buckets=["revenue_trade_goods"])

    assert result.missing_categories == []
    assert result.unmapped_subcategories == ["Retour groep"]
    assert result.unmapped_amount == pytest.approx(-40)
