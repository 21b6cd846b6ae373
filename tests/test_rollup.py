"""Tests for the P&L rollup calculator."""

import pandas as pd
import pytest

from ops_core.exceptions import NoDataError
from ops_core.pnl.ledger import LEDGER_COLUMNS
from ops_core.pnl.rollup import (
    SUBCATEGORY_COLUMNS,
    AggregatedPnLRecord,
    aggregate_id_for,
    calculate_pnl,
    subcategory_breakdown,
)
from ops_core.pnl.taxonomy import DETAILED_BUCKETS, SUMMARY_BUCKETS, Taxonomy

from conftest import SCENARIO_LINES, ledger_rows


class TestResultaat:
    """Costs are stored negative and added, never subtracted."""

    def test_scenario_result(self, scenario_entries: pd.DataFrame) -> None:
        record = calculate_pnl(scenario_entries, "loc-1", 2025, 3)

        assert record.total_revenue == pytest.approx(100000)
        assert record.total_cost_of_sales == pytest.approx(-20000)
        assert record.total_labor_costs == pytest.approx(-50000)
        assert record.total_other_costs == pytest.approx(-15000)
        assert record.income_from_receivables == pytest.approx(500)
        assert record.resultaat == pytest.approx(15500)

    def test_summary_splits(self, scenario_entries: pd.DataFrame) -> None:
        record = calculate_pnl(scenario_entries, "loc-1", 2025, 3)

        assert record.revenue_food == pytest.approx(60000)
        assert record.revenue_beverage == pytest.approx(40000)
        assert record.revenue_total == pytest.approx(record.total_revenue)
        assert record.cost_of_sales_food == pytest.approx(-8000)
        assert record.cost_of_sales_beverage == pytest.approx(-12000)
        assert record.cost_of_sales_total == pytest.approx(-20000)
        assert record.labor_contract == pytest.approx(-35000)
        assert record.labor_flex == pytest.approx(-15000)
        assert record.labor_total == pytest.approx(-50000)

    def test_detailed_splits(self, scenario_entries: pd.DataFrame) -> None:
        record = calculate_pnl(scenario_entries, "loc-1", 2025, 3)

        assert record.revenue_produced_goods == pytest.approx(60000)
        assert record.revenue_trade_goods == pytest.approx(40000)
        assert record.housing_costs == pytest.approx(-12000)
        assert record.office_costs == pytest.approx(-3000)
        assert record.vehicle_costs == 0
        assert record.other_costs_total == pytest.approx(record.total_other_costs)

    def test_category_sum_completeness(self, scenario_entries: pd.DataFrame) -> None:
        """With every label covered, the cost rollups add up without leakage."""
        record = calculate_pnl(scenario_entries, "loc-1", 2025, 3)

        assert record.total_costs == record.total_cost_of_sales + record.total_labor_costs + record.total_other_costs
        covered = scenario_entries["amount"].sum()
        assert record.total_revenue + record.total_costs + record.income_from_receivables == pytest.approx(covered)

    def test_positive_correction_reduces_cost(self) -> None:
        lines = [("Huisvestingskosten", "Elektra", -1000.0), ("Huisvestingskosten", "Elektra", 250.0)]
        df = pd.DataFrame(ledger_rows("loc-1", 2025, 3, lines), columns=LEDGER_COLUMNS)
        record = calculate_pnl(df, "loc-1", 2025, 3)

        assert record.housing_costs == pytest.approx(-750)
        assert record.resultaat == pytest.approx(-750)

    def test_unmapped_label_excluded_from_totals(self, scenario_entries: pd.DataFrame) -> None:
        extra = pd.DataFrame(
            ledger_rows("loc-1", 2025, 3, [("Overige bedrijfskosten", "Mysterieuze kosten", -250.0)]),
            columns=LEDGER_COLUMNS,
        )
        record = calculate_pnl(pd.concat([scenario_entries, extra], ignore_index=True), "loc-1", 2025, 3)

        assert record.resultaat == pytest.approx(15500)
        assert record.total_costs == pytest.approx(-85000)


def test_no_data_raises() -> None:
    empty = pd.DataFrame(columns=LEDGER_COLUMNS)
    with pytest.raises(NoDataError, match="No data found for location loc-1"):
        calculate_pnl(empty, "loc-1", 2025, 3)


def test_injected_taxonomy() -> None:
    """A substitute taxonomy changes where a label lands."""
    summary = {b: () for b in SUMMARY_BUCKETS}
    detailed = {b: () for b in DETAILED_BUCKETS}
    detailed["vehicle_costs"] = ("Elektra",)
    taxonomy = Taxonomy(version="alt", summary=summary, detailed=detailed)

    df = pd.DataFrame(ledger_rows("loc-1", 2025, 3, [("Huisvestingskosten", "Elektra", -90.0)]), columns=LEDGER_COLUMNS)
    record = calculate_pnl(df, "loc-1", 2025, 3, taxonomy=taxonomy)

    assert record.vehicle_costs == pytest.approx(-90)
    assert record.housing_costs == 0
    assert record.taxonomy_version == "alt"


def test_aggregate_id() -> None:
    assert aggregate_id_for("loc-1", 2025, 3) == "loc-1/2025-03"
    assert AggregatedPnLRecord("loc-1", 2025, 11).aggregate_id == "loc-1/2025-11"


def test_record_from_text_row(scenario_entries: pd.DataFrame) -> None:
    record = calculate_pnl(scenario_entries, "loc-1", 2025, 3)
    as_text = {k: str(v) for k, v in record.to_row().items()}

    assert AggregatedPnLRecord.from_row(as_text) == record


class TestSubcategoryBreakdown:
    def test_rows_per_summary_label(self, scenario_entries: pd.DataFrame) -> None:
        df = subcategory_breakdown(scenario_entries, "loc-1/2025-03")

        assert list(df.columns) == SUBCATEGORY_COLUMNS
        by_label = df.set_index("subcategory")
        assert by_label.loc["Omzet lunch (btw laag)", "main_category"] == "Revenue Food"
        assert by_label.loc["Inhuur F&B", "main_category"] == "Labor Flex"
        assert by_label.loc["Inkopen wijnen (btw hoog)", "gl_account"] == "Kostprijs van de omzet"
        assert by_label.loc["Bruto Salarissen Keuken", "amount"] == pytest.approx(-35000)
        assert set(df["aggregate_id"]) == {"loc-1/2025-03"}

    def test_only_summary_labels_with_nonzero_sum(self) -> None:
        lines = [
            ("Lonen en salarissen", "Inhuur keuken", 100.0),
            ("Lonen en salarissen", "Inhuur keuken", -100.0),
            ("Huisvestingskosten", "Elektra", -50.0),
            ("Lonen en salarissen", "Inhuur Afwas", -30.0),
        ]
        df = pd.DataFrame(ledger_rows("loc-1", 2025, 3, lines), columns=LEDGER_COLUMNS)
        breakdown = subcategory_breakdown(df, "loc-1/2025-03")

        assert list(breakdown["subcategory"]) == ["Inhuur Afwas"]

    def test_category_level_lines_have_no_drilldown(self) -> None:
        lines = [("Netto-omzet uit leveringen geproduceerde goederen", "", 1000.0)]
        df = pd.DataFrame(ledger_rows("loc-1", 2025, 3, lines), columns=LEDGER_COLUMNS)
        assert subcategory_breakdown(df, "loc-1/2025-03").empty


def test_scenario_covers_every_line() -> None:
    """Guard: the shared scenario only uses labels the packaged taxonomy knows."""
    from ops_core.pnl.taxonomy import load_taxonomy

    df = pd.DataFrame(ledger_rows("loc-1", 2025, 3, SCENARIO_LINES), columns=LEDGER_COLUMNS)
    assert load_taxonomy().unmapped_labels(df) == []


class TestGroupRevenue:
    """Revenue booked under the group category is split into food and beverage."""

    LINES = [
        ("Netto-omzet groepen", "Omzet bier groep", 1000.0),
        ("Netto-omzet groepen", "Omzet lunch groep", 500.0),
        ("Netto-omzet groepen", "Omzet lunch (btw laag)", 300.0),
        ("Netto-omzet groepen", "Correctie groep", -200.0),
    ]

    def test_split_into_both_levels(self) -> None:
        df = pd.DataFrame(ledger_rows("loc-1", 2025, 3, self.LINES), columns=LEDGER_COLUMNS)
        record = calculate_pnl(df, "loc-1", 2025, 3)

        assert record.revenue_food == pytest.approx(800)
        assert record.revenue_produced_goods == pytest.approx(800)
        assert record.revenue_beverage == pytest.approx(1000)
        assert record.revenue_trade_goods == pytest.approx(1000)
        assert record.total_revenue == pytest.approx(1800)
        assert record.resultaat == pytest.approx(1800)

    def test_adds_to_direct_revenue(self, scenario_entries: pd.DataFrame) -> None:
        extra = pd.DataFrame(ledger_rows("loc-1", 2025, 3, self.LINES[:2]), columns=LEDGER_COLUMNS)
        record = calculate_pnl(pd.concat([scenario_entries, extra], ignore_index=True), "loc-1", 2025, 3)

        assert record.revenue_food == pytest.approx(60500)
        assert record.revenue_beverage == pytest.approx(41000)
        assert record.resultaat == pytest.approx(17000)

    def test_group_lines_have_no_drilldown(self) -> None:
        df = pd.DataFrame(ledger_rows("loc-1", 2025, 3, self.LINES), columns=LEDGER_COLUMNS)
        assert subcategory_breakdown(df, "loc-1/2025-03").empty

    def test_taxonomy_without_group_category(self) -> None:
        summary = {b: () for b in SUMMARY_BUCKETS}
        detailed = {b: () for b in DETAILED_BUCKETS}
        taxonomy = Taxonomy(version="plain", summary=summary, detailed=detailed)

        df = pd.DataFrame(ledger_rows("loc-1", 2025, 3, self.LINES), columns=LEDGER_COLUMNS)
        record = calculate_pnl(df, "loc-1", 2025, 3, taxonomy=taxonomy)

        assert record.total_revenue == 0


def test_numeric_location_is_normalized(scenario_entries: pd.DataFrame) -> None:
    record = calculate_pnl(scenario_entries, 10.0, 2025, 3)

    assert record.location_id == "10"
    assert record.aggregate_id == "10/2025-03"
