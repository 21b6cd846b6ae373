"""P&L rollup: ledger entries for one period -> one aggregated P&L record.

All bucket totals come from :func:`ops_core.pnl.taxonomy.sum_by_subcategories`
(group-category revenue from :func:`ops_core.pnl.taxonomy.split_group_revenue`)
and keep the native sign of the ledger (costs negative, revenue positive), so
the net result is a plain sum::

    resultaat = total_revenue + total_cost_of_sales + total_labor_costs
                + total_other_costs + income_from_receivables

Costs must never be negated before summing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any, Optional

import pandas as pd

from ops_core.exceptions import NoDataError
from ops_core.fields import key_text
from ops_core.pnl.taxonomy import (
    DETAILED_BUCKETS,
    Taxonomy,
    load_taxonomy,
    split_group_revenue,
    sum_by_subcategories,
)

logger = logging.getLogger(__name__)

PNL_KEY = ("location_id", "year", "month")
SUBCATEGORY_KEY = ("aggregate_id", "subcategory")
SUBCATEGORY_COLUMNS = ["aggregate_id", "subcategory", "main_category", "gl_account", "amount"]

# Detailed buckets rolled up into total_other_costs
OTHER_COST_BUCKETS = (
    "housing_costs",
    "operating_costs",
    "sales_costs",
    "vehicle_costs",
    "office_costs",
    "insurance_costs",
    "accounting_costs",
    "administrative_costs",
    "other_costs",
    "depreciation",
    "financial_income_expense",
)


@dataclass
class AggregatedPnLRecord:
    """One aggregated P&L row per (location_id, year, month).

    Summary columns support the high-level view, detailed columns the
    granular view; the legacy totals are kept for existing reports.
    """

    location_id: str
    year: int
    month: int

    # Summary
    revenue_food: float = 0.0
    revenue_beverage: float = 0.0
    revenue_total: float = 0.0
    cost_of_sales_food: float = 0.0
    cost_of_sales_beverage: float = 0.0
    cost_of_sales_total: float = 0.0
    labor_contract: float = 0.0
    labor_flex: float = 0.0
    labor_total: float = 0.0
    other_costs_total: float = 0.0
    income_from_receivables: float = 0.0
    resultaat: float = 0.0

    # Detailed
    revenue_produced_goods: float = 0.0
    revenue_trade_goods: float = 0.0
    purchase_cost_of_goods: float = 0.0
    wages_and_salaries: float = 0.0
    housing_costs: float = 0.0
    operating_costs: float = 0.0
    sales_costs: float = 0.0
    vehicle_costs: float = 0.0
    office_costs: float = 0.0
    insurance_costs: float = 0.0
    accounting_costs: float = 0.0
    administrative_costs: float = 0.0
    other_costs: float = 0.0
    depreciation: float = 0.0
    financial_income_expense: float = 0.0

    # Legacy totals
    total_revenue: float = 0.0
    total_cost_of_sales: float = 0.0
    total_labor_costs: float = 0.0
    total_other_costs: float = 0.0
    total_costs: float = 0.0

    taxonomy_version: str = ""

    @property
    def aggregate_id(self) -> str:
        return aggregate_id_for(self.location_id, self.year, self.month)

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> AggregatedPnLRecord:
        """Rebuild a record from a stored table row (values may be text)."""
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in row:
                continue
            raw = row[f.name]
            if f.name in ("location_id", "taxonomy_version"):
                values[f.name] = str(raw)
            elif f.name in ("year", "month"):
                values[f.name] = int(raw)
            else:
                values[f.name] = float(raw) if raw != "" else 0.0
        return cls(**values)


def aggregate_id_for(location_id: object, year: int, month: int) -> str:
    """Natural id of one P&L period, e.g. ``"loc-1/2025-03"``."""
    return f"{location_id}/{int(year):04d}-{int(month):02d}"


def _money(value: float) -> float:
    # Avoid -0.0 in stored tables
    return round(value, 2) + 0.0


def calculate_pnl(
    entries: pd.DataFrame,
    location_id: object,
    year: int,
    month: int,
    taxonomy: Optional[Taxonomy] = None,
) -> AggregatedPnLRecord:
    """Compute the aggregated P&L record for one period.

    Args:
        entries: Ledger entries of the period (``category``, ``subcategory``,
            ``amount`` columns at least).
        location_id: Location of the period.
        year: Year of the period.
        month: Month of the period (1-12).
        taxonomy: Label mapping; the packaged taxonomy when omitted.

    Returns:
        AggregatedPnLRecord with every summary, detailed and legacy field and
        ``resultaat``, rounded to cents.

    Raises:
        NoDataError: If ``entries`` is empty.

    """
    if entries is None or entries.empty:
        raise NoDataError(f"No data found for location {location_id}, year {year}, month {month}")

    taxonomy = taxonomy or load_taxonomy()

    # Group-category lines are split by subcategory, never matched by label
    direct = entries[~taxonomy.group_lines(entries)]
    group_food, group_beverage = split_group_revenue(entries, taxonomy)

    summary = {b: sum_by_subcategories(direct, labels) for b, labels in taxonomy.summary.items()}
    detailed = {b: sum_by_subcategories(direct, labels) for b, labels in taxonomy.detailed.items()}
    summary["revenue_food"] += group_food
    summary["revenue_beverage"] += group_beverage
    detailed["revenue_produced_goods"] += group_food
    detailed["revenue_trade_goods"] += group_beverage
    summary = {b: _money(v) for b, v in summary.items()}
    detailed = {b: _money(v) for b, v in detailed.items()}

    total_revenue = _money(detailed["revenue_produced_goods"] + detailed["revenue_trade_goods"])
    total_cost_of_sales = detailed["purchase_cost_of_goods"]
    total_labor_costs = detailed["wages_and_salaries"]
    total_other_costs = _money(sum(detailed[b] for b in OTHER_COST_BUCKETS))
    income_from_receivables = detailed["income_from_receivables"]

    resultaat = _money(
        total_revenue
        + total_cost_of_sales
        + total_labor_costs
        + total_other_costs
        + income_from_receivables
    )

    record = AggregatedPnLRecord(
        location_id=key_text(location_id) or "",
        year=int(year),
        month=int(month),
        revenue_food=summary["revenue_food"],
        revenue_beverage=summary["revenue_beverage"],
        revenue_total=_money(summary["revenue_food"] + summary["revenue_beverage"]),
        cost_of_sales_food=summary["cost_of_sales_food"],
        cost_of_sales_beverage=summary["cost_of_sales_beverage"],
        cost_of_sales_total=_money(summary["cost_of_sales_food"] + summary["cost_of_sales_beverage"]),
        labor_contract=summary["labor_contract"],
        labor_flex=summary["labor_flex"],
        labor_total=_money(summary["labor_contract"] + summary["labor_flex"]),
        other_costs_total=total_other_costs,
        income_from_receivables=income_from_receivables,
        resultaat=resultaat,
        **{b: detailed[b] for b in DETAILED_BUCKETS if b != "income_from_receivables"},
        total_revenue=total_revenue,
        total_cost_of_sales=total_cost_of_sales,
        total_labor_costs=total_labor_costs,
        total_other_costs=total_other_costs,
        total_costs=_money(total_cost_of_sales + total_labor_costs + total_other_costs),
        taxonomy_version=taxonomy.version,
    )
    logger.info(
        "P&L %s: %d entries, revenue %.2f, costs %.2f, resultaat %.2f",
        record.aggregate_id,
        len(entries),
        record.total_revenue,
        record.total_costs,
        record.resultaat,
    )
    return record


def subcategory_breakdown(
    entries: pd.DataFrame,
    aggregate_id: str,
    taxonomy: Optional[Taxonomy] = None,
) -> pd.DataFrame:
    """Drill-down rows: one per summary-bucket label with a nonzero sum.

    Only entries whose ``subcategory`` equals the label count here;
    category-level lines and group-category lines have no drill-down.

    Returns:
        DataFrame with ``SUBCATEGORY_COLUMNS``, in taxonomy order.

    """
    taxonomy = taxonomy or load_taxonomy()
    if entries.empty:
        return pd.DataFrame(columns=SUBCATEGORY_COLUMNS)

    entries = entries[~taxonomy.group_lines(entries)]
    by_subcategory = entries.groupby(entries["subcategory"].fillna("").astype(str).str.strip())["amount"].sum()

    rows = []
    for bucket, labels in taxonomy.summary.items():
        for label in labels:
            amount = _money(float(by_subcategory.get(label, 0.0)))
            if amount == 0:
                continue
            rows.append(
                {
                    "aggregate_id": aggregate_id,
                    "subcategory": label,
                    "main_category": taxonomy.display.get(bucket, bucket),
                    "gl_account": taxonomy.gl_accounts.get(bucket, ""),
                    "amount": amount,
                }
            )
    return pd.DataFrame(rows, columns=SUBCATEGORY_COLUMNS)
