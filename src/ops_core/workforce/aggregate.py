"""Gold layer: reduce raw workforce records into aggregate buckets.

Raw records are grouped by a composite natural key and every group is reduced
from scratch into one bucket row:

- labor hours (time registration shifts): ``(date, location_id, team_id)``
- planning hours (planning shifts): ``(date, location_id, team_id)``
- revenue days: ``(date, location_id)``

Keys are tuples of text components, never concatenated strings, so
``("2024-05-01", "1", "23")`` and ``("2024-05-01", "12", "3")`` stay apart.

Per-record normalization resolves every measure through the candidate path
lists in :mod:`ops_core.fields`; hours fall back to the start/end timestamps
when the payload carries no explicit hours field. A failure while reducing
one group is logged, reported in the returned error list and that bucket is
skipped; the other groups are unaffected.

Every function here is pure: records in, DataFrame out.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import pandas as pd

from ops_core.durations import shift_hours
from ops_core.fields import (
    BREAK_MINUTES_PATHS,
    END_PATHS,
    HOURS_WORKED_PATHS,
    PLANNED_COST_PATHS,
    PLANNED_HOURS_PATHS,
    REVENUE_AMOUNT_PATHS,
    REVENUE_CENTS_PATHS,
    START_PATHS,
    STATUS_PATHS,
    WAGE_COST_PATHS,
    key_text,
    resolve_field,
    to_number,
)

logger = logging.getLogger(__name__)

SHIFT_KEY = ("date", "location_id", "team_id")
REVENUE_KEY = ("date", "location_id")

LABOR_HOURS_COLUMNS = [
    *SHIFT_KEY,
    "total_hours_worked",
    "total_breaks_minutes",
    "total_wage_cost",
    "employee_count",
    "shift_count",
    "avg_hours_per_employee",
    "avg_wage_per_hour",
]

PLANNING_HOURS_COLUMNS = [
    *SHIFT_KEY,
    "planned_hours_total",
    "total_breaks_minutes",
    "total_planned_cost",
    "employee_count",
    "shift_count",
    "confirmed_count",
    "cancelled_count",
    "planned_count",
    "avg_hours_per_employee",
    "avg_cost_per_hour",
]

REVENUE_DAYS_COLUMNS = [
    *REVENUE_KEY,
    "total_revenue",
    "transaction_count",
    "avg_revenue_per_transaction",
]


# ------------------------------------------------------------
# Per-record normalization
# ------------------------------------------------------------


def normalize_shift(
    payload: Mapping[str, Any] | None,
    hours_paths: Sequence[str] = HOURS_WORKED_PATHS,
    cost_paths: Sequence[str] = WAGE_COST_PATHS,
) -> dict[str, Any]:
    """Resolve hours, break minutes, cost and status of one shift payload.

    Hours come from the first explicit hours field; when that is absent or
    zero they are derived from start/end (overnight-aware, breaks subtracted).

    Examples:
        >>> normalize_shift({"start": "22:00", "end": "02:00", "breaks": 30})["hours"]
        3.5
        >>> normalize_shift({"hours_worked": "6", "costs": {"wage": 90}})["cost"]
        90.0

    """
    break_minutes = to_number(resolve_field(payload, BREAK_MINUTES_PATHS))
    hours = to_number(resolve_field(payload, hours_paths), default=None)
    if not hours:
        hours = shift_hours(
            resolve_field(payload, START_PATHS),
            resolve_field(payload, END_PATHS),
            break_minutes,
        ) or 0.0
    status = resolve_field(payload, STATUS_PATHS)
    return {
        "hours": hours,
        "break_minutes": break_minutes,
        "cost": to_number(resolve_field(payload, cost_paths)),
        "status": str(status).strip().lower() if status is not None else "planned",
    }


def revenue_amount(payload: Mapping[str, Any] | None) -> float:
    """Revenue of one revenue-day record in currency units.

    ``amt_in_cents`` is preferred and divided by 100; otherwise a plain
    revenue amount is used.
    """
    cents = resolve_field(payload, REVENUE_CENTS_PATHS)
    if cents is not None:
        return to_number(cents) / 100
    return to_number(resolve_field(payload, REVENUE_AMOUNT_PATHS))


def _safe_div(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def _distinct_participants(records: pd.DataFrame) -> int:
    participants = {key_text(p) for p in records["participant_id"]}
    participants.discard(None)
    return len(participants)


# ------------------------------------------------------------
# Bucket reducers
# ------------------------------------------------------------


def reduce_labor_bucket(records: pd.DataFrame) -> dict[str, Any]:
    """Reduce the time-registration shifts of one bucket."""
    shifts = pd.DataFrame([normalize_shift(p) for p in records["payload"]])
    total_hours = float(shifts["hours"].sum())
    total_cost = float(shifts["cost"].sum())
    employees = _distinct_participants(records)
    return {
        "total_hours_worked": round(total_hours, 2),
        "total_breaks_minutes": round(float(shifts["break_minutes"].sum()), 2),
        "total_wage_cost": round(total_cost, 2),
        "employee_count": employees,
        "shift_count": len(records),
        "avg_hours_per_employee": round(_safe_div(total_hours, employees), 2),
        "avg_wage_per_hour": round(_safe_div(total_cost, total_hours), 2),
    }


def reduce_planning_bucket(records: pd.DataFrame) -> dict[str, Any]:
    """Reduce the planning shifts of one bucket, counting shifts by status."""
    shifts = pd.DataFrame(
        [normalize_shift(p, PLANNED_HOURS_PATHS, PLANNED_COST_PATHS) for p in records["payload"]]
    )
    total_hours = float(shifts["hours"].sum())
    total_cost = float(shifts["cost"].sum())
    employees = _distinct_participants(records)
    confirmed = int((shifts["status"] == "confirmed").sum())
    cancelled = int((shifts["status"] == "cancelled").sum())
    return {
        "planned_hours_total": round(total_hours, 2),
        "total_breaks_minutes": round(float(shifts["break_minutes"].sum()), 2),
        "total_planned_cost": round(total_cost, 2),
        "employee_count": employees,
        "shift_count": len(records),
        "confirmed_count": confirmed,
        "cancelled_count": cancelled,
        "planned_count": len(records) - confirmed - cancelled,
        "avg_hours_per_employee": round(_safe_div(total_hours, employees), 2),
        "avg_cost_per_hour": round(_safe_div(total_cost, total_hours), 2),
    }


def reduce_revenue_bucket(records: pd.DataFrame) -> dict[str, Any]:
    """Reduce the revenue-day records of one bucket (one record per transaction)."""
    total_revenue = sum(revenue_amount(p) for p in records["payload"])
    transactions = len(records)
    return {
        "total_revenue": round(total_revenue, 2),
        "transaction_count": transactions,
        "avg_revenue_per_transaction": round(_safe_div(total_revenue, transactions), 2),
    }


# ------------------------------------------------------------
# Grouping
# ------------------------------------------------------------


def aggregate_buckets(
    records: pd.DataFrame,
    key_columns: Sequence[str],
    reducer: Callable[[pd.DataFrame], dict[str, Any]],
    columns: Sequence[str],
) -> tuple[pd.DataFrame, list[str]]:
    """Group records by a composite key and reduce each group to one row.

    Args:
        records: Raw records with the normalized envelope columns.
        key_columns: Natural key of the bucket.
        reducer: Function reducing one group's records to the measure columns.
        columns: Output column order.

    Returns:
        Tuple of (bucket rows sorted by key, per-group error messages).

    """
    errors: list[str] = []
    if records.empty:
        return pd.DataFrame(columns=list(columns)), errors

    work = records.copy()
    for col in key_columns:
        work[col] = work[col].map(key_text)

    missing_location = work["location_id"].isna()
    if missing_location.any():
        logger.warning(
            "%d record(s) have no location id; they are grouped under an empty location",
            int(missing_location.sum()),
        )

    rows: list[dict[str, Any]] = []
    grouped = work.groupby(list(key_columns), dropna=False, sort=True)
    logger.info("Grouped %d record(s) into %d bucket(s)", len(work), grouped.ngroups)

    for key, group in grouped:
        if not isinstance(key, tuple):
            key = (key,)
        key_values = {col: (None if pd.isna(v) else v) for col, v in zip(key_columns, key)}
        try:
            measures = reducer(group)
        except Exception as e:
            msg = f"Error processing group {tuple(key_values.values())}: {e}"
            logger.error(msg)
            errors.append(msg)
            continue
        logger.debug("Reduced bucket %s from %d record(s)", key_values, len(group))
        rows.append({**key_values, **measures})

    return pd.DataFrame(rows, columns=list(columns)), errors


def aggregate_labor_hours(records: pd.DataFrame) -> tuple[pd.DataFrame, list[str]]:
    """Reduce time-registration shifts into ``(date, location_id, team_id)`` buckets."""
    return aggregate_buckets(records, SHIFT_KEY, reduce_labor_bucket, LABOR_HOURS_COLUMNS)


def aggregate_planning_hours(records: pd.DataFrame) -> tuple[pd.DataFrame, list[str]]:
    """Reduce planning shifts into ``(date, location_id, team_id)`` buckets."""
    return aggregate_buckets(records, SHIFT_KEY, reduce_planning_bucket, PLANNING_HOURS_COLUMNS)


def aggregate_revenue_days(records: pd.DataFrame) -> tuple[pd.DataFrame, list[str]]:
    """Reduce revenue-day records into ``(date, location_id)`` buckets."""
    return aggregate_buckets(records, REVENUE_KEY, reduce_revenue_bucket, REVENUE_DAYS_COLUMNS)
