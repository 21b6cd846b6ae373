"""Gold layer: workforce aggregate tables.

Entry points that read raw workforce records for a date range, reduce them
into buckets and upsert the buckets into the gold tables:

- ``labor_hours_aggregated.csv`` (date x location x team)
- ``planning_hours_aggregated.csv`` (date x location x team)
- ``revenue_days_aggregated.csv`` (date x location)

Rerunning a range replaces every stored bucket inside the range (and its
location/team filters) with the freshly computed ones; buckets outside the
range are never touched.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from ops_core.config import DataPaths

from ops_core import storage
from ops_core.config import PLANNING_SHIFTS, REVENUE_DAYS, TIME_REGISTRATION_SHIFTS
from ops_core.fields import key_text
from ops_core.metadata import StageMetadata, scope_name, write_metadata
from ops_core.workforce import aggregate
from ops_core.workforce.raw import load_raw_records

logger = logging.getLogger(__name__)

AGGREGATION_VERSION = "workforce_aggregate_v1"


@dataclass
class AggregationResult:
    """Outcome of one aggregation invocation.

    Attributes:
        records_processed: Raw records read for the range.
        records_aggregated: Bucket rows written to the gold table.
        errors: Per-group error messages; those buckets were skipped.
        processing_time: Wall-clock seconds.
    """

    records_processed: int = 0
    records_aggregated: int = 0
    errors: list[str] = field(default_factory=list)
    processing_time: float = 0.0


def _scope_mask(
    df: pd.DataFrame,
    start_date: str,
    end_date: str,
    location_id: object | None,
    team_id: object | None,
) -> pd.Series:
    """Rows of a stored table (text columns) inside a range and its filters."""
    mask = (df["date"] >= start_date) & (df["date"] <= end_date)
    if location_id is not None:
        mask &= df["location_id"].map(key_text) == key_text(location_id)
    if team_id is not None:
        mask &= df["team_id"].map(key_text) == key_text(team_id)
    return mask


def _record_failure(table: Path, scope: str, error: Exception) -> None:
    try:
        write_metadata(
            table.parent,
            table.stem,
            StageMetadata(
                scope=scope,
                version=AGGREGATION_VERSION,
                last_run=datetime.now().isoformat(),
                status="failed",
                errors=[str(error)],
            ),
        )
    except OSError as meta_error:
        logger.error("Could not record failed run of %s (%s): %s", table.stem, scope, meta_error)


def _run(
    paths: DataPaths,
    source: str,
    table: Path,
    key_columns: tuple[str, ...],
    reducer: Callable[[pd.DataFrame], tuple[pd.DataFrame, list[str]]],
    start_date: str,
    end_date: str,
    location_id: object | None,
    team_id: object | None,
) -> AggregationResult:
    started = time.perf_counter()
    scope = scope_name(start_date, end_date, location_id, team_id)
    table_name = table.stem
    logger.info("Aggregating %s into %s for %s to %s", source, table_name, start_date, end_date)

    try:
        records = load_raw_records(paths, source, start_date, end_date, location_id, team_id)
        buckets, errors = reducer(records)
        # Full overwrite of the range: buckets that lost all their records go too
        storage.delete_where(
            table,
            lambda df: _scope_mask(df, start_date, end_date, location_id, team_id),
            key_columns,
            description=scope,
        )
        written = storage.upsert_rows(table, buckets, key_columns)
    except Exception as e:
        logger.error("Error aggregating %s: %s", table_name, e)
        _record_failure(table, scope, e)
        raise

    result = AggregationResult(
        records_processed=len(records),
        records_aggregated=written,
        errors=errors,
        processing_time=round(time.perf_counter() - started, 3),
    )
    write_metadata(
        table.parent,
        table_name,
        StageMetadata(
            scope=scope,
            version=AGGREGATION_VERSION,
            last_run=datetime.now().isoformat(),
            status="ok",
            records_processed=result.records_processed,
            records_aggregated=result.records_aggregated,
            errors=errors or None,
        ),
    )
    if errors:
        logger.warning("%s: %d bucket(s) skipped because of errors", table_name, len(errors))
    logger.info(
        "%s: %d record(s) -> %d bucket(s) in %.3fs",
        table_name,
        result.records_processed,
        result.records_aggregated,
        result.processing_time,
    )
    return result


def aggregate_labor_hours(
    paths: DataPaths,
    start_date: str,
    end_date: str,
    location_id: object | None = None,
    team_id: object | None = None,
) -> AggregationResult:
    """Aggregate time-registration shifts into the labor hours table.

    Args:
        paths: DataPaths configuration.
        start_date: Start date in YYYY-MM-DD format (inclusive).
        end_date: End date in YYYY-MM-DD format (inclusive).
        location_id: Optional location filter.
        team_id: Optional team filter.

    Returns:
        AggregationResult with counts, per-group errors and processing time.

    Raises:
        ExtractionError: If raw records cannot be read.
        StorageError: If the gold table cannot be written.

    Examples:
        >>> from ops_core import DataPaths
        >>> paths = DataPaths.from_root("data")
        >>> result = aggregate_labor_hours(paths, "2025-01-01", "2025-01-31")  # doctest: +SKIP
        >>> result.records_aggregated  # doctest: +SKIP
        42

    """
    return _run(
        paths,
        TIME_REGISTRATION_SHIFTS,
        paths.labor_hours_table,
        aggregate.SHIFT_KEY,
        aggregate.aggregate_labor_hours,
        start_date,
        end_date,
        location_id,
        team_id,
    )


def aggregate_planning_hours(
    paths: DataPaths,
    start_date: str,
    end_date: str,
    location_id: object | None = None,
    team_id: object | None = None,
) -> AggregationResult:
    """Aggregate planning shifts into the planning hours table.

    Same contract as :func:`aggregate_labor_hours`.
    """
    return _run(
        paths,
        PLANNING_SHIFTS,
        paths.planning_hours_table,
        aggregate.SHIFT_KEY,
        aggregate.aggregate_planning_hours,
        start_date,
        end_date,
        location_id,
        team_id,
    )


def aggregate_revenue_days(
    paths: DataPaths,
    start_date: str,
    end_date: str,
    location_id: object | None = None,
) -> AggregationResult:
    """Aggregate revenue-day records into the revenue days table."""
    return _run(
        paths,
        REVENUE_DAYS,
        paths.revenue_days_table,
        aggregate.REVENUE_KEY,
        aggregate.aggregate_revenue_days,
        start_date,
        end_date,
        location_id,
        None,
    )


def aggregate_all(
    paths: DataPaths,
    start_date: str,
    end_date: str,
    location_id: object | None = None,
) -> dict[str, AggregationResult]:
    """Run all three workforce aggregations for a date range.

    Returns:
        Mapping of table name to its AggregationResult.

    """
    return {
        "labor_hours": aggregate_labor_hours(paths, start_date, end_date, location_id),
        "planning_hours": aggregate_planning_hours(paths, start_date, end_date, location_id),
        "revenue_days": aggregate_revenue_days(paths, start_date, end_date, location_id),
    }


# ------------------------------------------------------------
# Readers
# ------------------------------------------------------------


def _load(
    table: Path,
    key_columns: tuple[str, ...],
    start_date: str,
    end_date: str,
    location_id: object | None,
    team_id: object | None = None,
) -> pd.DataFrame:
    df = storage.read_table(table, key_columns)
    if df.empty:
        return df

    df = df[_scope_mask(df, start_date, end_date, location_id, team_id)]

    measures = [c for c in df.columns if c not in key_columns]
    df = df.copy()
    df[measures] = df[measures].apply(pd.to_numeric, errors="coerce")
    return df.reset_index(drop=True)


def load_labor_hours(
    paths: DataPaths,
    start_date: str,
    end_date: str,
    location_id: object | None = None,
    team_id: object | None = None,
) -> pd.DataFrame:
    """Load stored labor hours buckets without running the aggregation.

    Key columns are returned as text, measures as numbers. Returns an empty
    DataFrame when the table does not exist yet.
    """
    return _load(
        paths.labor_hours_table, aggregate.SHIFT_KEY, start_date, end_date, location_id, team_id
    )


def load_planning_hours(
    paths: DataPaths,
    start_date: str,
    end_date: str,
    location_id: object | None = None,
    team_id: object | None = None,
) -> pd.DataFrame:
    """Load stored planning hours buckets without running the aggregation."""
    return _load(
        paths.planning_hours_table,
        aggregate.SHIFT_KEY,
        start_date,
        end_date,
        location_id,
        team_id,
    )


def load_revenue_days(
    paths: DataPaths,
    start_date: str,
    end_date: str,
    location_id: object | None = None,
) -> pd.DataFrame:
    """Load stored revenue day buckets without running the aggregation."""
    return _load(
        paths.revenue_days_table, aggregate.REVENUE_KEY, start_date, end_date, location_id
    )
