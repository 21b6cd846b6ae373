"""Gold layer: aggregated P&L tables.

- ``pnl_aggregated.csv``: one row per (location_id, year, month)
- ``pnl_aggregated_subcategories.csv``: drill-down, one row per
  (aggregate_id, subcategory); a period's rows are replaced as a whole

Each period is recomputed from all of its ledger entries on every run.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import pandas as pd

if TYPE_CHECKING:
    from ops_core.config import DataPaths

from ops_core import storage
from ops_core.exceptions import OpsCoreError
from ops_core.fields import key_text
from ops_core.metadata import StageMetadata, scope_name, write_metadata
from ops_core.pnl.ledger import available_months, load_ledger_entries
from ops_core.pnl.reconcile import reconcile
from ops_core.pnl.rollup import (
    PNL_KEY,
    SUBCATEGORY_KEY,
    AggregatedPnLRecord,
    aggregate_id_for,
    calculate_pnl,
    subcategory_breakdown,
)
from ops_core.pnl.taxonomy import Taxonomy, load_taxonomy

logger = logging.getLogger(__name__)

PNL_VERSION = "pnl_rollup_v1"


def _record_failure(paths: DataPaths, scope: str, error: Exception) -> None:
    try:
        write_metadata(
            paths.mart_pnl,
            paths.pnl_table.stem,
            StageMetadata(
                scope=scope,
                version=PNL_VERSION,
                last_run=datetime.now().isoformat(),
                status="failed",
                errors=[str(error)],
            ),
        )
    except OSError as meta_error:
        logger.error("Could not record failed P&L run (%s): %s", scope, meta_error)


def aggregate_pnl(
    paths: DataPaths,
    location_id: object,
    year: int,
    month: int,
    taxonomy: Optional[Taxonomy] = None,
    expected_result: Optional[float] = None,
) -> AggregatedPnLRecord:
    """Compute, reconcile and store the P&L record of one period.

    Args:
        paths: DataPaths configuration.
        location_id: Location of the period.
        year: Year of the period.
        month: Month of the period (1-12).
        taxonomy: Label mapping; the packaged taxonomy when omitted.
        expected_result: Externally sourced net result used by the balance
            check.

    Returns:
        The stored AggregatedPnLRecord.

    Raises:
        NoDataError: If the period has no ledger entries.
        ExtractionError: If the ledger exports cannot be read.
        StorageError: If a P&L table cannot be written.

    Examples:
        >>> from ops_core import DataPaths
        >>> paths = DataPaths.from_root("data")
        >>> record = aggregate_pnl(paths, "loc-1", 2025, 3)  # doctest: +SKIP
        >>> record.resultaat  # doctest: +SKIP
        15500.0

    """
    taxonomy = taxonomy or load_taxonomy()
    scope = scope_name(key_text(location_id), year, f"{int(month):02d}")

    try:
        entries = load_ledger_entries(paths, location_id=location_id, year=year, month=month)
        record = calculate_pnl(entries, location_id, year, month, taxonomy=taxonomy)
        check = reconcile(record, entries, expected_result=expected_result, taxonomy=taxonomy)

        storage.upsert_rows(paths.pnl_table, pd.DataFrame([record.to_row()]), PNL_KEY)

        breakdown = subcategory_breakdown(entries, record.aggregate_id, taxonomy)
        if breakdown.empty:
            storage.delete_rows(paths.pnl_subcategories_table, {"aggregate_id": record.aggregate_id})
        else:
            storage.upsert_rows(
                paths.pnl_subcategories_table,
                breakdown,
                SUBCATEGORY_KEY,
                replace_scope=["aggregate_id"],
            )
    except Exception as e:
        logger.error("Error aggregating P&L for %s %s-%s: %s", location_id, year, month, e)
        _record_failure(paths, scope, e)
        raise

    write_metadata(
        paths.mart_pnl,
        paths.pnl_table.stem,
        StageMetadata(
            scope=scope,
            version=f"{PNL_VERSION}+taxonomy-{taxonomy.version}",
            last_run=datetime.now().isoformat(),
            status="ok",
            records_processed=len(entries),
            records_aggregated=1 + len(breakdown),
            errors=None if check.is_valid else [f"reconciliation {check.summary()}"],
        ),
    )
    return record


def aggregate_pnl_for_location(
    paths: DataPaths,
    location_id: object,
    year: int,
    taxonomy: Optional[Taxonomy] = None,
) -> list[AggregatedPnLRecord]:
    """Aggregate every month of ``year`` that has ledger entries for a location.

    A month that fails is logged and skipped; the others are still stored.

    Returns:
        Records of the months that succeeded, in month order.

    """
    taxonomy = taxonomy or load_taxonomy()
    months = available_months(paths, location_id, year)
    logger.info("Aggregating P&L for %s %s: months %s", location_id, year, months)

    results: list[AggregatedPnLRecord] = []
    for month in months:
        try:
            results.append(aggregate_pnl(paths, location_id, year, month, taxonomy=taxonomy))
        except OpsCoreError as e:
            logger.error("Failed to aggregate P&L for %s %s-%02d: %s", location_id, year, month, e)
    return results


def load_pnl(
    paths: DataPaths,
    location_id: object,
    year: int,
    month: int,
) -> Optional[AggregatedPnLRecord]:
    """Load a stored P&L record without recomputing it, or None if absent."""
    df = storage.read_table(paths.pnl_table, PNL_KEY)
    if df.empty:
        return None
    hit = df[
        (df["location_id"].map(key_text) == key_text(location_id))
        & (df["year"] == str(int(year)))
        & (df["month"] == str(int(month)))
    ]
    if hit.empty:
        return None
    return AggregatedPnLRecord.from_row(hit.iloc[0].to_dict())


def load_pnl_subcategories(
    paths: DataPaths,
    location_id: object,
    year: int,
    month: int,
) -> pd.DataFrame:
    """Load the stored drill-down rows of one period (``amount`` as float)."""
    df = storage.read_table(paths.pnl_subcategories_table, SUBCATEGORY_KEY)
    if df.empty:
        return df
    aggregate_id = aggregate_id_for(key_text(location_id), year, month)
    df = df[df["aggregate_id"] == aggregate_id].copy()
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce")
    return df.reset_index(drop=True)
