"""Reconciliation of an aggregated P&L record.

Three checks, none of which block persistence:

- **missing categories**: expected detailed buckets whose total is exactly
  zero in a period that has data
- **unmapped labels**: ledger labels that no taxonomy level knows; their
  amount is left out of every total and reported here
- **balance**: ``resultaat`` against an externally supplied expected result
  (e.g. the net total stated by the ledger export itself). Without one, the
  computed result is its own reference and the margin is zero.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from ops_core.pnl.rollup import AggregatedPnLRecord
from ops_core.pnl.taxonomy import Taxonomy, load_taxonomy, sum_by_subcategories

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_PCT = 0.5


@dataclass
class ReconciliationResult:
    """Outcome of :func:`reconcile`.

    Attributes:
        is_valid: True when no category is missing, no label is unmapped and
            the error margin is within tolerance.
        status: ``"pass"`` or ``"fail"``.
        error_margin: Absolute difference between calculated and actual
            result, as a percentage of the actual result.
        calculated_result: ``resultaat`` of the record.
        actual_result: External expected result, or the calculated one.
        missing_categories: Expected detailed buckets with a zero total.
        unmapped_subcategories: Labels present in the entries but in no bucket.
        unmapped_amount: Sum of the amounts carried by unmapped labels.
    """

    is_valid: bool
    status: str
    error_margin: float
    calculated_result: float
    actual_result: float
    missing_categories: list[str] = field(default_factory=list)
    unmapped_subcategories: list[str] = field(default_factory=list)
    unmapped_amount: float = 0.0

    def summary(self) -> str:
        parts = [f"{self.status} (error margin {self.error_margin:.2f}%)"]
        if self.missing_categories:
            parts.append(f"missing categories: {', '.join(self.missing_categories)}")
        if self.unmapped_subcategories:
            parts.append(
                f"unmapped labels ({self.unmapped_amount:.2f}): "
                f"{', '.join(self.unmapped_subcategories)}"
            )
        return "; ".join(parts)


def error_margin_pct(calculated: float, actual: float) -> float:
    """Percentage difference of ``calculated`` relative to ``actual``.

    Examples:
        >>> error_margin_pct(15500.0, 15500.0)
        0.0
        >>> error_margin_pct(15500.0, 15000.0)
        3.33
        >>> error_margin_pct(10.0, 0.0)
        100.0

    """
    if actual == 0:
        return 0.0 if calculated == 0 else 100.0
    return round(abs(calculated - actual) / abs(actual) * 100, 2)


def _bucket_total(
    record: AggregatedPnLRecord,
    entries: Optional[pd.DataFrame],
    taxonomy: Taxonomy,
    bucket: str,
) -> float:
    if hasattr(record, bucket):
        return float(getattr(record, bucket))
    # Bucket of a custom taxonomy with no record field
    if entries is None or entries.empty:
        return 0.0
    direct = entries[~taxonomy.group_lines(entries)]
    return round(sum_by_subcategories(direct, taxonomy.detailed.get(bucket, ())), 2) + 0.0


def reconcile(
    record: AggregatedPnLRecord,
    entries: Optional[pd.DataFrame] = None,
    expected_result: Optional[float] = None,
    taxonomy: Optional[Taxonomy] = None,
    expected_buckets: Optional[Iterable[str]] = None,
    tolerance_pct: float = DEFAULT_TOLERANCE_PCT,
) -> ReconciliationResult:
    """Validate a computed P&L record.

    Args:
        record: Record produced by :func:`ops_core.pnl.rollup.calculate_pnl`.
        entries: Ledger entries the record was computed from. Required for
            the unmapped-label check. Bucket totals always come from the
            record, so both paths see the same cent-rounded values.
        expected_result: Externally sourced net result for the period.
        taxonomy: Label mapping; the packaged taxonomy when omitted.
        expected_buckets: Detailed buckets that should carry activity every
            period. Defaults to every detailed bucket.
        tolerance_pct: Largest acceptable error margin.

    Returns:
        ReconciliationResult.

    """
    taxonomy = taxonomy or load_taxonomy()
    buckets = list(expected_buckets) if expected_buckets is not None else list(taxonomy.detailed)

    # Cent-rounded totals, the same values the stored record carries
    totals = {b: _bucket_total(record, entries, taxonomy, b) for b in buckets}
    if entries is not None:
        has_data = not entries.empty
    else:
        has_data = any(float(getattr(record, b, 0.0)) != 0 for b in taxonomy.detailed)

    missing = [b for b in buckets if totals[b] == 0] if has_data else []

    unmapped: list[str] = []
    unmapped_amount = 0.0
    if entries is not None and not entries.empty:
        unmapped = taxonomy.unmapped_labels(entries)
        if unmapped:
            unmapped_amount = round(float(entries.loc[taxonomy.unmapped_mask(entries), "amount"].sum()), 2)

    calculated = record.resultaat
    actual = float(expected_result) if expected_result is not None else calculated
    margin = error_margin_pct(calculated, actual)

    is_valid = not missing and not unmapped and margin <= tolerance_pct
    result = ReconciliationResult(
        is_valid=is_valid,
        status="pass" if is_valid else "fail",
        error_margin=margin,
        calculated_result=calculated,
        actual_result=actual,
        missing_categories=missing,
        unmapped_subcategories=unmapped,
        unmapped_amount=unmapped_amount,
    )

    if is_valid:
        logger.info("Reconciliation %s: %s", record.aggregate_id, result.summary())
    else:
        logger.warning("Reconciliation %s: %s", record.aggregate_id, result.summary())
    return result
