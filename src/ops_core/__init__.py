"""Ops Core - workforce and P&L aggregation.

This package turns raw operational data into canonical aggregate tables:

- **Bronze (raw)**: workforce API records (JSONL) and ledger exports (CSV)
- **Gold (marts)**: labor/planning/revenue buckets and monthly P&L records

Module Structure:
    ops_core.workforce: Shift and revenue-day aggregation (workforce.marts)
    ops_core.pnl: Ledger rollup, taxonomy and reconciliation (pnl.marts)
    ops_core.fields: Schema-on-read field resolution
    ops_core.durations: Shift duration from timestamps
    ops_core.storage: Idempotent upsert of gold tables
    ops_core.config: DataPaths configuration

Quick Start:
    >>> from ops_core import DataPaths
    >>> from ops_core.workforce import marts as workforce_marts
    >>> from ops_core.pnl import marts as pnl_marts
    >>>
    >>> paths = DataPaths.from_root("data")
    >>>
    >>> # Workforce: labor hours per date x location x team
    >>> result = workforce_marts.aggregate_labor_hours(paths, "2025-01-01", "2025-01-31")
    >>> print(result.records_aggregated, result.errors)
    >>>
    >>> # P&L: one location-month
    >>> record = pnl_marts.aggregate_pnl(paths, "loc-1", 2025, 1)
    >>> print(record.resultaat)

Grain Reference:
    Workforce:
        - labor_hours_aggregated - date x location x team
        - planning_hours_aggregated - date x location x team
        - revenue_days_aggregated - date x location

    P&L:
        - pnl_aggregated - location x year x month
        - pnl_aggregated_subcategories - aggregate_id x subcategory
"""

__version__ = "0.1.0"

from ops_core.config import DataPaths
from ops_core.exceptions import (
    ConfigError,
    DataQualityError,
    ETLError,
    ExtractionError,
    NoDataError,
    OpsCoreError,
    StorageError,
)

__all__ = [
    "ConfigError",
    "DataPaths",
    "DataQualityError",
    "ETLError",
    "ExtractionError",
    "NoDataError",
    "OpsCoreError",
    "StorageError",
    "__version__",
]
