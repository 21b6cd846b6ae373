"""Workforce domain module.

This module provides access to workforce data across layers:

- **Bronze (raw)**: `workforce.raw.load_raw_records()` - raw JSONL records per
  source (time registration shifts, planning shifts, revenue days)
- **Gold (marts)**: `workforce.marts.aggregate_labor_hours()` /
  `load_labor_hours()` and the planning and revenue variants

Example:
    >>> from ops_core import DataPaths
    >>> from ops_core.workforce import marts
    >>>
    >>> paths = DataPaths.from_root("data")
    >>> result = marts.aggregate_labor_hours(paths, "2025-01-01", "2025-01-31")
    >>> labor = marts.load_labor_hours(paths, "2025-01-01", "2025-01-31")
"""

from ops_core.workforce import aggregate, marts, raw

__all__ = ["aggregate", "marts", "raw"]
