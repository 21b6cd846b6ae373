"""P&L domain module.

Ledger entries are rolled up per (location, year, month) through a static
category taxonomy:

- **Bronze (raw)**: `pnl.ledger.load_ledger_entries()` - categorized ledger
  exports
- **Gold (marts)**: `pnl.marts.aggregate_pnl()` / `load_pnl()` -
  pnl_aggregated plus the subcategory drill-down

Example:
    >>> from ops_core import DataPaths
    >>> from ops_core.pnl import marts
    >>>
    >>> paths = DataPaths.from_root("data")
    >>> record = marts.aggregate_pnl(paths, "loc-1", 2025, 3)
    >>> record.resultaat
"""

from ops_core.pnl import ledger, marts, reconcile, rollup, taxonomy

__all__ = ["ledger", "marts", "reconcile", "rollup", "taxonomy"]
