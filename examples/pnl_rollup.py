"""Example: Monthly P&L rollup with reconciliation

Rolls the categorized ledger exports under ``data/a_raw/ledger/`` up into one
P&L record per location and month, then checks the result.

Prerequisites:
- Ledger CSV exports under data/a_raw/ledger/ (see ops_core.pnl.ledger)
"""

import logging
from pathlib import Path

from ops_core import DataPaths, NoDataError
from ops_core.pnl import marts
from ops_core.pnl.ledger import load_ledger_entries
from ops_core.pnl.reconcile import reconcile

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

paths = DataPaths.from_root(Path("data"))

location_id = "loc-1"  # MODIFY AS NEEDED
year = 2025  # MODIFY AS NEEDED

# Whole year, month by month
records = marts.aggregate_pnl_for_location(paths, location_id, year)
print(f"Aggregated {len(records)} month(s) for {location_id} {year}")
for record in records:
    print(
        f"  {record.aggregate_id}: revenue {record.total_revenue:>12,.2f}  "
        f"costs {record.total_costs:>12,.2f}  resultaat {record.resultaat:>12,.2f}"
    )

# One month against an externally reported result
month = 3
try:
    record = marts.aggregate_pnl(paths, location_id, year, month, expected_result=15500.0)
except NoDataError as e:
    print(f"\nNo P&L for {location_id} {year}-{month:02d}: {e}")
else:
    entries = load_ledger_entries(paths, location_id=location_id, year=year, month=month)
    check = reconcile(record, entries, expected_result=15500.0)
    print(f"\nReconciliation {record.aggregate_id}: {check.summary()}")

    drill = marts.load_pnl_subcategories(paths, location_id, year, month)
    print("\nDrill-down:")
    print(drill[["main_category", "subcategory", "amount"]].to_string(index=False))

print("\nData Layers:")
print(f"  - Bronze (raw): {paths.raw_ledger}")
print(f"  - Gold (mart): {paths.mart_pnl}")
