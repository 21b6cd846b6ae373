"""Example: Workforce aggregation over raw shift and revenue records

This example shows how to turn the raw JSONL records that ingestion dropped
under ``data/a_raw/workforce/<source>/`` into the daily gold tables:
1. Read raw time-registration, planning and revenue records (Bronze)
2. Resolve fields from the envelope or the nested payload
3. Upsert daily buckets into the aggregate tables (Gold)

Reruns over the same range leave the tables byte-identical.

Prerequisites:
- Raw JSONL files under data/a_raw/workforce/ (see ops_core.workforce.raw)
"""

import logging
from pathlib import Path

from ops_core import DataPaths
from ops_core.workforce import marts

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

paths = DataPaths.from_root(Path("data"))
paths.ensure_dirs()

start_date = "2025-01-01"  # MODIFY AS NEEDED
end_date = "2025-01-31"  # MODIFY AS NEEDED

print(f"Aggregating workforce records for {start_date} to {end_date}...")
results = marts.aggregate_all(paths, start_date, end_date)

for table, result in results.items():
    print(
        f"  - {table}: {result.records_processed} records -> "
        f"{result.records_aggregated} buckets in {result.processing_time:.2f}s"
    )
    for error in result.errors:
        print(f"      ! {error}")

# Single location, single team
labor = marts.load_labor_hours(paths, start_date, end_date, location_id="10", team_id="3")
print(f"\nLabor hours for location 10 / team 3: {len(labor)} rows")
print(labor.head())

revenue = marts.load_revenue_days(paths, start_date, end_date)
print(f"\nRevenue days: {len(revenue)} rows, total {revenue['total_revenue'].sum():.2f}")

print("\nData Layers:")
print(f"  - Bronze (raw): {paths.raw_workforce}")
print(f"  - Gold (mart): {paths.mart_workforce}")
