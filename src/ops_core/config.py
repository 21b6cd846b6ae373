"""Unified configuration for Ops Core.

This module provides a single, simple configuration class used by both the
workforce and the P&L pipelines.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

# Workforce sources delivered by the scheduling API
TIME_REGISTRATION_SHIFTS = "time_registration_shifts"
PLANNING_SHIFTS = "planning_shifts"
REVENUE_DAYS = "revenue_days"

WORKFORCE_SOURCES = (TIME_REGISTRATION_SHIFTS, PLANNING_SHIFTS, REVENUE_DAYS)


@dataclass
class DataPaths:
    """All filesystem paths used by the aggregation pipelines.

    Attributes:
        data_root: Root directory for all data layers.

    Directory Structure:
        data_root/
        ├── a_raw/                      # Bronze: raw records from ingestion
        │   ├── workforce/
        │   │   ├── time_registration_shifts/
        │   │   ├── planning_shifts/
        │   │   └── revenue_days/
        │   └── ledger/                 # categorized ledger exports (CSV)
        └── c_processed/                # Gold: aggregate tables
            ├── workforce/              # labor/planning/revenue aggregates
            └── pnl/                    # pnl_aggregated + subcategory drill-down

    """

    data_root: Path

    @classmethod
    def from_root(cls, data_root: str | Path) -> DataPaths:
        """Create DataPaths from a root directory.

        Args:
            data_root: Root directory for all data layers.

        Returns:
            DataPaths instance.

        Examples:
            >>> paths = DataPaths.from_root("data")
            >>> paths.raw_ledger
            PosixPath('data/a_raw/ledger')

        """
        if isinstance(data_root, str):
            data_root = Path(data_root)
        return cls(data_root=data_root)

    # Bronze
    @property
    def raw_workforce(self) -> Path:
        """Bronze layer: raw workforce records, one sub-directory per source."""
        return self.data_root / "a_raw" / "workforce"

    def raw_source(self, source: str) -> Path:
        """Bronze directory for one workforce source (e.g. ``planning_shifts``)."""
        if source not in WORKFORCE_SOURCES:
            raise ValueError(f"Unknown workforce source '{source}'. Must be one of {WORKFORCE_SOURCES}.")
        return self.raw_workforce / source

    @property
    def raw_ledger(self) -> Path:
        """Bronze layer: categorized ledger exports."""
        return self.data_root / "a_raw" / "ledger"

    # Gold
    @property
    def mart_workforce(self) -> Path:
        """Gold layer: workforce aggregate tables."""
        return self.data_root / "c_processed" / "workforce"

    @property
    def mart_pnl(self) -> Path:
        """Gold layer: P&L aggregate tables."""
        return self.data_root / "c_processed" / "pnl"

    @property
    def labor_hours_table(self) -> Path:
        return self.mart_workforce / "labor_hours_aggregated.csv"

    @property
    def planning_hours_table(self) -> Path:
        return self.mart_workforce / "planning_hours_aggregated.csv"

    @property
    def revenue_days_table(self) -> Path:
        return self.mart_workforce / "revenue_days_aggregated.csv"

    @property
    def pnl_table(self) -> Path:
        return self.mart_pnl / "pnl_aggregated.csv"

    @property
    def pnl_subcategories_table(self) -> Path:
        return self.mart_pnl / "pnl_aggregated_subcategories.csv"

    def ensure_dirs(self) -> None:
        """Create all directories in the data structure."""
        for path in [
            *(self.raw_source(source) for source in WORKFORCE_SOURCES),
            self.raw_ledger,
            self.mart_workforce,
            self.mart_pnl,
        ]:
            path.mkdir(parents=True, exist_ok=True)
