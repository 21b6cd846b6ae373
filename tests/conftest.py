"""Shared fixtures: a temporary data root and bronze-file writers."""

import json
from pathlib import Path

import pandas as pd
import pytest

from ops_core import DataPaths
from ops_core.pnl.ledger import LEDGER_COLUMNS


@pytest.fixture
def paths(tmp_path: Path) -> DataPaths:
    """DataPaths rooted in a fresh temporary directory with all layers created."""
    data_paths = DataPaths.from_root(tmp_path / "data")
    data_paths.ensure_dirs()
    return data_paths


def write_raw_records(paths: DataPaths, source: str, records: list[dict], name: str = "batch_001") -> Path:
    """Write raw workforce records as one JSONL bronze file."""
    path = paths.raw_source(source) / f"{name}.jsonl"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(json.dumps(r) + "\n" for r in records), encoding="utf-8")
    return path


def write_ledger(paths: DataPaths, rows: list[dict], name: str = "export_001") -> Path:
    """Write ledger rows as one CSV bronze file."""
    path = paths.raw_ledger / f"{name}.csv"
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows, columns=LEDGER_COLUMNS).to_csv(path, index=False)
    return path


def ledger_rows(location_id: str, year: int, month: int, lines: list[tuple]) -> list[dict]:
    """Expand ``(category, subcategory, amount)`` tuples into ledger rows."""
    return [
        {
            "location_id": location_id,
            "year": year,
            "month": month,
            "category": category,
            "subcategory": subcategory,
            "gl_account": category,
            "amount": amount,
        }
        for category, subcategory, amount in lines
    ]


# The +100,000 / -20,000 / -50,000 / -15,000 / +500 scenario -> resultaat 15,500
SCENARIO_LINES = [
    ("Netto-omzet uit leveringen geproduceerde goederen", "Omzet lunch (btw laag)", 60000.0),
    ("Netto-omzet uit verkoop van handelsgoederen", "Omzet wijnen (btw hoog)", 40000.0),
    ("Kostprijs van de omzet", "Inkopen keuken (btw laag)", -8000.0),
    ("Kostprijs van de omzet", "Inkopen wijnen (btw hoog)", -12000.0),
    ("Lonen en salarissen", "Bruto Salarissen Keuken", -35000.0),
    ("Lonen en salarissen", "Inhuur F&B", -15000.0),
    ("Huisvestingskosten", "Elektra", -5000.0),
    ("Huisvestingskosten", "Huur gebouwen", -7000.0),
    ("Kantoorkosten", "Kantoorbenodigdheden", -3000.0),
    ("Opbrengst van vorderingen die tot de vaste activa behoren en van effecten", "", 500.0),
]


@pytest.fixture
def scenario_entries() -> pd.DataFrame:
    """Ledger entries of one location-month following the 15,500 scenario."""
    return pd.DataFrame(ledger_rows("loc-1", 2025, 3, SCENARIO_LINES), columns=LEDGER_COLUMNS)
