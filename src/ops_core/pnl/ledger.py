"""Bronze layer: categorized ledger entries.

Ledger exports land as CSV files under ``a_raw/ledger/``, one row per
general-ledger line::

    location_id,year,month,category,subcategory,gl_account,amount
    loc-1,2025,3,Huisvestingskosten,Elektra,Huisvestingskosten,-1250.40

Amounts keep the sign of the export (costs negative, revenue positive).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

from ops_core.exceptions import DataQualityError, ExtractionError
from ops_core.fields import key_text

if TYPE_CHECKING:
    from ops_core.config import DataPaths

logger = logging.getLogger(__name__)

LEDGER_COLUMNS = ["location_id", "year", "month", "category", "subcategory", "gl_account", "amount"]
REQUIRED_COLUMNS = ["location_id", "year", "month", "category", "amount"]


def _read_ledger_csv(path: Path) -> pd.DataFrame:
    try:
        return pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8")
    except (OSError, ValueError) as e:
        raise ExtractionError(f"Failed to read ledger export {path}: {e}") from e


def _coerce(df: pd.DataFrame, source: str) -> pd.DataFrame:
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise DataQualityError(f"Ledger export {source} is missing required columns: {missing}")

    df = df.copy()
    for col in LEDGER_COLUMNS:
        if col not in df.columns:
            df[col] = ""
    df = df[LEDGER_COLUMNS]

    for col in ("location_id", "category", "subcategory", "gl_account"):
        df[col] = df[col].astype(str).str.strip()

    numeric = {col: pd.to_numeric(df[col], errors="coerce") for col in ("year", "month", "amount")}
    bad = numeric["year"].isna() | numeric["month"].isna() | numeric["amount"].isna()
    if bad.any():
        raise DataQualityError(
            f"Ledger export {source} has {int(bad.sum())} row(s) with a non-numeric "
            f"year, month or amount:\n{df[bad].head(5)}"
        )

    df["year"] = numeric["year"].astype(int)
    df["month"] = numeric["month"].astype(int)
    df["amount"] = numeric["amount"].astype(float)
    return df


def load_ledger_entries(
    paths: DataPaths,
    location_id: object | None = None,
    year: int | None = None,
    month: int | None = None,
) -> pd.DataFrame:
    """Load ledger entries, optionally for one location, year and month.

    Args:
        paths: DataPaths configuration.
        location_id: Optional location filter (compared as text).
        year: Optional year filter.
        month: Optional month filter (1-12).

    Returns:
        DataFrame with ``LEDGER_COLUMNS``; ``year``/``month`` as int and
        ``amount`` as float. Empty when nothing matches.

    Raises:
        ExtractionError: If an export file cannot be read.
        DataQualityError: If an export lacks required columns or holds
            non-numeric year/month/amount values.

    """
    files = sorted(paths.raw_ledger.glob("*.csv")) if paths.raw_ledger.exists() else []
    if not files:
        logger.info("No ledger exports found in %s", paths.raw_ledger)
        return pd.DataFrame(columns=LEDGER_COLUMNS)

    df = pd.concat([_coerce(_read_ledger_csv(f), f.name) for f in files], ignore_index=True)

    if location_id is not None:
        df = df[df["location_id"] == key_text(location_id)]
    if year is not None:
        df = df[df["year"] == int(year)]
    if month is not None:
        df = df[df["month"] == int(month)]

    logger.debug(
        "Loaded %d ledger entries (location=%s, year=%s, month=%s)", len(df), location_id, year, month
    )
    return df.reset_index(drop=True)


def available_months(paths: DataPaths, location_id: object, year: int) -> list[int]:
    """Months of ``year`` that have ledger entries for a location, ascending."""
    df = load_ledger_entries(paths, location_id=location_id, year=year)
    return sorted(int(m) for m in df["month"].unique())
