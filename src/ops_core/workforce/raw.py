"""Bronze layer: raw workforce records.

Raw records are written by the ingestion step (outside this package) as JSON
lines, one file per sync batch, under ``a_raw/workforce/<source>/``. Each line
holds a normalized envelope plus the complete original API object::

    {"date": "2025-01-15", "external_id": "98231", "location_id": 10,
     "team_id": 3, "participant_id": 771, "payload": {...}}

Envelope fields that the ingestion step left empty are resolved from the
payload here, so range and location/team filters see the same values the
aggregator groups on. Records are otherwise read-only.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

from ops_core.exceptions import ExtractionError
from ops_core.fields import (
    DATE_PATHS,
    LOCATION_PATHS,
    PARTICIPANT_PATHS,
    TEAM_PATHS,
    key_text,
    resolve_field,
    to_primitive,
)

if TYPE_CHECKING:
    from ops_core.config import DataPaths

logger = logging.getLogger(__name__)

ENVELOPE_COLUMNS = ["date", "external_id", "location_id", "team_id", "participant_id", "payload"]

# Envelope column -> payload fallback paths
ENVELOPE_FALLBACKS = {
    "date": DATE_PATHS,
    "location_id": LOCATION_PATHS,
    "team_id": TEAM_PATHS,
    "participant_id": PARTICIPANT_PATHS,
}


def _read_jsonl(path: Path) -> pd.DataFrame:
    try:
        return pd.read_json(path, lines=True, dtype=False, convert_dates=False)
    except (OSError, ValueError) as e:
        raise ExtractionError(f"Failed to read raw records from {path}: {e}") from e


def normalize_envelope(df: pd.DataFrame) -> pd.DataFrame:
    """Return the envelope columns with payload fallbacks applied.

    Missing values become None and the date is rendered as YYYY-MM-DD
    (None when unparsable).
    """
    df = df.copy()
    for col in ENVELOPE_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df = df[ENVELOPE_COLUMNS].astype(object)
    df = df.where(df.notna(), None)

    for col, fallback_paths in ENVELOPE_FALLBACKS.items():
        df[col] = [
            to_primitive(value if value is not None else resolve_field(payload, fallback_paths))
            for value, payload in zip(df[col], df["payload"])
        ]

    df["date"] = df["date"].map(_iso_date)
    return df


def _iso_date(value: object) -> str | None:
    # Per value: payload timestamps mix naive and offset-aware strings
    if value is None:
        return None
    ts = pd.to_datetime(value, errors="coerce")
    return None if pd.isna(ts) else ts.date().isoformat()


def load_raw_records(
    paths: DataPaths,
    source: str,
    start_date: str,
    end_date: str,
    location_id: object | None = None,
    team_id: object | None = None,
) -> pd.DataFrame:
    """Load raw records of one workforce source for a date range.

    Args:
        paths: DataPaths configuration.
        source: Workforce source, e.g. ``"time_registration_shifts"``.
        start_date: Start date in YYYY-MM-DD format (inclusive).
        end_date: End date in YYYY-MM-DD format (inclusive).
        location_id: Optional location filter (compared as text).
        team_id: Optional team filter (compared as text).

    Returns:
        DataFrame with the normalized envelope columns, empty when the source
        directory holds no files. Records without a resolvable date are
        dropped with a warning.

    Raises:
        ExtractionError: If a bronze file cannot be read or parsed.
        ValueError: If the dates are not in YYYY-MM-DD format.

    """
    start = pd.to_datetime(start_date, format="%Y-%m-%d").date().isoformat()
    end = pd.to_datetime(end_date, format="%Y-%m-%d").date().isoformat()

    source_dir = paths.raw_source(source)
    files = sorted(source_dir.glob("*.jsonl")) if source_dir.exists() else []
    if not files:
        logger.info("No raw %s files found in %s", source, source_dir)
        return pd.DataFrame(columns=ENVELOPE_COLUMNS)

    df = pd.concat([_read_jsonl(f) for f in files], ignore_index=True)
    df = normalize_envelope(df)

    undated = df["date"].isna()
    if undated.any():
        logger.warning(
            "Skipping %d raw %s record(s) without a date: %s",
            int(undated.sum()),
            source,
            df.loc[undated, "external_id"].head(10).tolist(),
        )
        df = df[~undated]

    # ISO dates compare correctly as text
    df = df[(df["date"] >= start) & (df["date"] <= end)]

    if location_id is not None:
        df = df[df["location_id"].map(key_text) == key_text(location_id)]
    if team_id is not None:
        df = df[df["team_id"].map(key_text) == key_text(team_id)]

    logger.info(
        "Loaded %d raw %s record(s) from %d file(s) for %s to %s",
        len(df),
        source,
        len(files),
        start_date,
        end_date,
    )
    return df.reset_index(drop=True)
