"""Gold layer writer: idempotent upsert of aggregate rows into CSV tables.

Each gold table is a single CSV keyed by a natural key. Writing a batch
replaces every stored row that shares a key with the batch (insert if absent,
overwrite if present), keeps all other rows untouched, sorts by the key and
writes the file atomically. Existing rows are read back as text and written
back as text, so rows outside the batch never change, and a rerun with the
same batch produces a byte-identical file.

This is the only module in the package that performs durable writes.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import numpy as np
import pandas as pd

from ops_core.exceptions import StorageError
from ops_core.fields import key_text

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


def _key_frame(df: pd.DataFrame, key_columns: Sequence[str]) -> pd.DataFrame:
    """Render key columns as text, with missing values as empty strings."""
    keys = df[list(key_columns)].copy()
    for col in key_columns:
        keys[col] = keys[col].map(_key_text)
    return keys


def _key_text(value: object) -> str:
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return ""
    if isinstance(value, np.floating):
        value = float(value)
    return key_text(value) or ""


def read_table(path: Path, key_columns: Sequence[str] | None = None) -> pd.DataFrame:
    """Load a gold table as text.

    Args:
        path: CSV file of the table.
        key_columns: Columns expected to exist; checked when given.

    Returns:
        DataFrame with every column as ``str`` (missing values as ``""``), or
        an empty DataFrame when the table does not exist yet.

    Raises:
        StorageError: If the file exists but cannot be read.

    """
    if not path.exists():
        return pd.DataFrame(columns=list(key_columns or []))
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding=ENCODING)
    except (OSError, ValueError) as e:
        raise StorageError(f"Failed to read aggregate table {path}: {e}") from e

    if key_columns:
        missing = [c for c in key_columns if c not in df.columns]
        if missing and not df.empty:
            raise StorageError(f"Aggregate table {path} is missing key columns {missing}")
    return df


def upsert_rows(
    path: Path,
    rows: pd.DataFrame,
    key_columns: Sequence[str],
    replace_scope: Sequence[str] | None = None,
) -> int:
    """Insert or overwrite rows of a gold table by natural key.

    Args:
        path: CSV file of the table (created when absent).
        rows: Freshly computed aggregate rows.
        key_columns: Natural key, e.g. ``["date", "location_id", "team_id"]``.
        replace_scope: Optional subset of columns. When given, every stored row
            whose scope matches a scope present in ``rows`` is dropped before
            the batch is appended (full overwrite of that scope instead of a
            per-key overwrite).

    Returns:
        Number of rows written from the batch.

    Raises:
        StorageError: If the table cannot be read or written.

    """
    if rows.empty:
        logger.debug("Nothing to upsert into %s", path)
        return 0

    missing = [c for c in key_columns if c not in rows.columns]
    if missing:
        raise StorageError(f"Rows for {path.name} are missing key columns {missing}")

    existing = read_table(path, key_columns)

    incoming = rows.copy()
    incoming_keys = _key_frame(incoming, key_columns)
    for col in key_columns:
        incoming[col] = incoming_keys[col]

    if incoming_keys.duplicated().any():
        dupes = incoming_keys[incoming_keys.duplicated(keep=False)]
        raise StorageError(f"Duplicate natural keys in batch for {path.name}:\n{dupes.head(10)}")

    match_columns = list(replace_scope) if replace_scope else list(key_columns)
    if not existing.empty:
        existing_match = _key_frame(existing, match_columns)
        incoming_match = _key_frame(incoming, match_columns).drop_duplicates()
        marker = existing_match.merge(incoming_match, on=match_columns, how="left", indicator=True)
        keep_mask = (marker["_merge"] == "left_only").to_numpy()
        kept = existing[keep_mask]
        combined = pd.concat([kept.astype(object), incoming.astype(object)], ignore_index=True)
    else:
        combined = incoming

    columns = list(dict.fromkeys([*key_columns, *incoming.columns, *existing.columns]))
    combined = combined.reindex(columns=columns).reset_index(drop=True)

    sort_keys = _key_frame(combined, key_columns)
    order = sort_keys.sort_values(list(key_columns), kind="mergesort").index
    combined = combined.loc[order].reset_index(drop=True)

    _write_atomic(path, combined)
    logger.info(
        "Upserted %d row(s) into %s (%d row(s) total)", len(incoming), path.name, len(combined)
    )
    return len(incoming)


def delete_rows(path: Path, match: Mapping[str, object]) -> int:
    """Delete every stored row whose columns equal ``match`` (compared as text).

    Returns:
        Number of rows removed. The file is left untouched when nothing matches.

    """

    def _matches(existing: pd.DataFrame) -> pd.Series:
        keys = _key_frame(existing, list(match))
        hit = pd.Series(True, index=existing.index)
        for col, value in match.items():
            hit &= keys[col] == _key_text(value)
        return hit

    return delete_where(path, _matches, list(match), description=str(dict(match)))


def delete_where(
    path: Path,
    predicate: Callable[[pd.DataFrame], pd.Series],
    key_columns: Sequence[str] | None = None,
    description: str = "predicate",
) -> int:
    """Delete every stored row for which ``predicate`` is true.

    Args:
        path: CSV file of the table.
        predicate: Receives the stored table (all columns as text) and returns
            a boolean mask aligned with it.
        key_columns: Columns expected to exist; checked when given.
        description: Scope description used in the log line.

    Returns:
        Number of rows removed. The file is left untouched when nothing matches.

    Raises:
        StorageError: If the table cannot be read or written.

    """
    existing = read_table(path, key_columns)
    if existing.empty:
        return 0

    hit = predicate(existing).astype(bool)
    removed = int(hit.sum())
    if removed:
        _write_atomic(path, existing[~hit].reset_index(drop=True))
        logger.info("Deleted %d row(s) matching %s from %s", removed, description, path.name)
    return removed


def _write_atomic(path: Path, df: pd.DataFrame) -> None:
    """Write a CSV through a temp file in the same directory, then rename."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding=ENCODING, newline="") as fh:
                df.to_csv(fh, index=False, lineterminator="\n")
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise StorageError(f"Failed to write aggregate table {path}: {e}") from e
