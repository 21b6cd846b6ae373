"""Run metadata for aggregation invocations.

Every invocation writes one small JSON record next to the gold table it
updated, keyed by the invocation scope (date range and filters, or
location/year/month). The aggregate tables themselves carry no run
timestamps so that reruns leave them byte-identical.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9_.=-]+")


@dataclass
class StageMetadata:
    """Metadata for a completed aggregation run.

    Attributes:
        scope: Invocation scope, e.g. ``"2025-01-01_2025-01-31"``.
        version: Version string for the aggregation logic.
        last_run: ISO timestamp of when the run finished.
        status: "ok" or "failed".
        records_processed: Raw records / ledger entries read.
        records_aggregated: Aggregate rows written.
        errors: Per-group error messages collected during the run.
    """

    scope: str
    version: str
    last_run: str
    status: str
    records_processed: int = 0
    records_aggregated: int = 0
    errors: Optional[list[str]] = None


def scope_name(*parts: object) -> str:
    """Build a filesystem-safe scope name from its parts.

    ``None`` parts are rendered as ``all``.

    Examples:
        >>> scope_name("2025-01-01", "2025-01-31", None)
        '2025-01-01_2025-01-31_all'

    """
    rendered = ["all" if p is None else str(p) for p in parts]
    return "_".join(_UNSAFE_CHARS_RE.sub("-", p) for p in rendered)


def _meta_path(stage_dir: Path, table: str, scope: str) -> Path:
    meta_dir = stage_dir / "_meta"
    meta_dir.mkdir(parents=True, exist_ok=True)
    return meta_dir / f"{table}_{scope}.json"


def write_metadata(stage_dir: Path, table: str, metadata: StageMetadata) -> None:
    """Write the run record for ``table`` and ``metadata.scope``."""
    path = _meta_path(stage_dir, table, metadata.scope)
    path.write_text(json.dumps(asdict(metadata), indent=2))
    logger.debug("Wrote metadata: %s", path)


def read_metadata(stage_dir: Path, table: str, scope: str) -> Optional[StageMetadata]:
    """Read the run record for a table and scope, if it exists."""
    path = _meta_path(stage_dir, table, scope)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text())
        return StageMetadata(**data)
    except Exception as e:
        logger.warning("Error reading metadata %s: %s", path, e)
        return None
