"""Category taxonomy for the P&L rollup.

The taxonomy maps ledger labels to buckets at two levels:

- **summary**: a few coarse buckets (revenue food/beverage, cost of sales
  food/beverage, labor contract/flex), each with a display label and general
  ledger account used by the subcategory drill-down table.
- **detailed**: one bucket per natural cost/revenue category (housing,
  office, depreciation, ...).

Lines booked under the group revenue category (``revenue_groups`` in the
file) carry no bucket label of their own; :func:`split_group_revenue` assigns
them to food or beverage by subcategory.

The mapping is versioned configuration data shipped as ``taxonomy.json`` next
to this module. Callers that need a different mapping (tests, a new chart of
accounts) pass their own file to :func:`load_taxonomy` or build a
:class:`Taxonomy` directly and hand it to the rollup.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Optional

import pandas as pd

from ops_core.exceptions import ConfigError

logger = logging.getLogger(__name__)

SUMMARY_BUCKETS = (
    "revenue_food",
    "revenue_beverage",
    "cost_of_sales_food",
    "cost_of_sales_beverage",
    "labor_contract",
    "labor_flex",
)

DETAILED_BUCKETS = (
    "revenue_produced_goods",
    "revenue_trade_goods",
    "purchase_cost_of_goods",
    "wages_and_salaries",
    "housing_costs",
    "operating_costs",
    "sales_costs",
    "vehicle_costs",
    "office_costs",
    "insurance_costs",
    "accounting_costs",
    "administrative_costs",
    "other_costs",
    "depreciation",
    "financial_income_expense",
    "income_from_receivables",
)


@dataclass(frozen=True)
class Taxonomy:
    """Loaded, immutable label-to-bucket mapping.

    Attributes:
        version: Version string of the mapping file.
        summary: Summary bucket name -> member labels.
        detailed: Detailed bucket name -> member labels.
        display: Summary bucket name -> display label for the drill-down.
        gl_accounts: Summary bucket name -> general ledger account name.
        group_category: Parent revenue category whose lines are split into
            food and beverage by subcategory instead of matched by label.
            Empty when the chart of accounts has none.
        group_food_keywords: Subcategory fragments that mark a group line
            as food, besides the food revenue labels themselves.
    """

    version: str
    summary: Mapping[str, tuple[str, ...]]
    detailed: Mapping[str, tuple[str, ...]]
    display: Mapping[str, str] = field(default_factory=dict)
    gl_accounts: Mapping[str, str] = field(default_factory=dict)
    group_category: str = ""
    group_food_keywords: tuple[str, ...] = ()

    def all_labels(self) -> frozenset[str]:
        """Every label known to either level."""
        labels: set[str] = set()
        for level in (self.summary, self.detailed):
            for members in level.values():
                labels.update(members)
        return frozenset(labels)

    def bucket_for(self, label: str, level: str = "detailed") -> Optional[str]:
        """Return the bucket a label belongs to at one level, or None."""
        buckets = self.detailed if level == "detailed" else self.summary
        for bucket, members in buckets.items():
            if label in members:
                return bucket
        return None

    def group_lines(self, entries: pd.DataFrame) -> pd.Series:
        """Mask of the entries booked under the group revenue category."""
        if not self.group_category or entries.empty:
            return pd.Series(False, index=entries.index)
        return entries["category"].fillna("").astype(str).str.strip() == self.group_category

    def unmapped_mask(self, entries: pd.DataFrame) -> pd.Series:
        """Mask of the entries that no bucket accounts for.

        Positive group-category lines are accounted for by the food/beverage
        split; negative ones are not.
        """
        if entries.empty:
            return pd.Series(False, index=entries.index)
        labels = entry_labels(entries)
        mask = (labels != "") & ~labels.isin(self.all_labels())
        return mask & ~(self.group_lines(entries) & (entries["amount"] > 0))

    def unmapped_labels(self, entries: pd.DataFrame) -> list[str]:
        """Labels of the unaccounted entries, sorted."""
        if entries.empty:
            return []
        return sorted(set(entry_labels(entries)[self.unmapped_mask(entries)]))


def _validate(data: Mapping, source: str) -> None:
    for level, required in (("summary", SUMMARY_BUCKETS), ("detailed", DETAILED_BUCKETS)):
        buckets = data.get(level)
        if not isinstance(buckets, Mapping):
            raise ConfigError(f"Taxonomy {source} has no '{level}' section")
        missing = [b for b in required if b not in buckets]
        if missing:
            raise ConfigError(f"Taxonomy {source} is missing {level} buckets: {missing}")

        seen: dict[str, str] = {}
        for bucket, entry in buckets.items():
            labels = entry["labels"] if isinstance(entry, Mapping) else entry
            for label in labels:
                if label in seen and seen[label] != bucket:
                    raise ConfigError(
                        f"Taxonomy {source}: label '{label}' maps to both "
                        f"'{seen[label]}' and '{bucket}' in the {level} level"
                    )
                seen[label] = bucket

    groups = data.get("revenue_groups")
    if groups is not None:
        if not isinstance(groups, Mapping) or not isinstance(groups.get("category"), str):
            raise ConfigError(f"Taxonomy {source}: 'revenue_groups' needs a 'category' name")
        keywords = groups.get("food_keywords", [])
        if not isinstance(keywords, list) or not all(isinstance(k, str) and k for k in keywords):
            raise ConfigError(f"Taxonomy {source}: 'food_keywords' must be a list of non-empty strings")


def load_taxonomy(path: Path | str | None = None) -> Taxonomy:
    """Load and validate a taxonomy file.

    Args:
        path: JSON file to load. Defaults to the ``taxonomy.json`` packaged
            with ``ops_core.pnl``.

    Returns:
        Taxonomy instance.

    Raises:
        ConfigError: If the file cannot be read or parsed, a required bucket
            is missing, or a label maps to two buckets within one level.

    Examples:
        >>> taxonomy = load_taxonomy()
        >>> taxonomy.bucket_for("Elektra")
        'housing_costs'
        >>> taxonomy.display["labor_flex"]
        'Labor Flex'

    """
    try:
        if path is None:
            source = "taxonomy.json"
            text = resources.files("ops_core.pnl").joinpath("taxonomy.json").read_text(encoding="utf-8")
        else:
            source = str(path)
            text = Path(path).read_text(encoding="utf-8")
        data = json.loads(text)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to load taxonomy {path or 'taxonomy.json'}: {e}") from e

    _validate(data, source)

    summary: dict[str, tuple[str, ...]] = {}
    display: dict[str, str] = {}
    gl_accounts: dict[str, str] = {}
    for bucket, entry in data["summary"].items():
        if isinstance(entry, Mapping):
            summary[bucket] = tuple(entry["labels"])
            display[bucket] = entry.get("display", bucket)
            gl_accounts[bucket] = entry.get("gl_account", "")
        else:
            summary[bucket] = tuple(entry)
            display[bucket] = bucket

    groups = data.get("revenue_groups") or {}
    taxonomy = Taxonomy(
        version=str(data.get("version", "unversioned")),
        summary=summary,
        detailed={bucket: tuple(labels) for bucket, labels in data["detailed"].items()},
        display=display,
        gl_accounts=gl_accounts,
        group_category=groups.get("category", ""),
        group_food_keywords=tuple(groups.get("food_keywords", ())),
    )
    logger.debug(
        "Loaded taxonomy %s from %s (%d labels)", taxonomy.version, source, len(taxonomy.all_labels())
    )
    return taxonomy


def entry_labels(entries: pd.DataFrame) -> pd.Series:
    """Label each entry is matched on: its subcategory, else its category.

    Entries without a subcategory are category-level lines of the export.
    """
    subcategory = entries["subcategory"].fillna("").astype(str).str.strip()
    category = entries["category"].fillna("").astype(str).str.strip()
    return subcategory.where(subcategory != "", category)


def sum_by_subcategories(entries: pd.DataFrame, labels: Iterable[str]) -> float:
    """Sum ``amount`` over the entries whose label is in ``labels``.

    Amounts keep their native sign (costs negative, revenue positive). Every
    bucket total of the rollup goes through here; only group-category revenue
    is added on top by :func:`split_group_revenue`.

    Examples:
        >>> entries = pd.DataFrame({
        ...     "category": ["Huisvestingskosten", "Huisvestingskosten"],
        ...     "subcategory": ["Elektra", "Gas"],
        ...     "amount": [-120.0, -80.5],
        ... })
        >>> sum_by_subcategories(entries, ["Elektra", "Water"])
        -120.0

    """
    if entries.empty:
        return 0.0
    mask = entry_labels(entries).isin(set(labels))
    return float(entries.loc[mask, "amount"].sum())


def split_group_revenue(entries: pd.DataFrame, taxonomy: Taxonomy) -> tuple[float, float]:
    """Split the positive group-category lines into (food, beverage) revenue.

    A line is food when its subcategory contains a food revenue label or one
    of the taxonomy's food keywords (case-insensitive); every other positive
    line is beverage. Negative group lines count in neither.

    Examples:
        >>> taxonomy = load_taxonomy()
        >>> entries = pd.DataFrame({
        ...     "category": ["Netto-omzet groepen"] * 3,
        ...     "subcategory": ["Omzet bier groep", "Omzet lunch groep", "Correctie"],
        ...     "amount": [1000.0, 500.0, -200.0],
        ... })
        >>> split_group_revenue(entries, taxonomy)
        (500.0, 1000.0)

    """
    if entries.empty:
        return 0.0, 0.0
    lines = entries[taxonomy.group_lines(entries) & (entries["amount"] > 0)]
    if lines.empty:
        return 0.0, 0.0

    markers = {
        m.casefold()
        for m in (
            *taxonomy.summary.get("revenue_food", ()),
            *taxonomy.detailed.get("revenue_produced_goods", ()),
            *taxonomy.group_food_keywords,
        )
        if m
    }
    subcategory = lines["subcategory"].fillna("").astype(str).str.casefold()
    is_food = subcategory.map(lambda s: any(m in s for m in markers)).astype(bool)
    return float(lines.loc[is_food, "amount"].sum()), float(lines.loc[~is_food, "amount"].sum())
