"""Schema-on-read field resolution for semi-structured payloads.

Raw workforce records carry the full API response as a nested ``payload``
whose shape varies between endpoints and API versions. Every extraction in
the pipeline goes through :func:`resolve_field` with an ordered list of
candidate dotted paths, so each "try A, else B, else C" rule lives in one
place and can be tested on its own.

Examples:
    >>> payload = {"team": {"id": 3, "name": "Keuken"}, "hours": 7.5}
    >>> resolve_field(payload, ("team.id", "team_id"))
    3
    >>> resolve_field(payload, ("team",))
    'Keuken'
    >>> resolve_field(payload, ("hours_worked", "hours"))
    7.5
    >>> resolve_field(payload, ("missing",), default=0)
    0

"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from typing import Any, Optional

# Unwrap strategies, tried in order on a terminal mapping
UNWRAP_KEYS = ("name", "id", "value", "label")

# Candidate paths, first match wins
DATE_PATHS = ("date", "start_date", "resource_date")
LOCATION_PATHS = (
    "environment_id",
    "environment.id",
    "environment",
    "location.id",
    "location_id",
)
TEAM_PATHS = ("team_id", "team.id", "team")
PARTICIPANT_PATHS = ("user_id", "user.id", "employee_id", "employee.id", "userId")

HOURS_WORKED_PATHS = ("hours_worked", "hours", "totalHours", "total_hours")
PLANNED_HOURS_PATHS = ("planned_hours", "hours", "totalHours", "total_hours")
START_PATHS = ("start_time", "start", "startDateTime", "start_datetime")
END_PATHS = ("end_time", "end", "endDateTime", "end_datetime")
BREAK_MINUTES_PATHS = ("break_minutes", "breaks", "breakMinutes", "break_minutes_actual")
WAGE_COST_PATHS = (
    "wage_cost",
    "costs.wage",
    "wageCost",
    "costs.wage_cost",
    "labor_cost",
    "laborCost",
)
PLANNED_COST_PATHS = ("planned_cost", "costs.planned", "plannedCost", "wage_cost")
STATUS_PATHS = ("status", "state")

REVENUE_CENTS_PATHS = ("amt_in_cents", "amount_in_cents")
REVENUE_AMOUNT_PATHS = ("revenue", "amount", "total")


def unwrap_value(value: Any) -> Any:
    """Reduce a nested object to a primitive using the unwrap strategies.

    Tries ``name``, ``id``, ``value`` and ``label`` in that order. A mapping
    with none of them is returned unchanged; non-mappings pass through.
    """
    if isinstance(value, Mapping):
        for key in UNWRAP_KEYS:
            if value.get(key) is not None:
                return value[key]
    return value


def _walk(payload: Any, path: str) -> Any:
    current = payload
    for segment in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(segment)
        if current is None:
            return None
    return current


def resolve_field(payload: Any, paths: Iterable[str], default: Any = None) -> Any:
    """Resolve one canonical field from a payload via ordered candidate paths.

    Args:
        payload: Nested mapping (any other type resolves to ``default``).
        paths: Ordered dotted paths such as ``("start_time", "start")``.
        default: Returned when no path yields a non-null value.

    Returns:
        The first non-null terminal value, unwrapped with :func:`unwrap_value`
        when it is a mapping, else ``default``. Never raises for absent paths.

    """
    if not isinstance(payload, Mapping):
        return default
    for path in paths:
        value = _walk(payload, path)
        if value is not None:
            return unwrap_value(value)
    return default


def to_primitive(value: Any) -> Any:
    """Return a scalar suitable for a grouping key or a table cell.

    Mappings are unwrapped; what is still a mapping is JSON-encoded and cut to
    100 characters. Lists are joined with ``", "``.
    """
    if value is None:
        return None
    value = unwrap_value(value)
    if isinstance(value, Mapping):
        return json.dumps(value, sort_keys=True, default=str)[:100]
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return value


def to_number(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Lenient numeric coercion for payload values.

    Examples:
        >>> to_number("7.25")
        7.25
        >>> to_number(None)
        0.0
        >>> to_number("n/a", default=-1.0)
        -1.0

    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def key_text(value: Any) -> Optional[str]:
    """Render one grouping-key component as text, None when absent.

    Integral floats lose their fraction so ``10``, ``10.0`` and ``"10"``
    land in the same bucket.

    Examples:
        >>> key_text(10.0)
        '10'
        >>> key_text({"id": 3})
        '3'
        >>> key_text(None) is None
        True

    """
    value = to_primitive(value)
    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
    return str(value)
