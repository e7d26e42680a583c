"""Field validation and coercion against live column metadata."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from .types import FieldMap, RowMapping

BIT_TYPES = frozenset({"bit"})
CHARACTER_TYPES = frozenset({"character varying"})
JSON_TYPES = frozenset({"json", "jsonb"})


@dataclass(frozen=True)
class SanitizeResult:
    """Outcome of sanitizing one field map.

    Attributes:
        fields: New map with unknown columns dropped and values coerced.
        matches: Existing row when the sanitized values equal what is already
            stored, signalling the write can be skipped. `None` otherwise.
    """

    fields: Dict[str, Any]
    matches: Optional[Dict[str, Any]] = None


def column_types(columns: Iterable[RowMapping]) -> Dict[str, str]:
    """Map `column_name` to lower-cased `data_type` from metadata rows."""

    types: Dict[str, str] = {}
    for column in columns:
        name = column.get("column_name")
        if name is None:
            continue
        types[str(name)] = str(column.get("data_type") or "").lower()
    return types


def coerce_value(data_type: str, value: Any) -> Any:
    """Coerce `value` to the text representation stored in `data_type`."""

    data_type = data_type.lower()
    if data_type in BIT_TYPES:
        return "1" if value else "0"
    if data_type in CHARACTER_TYPES:
        return value if value is None else str(value)
    if data_type in JSON_TYPES:
        return value if isinstance(value, str) else json.dumps(value)
    return value


def sanitize_fields(
    columns: Iterable[RowMapping] | Mapping[str, str],
    fields: FieldMap,
    existing: Optional[RowMapping] = None,
) -> SanitizeResult:
    """Drop unknown columns and coerce values; optionally detect no-op writes.

    Args:
        columns: Column metadata rows (`column_name`, `data_type`) or an
            already built name to type mapping.
        fields: Field map to sanitize. It is not modified.
        existing: Currently stored row. When given and every sanitized value
            equals the stored one, the result carries it in `matches`.

    Returns:
        Sanitized fields and the optional match.
    """

    types = dict(columns) if isinstance(columns, Mapping) else column_types(columns)
    sanitized = {
        name: coerce_value(types[name], value)
        for name, value in fields.items()
        if name in types
    }

    if not existing:
        return SanitizeResult(sanitized)

    stored = {name: existing.get(name) for name in sanitized}
    if sanitized == stored:
        return SanitizeResult(sanitized, dict(existing))
    return SanitizeResult(sanitized)
