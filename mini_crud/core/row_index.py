"""Result containers and index-by-column reshaping."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .types import RowMapping

IndexedRows = Dict[Any, List[Dict[str, Any]]]


def build_index(rows: Sequence[RowMapping], column: Optional[str]) -> IndexedRows:
    """Group rows by the value of `column`.

    Rows keep their original order inside each group. An empty mapping is
    returned when no column is given, there are no rows, or the first row does
    not carry the column.
    """

    if not column or not rows or column not in rows[0]:
        return {}

    grouped: IndexedRows = {}
    for row in rows:
        grouped.setdefault(row.get(column), []).append(dict(row))
    return grouped


@dataclass(frozen=True)
class QueryResult:
    """Rows returned by one statement, plus the optional grouped view."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    indexed: IndexedRows = field(default_factory=dict)

    @classmethod
    def from_rows(
        cls, rows: Sequence[RowMapping], index: Optional[str] = None
    ) -> QueryResult:
        plain = [dict(row) for row in rows]
        return cls(rows=plain, indexed=build_index(plain, index))

    def first(self) -> Dict[str, Any]:
        """Return the first row or an empty mapping."""

        return self.rows[0] if self.rows else {}

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class UpdateResult:
    """Update outcome reported when callers ask for the write status."""

    results: List[Dict[str, Any]]
    updated: bool
