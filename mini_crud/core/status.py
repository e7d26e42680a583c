"""Record status convention used for soft deletes and default filters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class RecordStatus(str, Enum):
    """Lifecycle state of a row tracked through the status column."""

    ACTIVE = "active"
    DELETED = "deleted"
    ARCHIVED = "archived"


DEFAULT_STATUS_COLUMN = "datastateid"
DEFAULT_STATUS_VALUES: Mapping[RecordStatus, Any] = {
    RecordStatus.ACTIVE: 1,
    RecordStatus.DELETED: 2,
    RecordStatus.ARCHIVED: 3,
}


@dataclass(frozen=True)
class StatusConvention:
    """Status column name plus the stored value of each `RecordStatus`.

    Attributes:
        column: Column holding the status value.
        values: Stored value per status. Missing entries fall back to
            `DEFAULT_STATUS_VALUES`.
    """

    column: str = DEFAULT_STATUS_COLUMN
    values: Mapping[RecordStatus, Any] = field(
        default_factory=lambda: dict(DEFAULT_STATUS_VALUES)
    )

    def __post_init__(self) -> None:
        if not self.column:
            raise ValueError("Status column name must not be empty.")

    def value(self, status: RecordStatus) -> Any:
        """Return the stored value for `status`."""

        if status in self.values:
            return self.values[status]
        return DEFAULT_STATUS_VALUES[status]

    def literal(self, status: RecordStatus) -> str:
        """Return the stored value for `status` rendered as a SQL literal."""

        return sql_literal(self.value(status))

    @property
    def active(self) -> Any:
        return self.value(RecordStatus.ACTIVE)

    @property
    def deleted(self) -> Any:
        return self.value(RecordStatus.DELETED)

    @property
    def archived(self) -> Any:
        return self.value(RecordStatus.ARCHIVED)


def sql_literal(value: Any) -> str:
    """Render a trusted configuration value as an inline SQL literal."""

    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("'", "''")
    return f"'{text}'"
