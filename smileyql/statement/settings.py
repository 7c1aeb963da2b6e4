"""Statement-level settings forwarded to the native statement.

Only settings the caller set explicitly are forwarded; ``None`` means "leave
the driver's default alone".  Because every signature gets its own native
statement, the settings are replayed whenever the statement in use changes.
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from smileyql.statement.native import NativeStatement


class FetchDirection(str, Enum):
    FORWARD = "forward"
    REVERSE = "reverse"
    UNKNOWN = "unknown"


class StatementSettings(BaseModel):
    """Explicitly requested statement settings.

    Attributes:
        max_field_size: Maximum bytes returned for any character or binary
            column.
        max_rows: Maximum number of rows a query returns.
        query_timeout: Seconds a statement may run.
        cursor_name: Name of the cursor for positioned updates.
        fetch_direction: Hint for the order rows are processed in.
        fetch_size: Rows fetched per round trip; must not be negative.
        poolable: Whether the driver may pool the statement.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_field_size: int | None = Field(None, ge=0)
    max_rows: int | None = Field(None, ge=0)
    query_timeout: float | None = Field(None, ge=0)
    cursor_name: str | None = None
    fetch_direction: FetchDirection | None = None
    fetch_size: int | None = Field(None, ge=0)
    poolable: bool | None = None

    def with_setting(self, name: str, value: Any) -> "StatementSettings":
        """Return a copy with ``name`` set to ``value``, validating the value.

        Raises:
            pydantic.ValidationError: (a ``ValueError``) for an invalid value,
                such as a negative fetch size.
        """
        data = self.model_dump(exclude_none=True)
        data[name] = value
        return StatementSettings.model_validate(data)

    def explicit(self) -> dict[str, Any]:
        """Return the settings that were set, by name."""
        return self.model_dump(exclude_none=True)

    def apply_to(self, statement: "NativeStatement") -> None:
        """Call the native ``set_<name>`` method for every explicit setting."""
        for name, value in self.explicit().items():
            getattr(statement, f"set_{name}")(value)
