"""Test fixtures: sample DDL and a recording native connection."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from smileyql.statement.settings import FetchDirection
from smileyql.statement.setters import ParameterSetter

_FIXTURES_DIR = Path(__file__).parent

BIN_QUERY = (
    "SELECT item_number, quantity FROM bin_tbl WHERE 1=1"
    "(: AND aisle = :aisle :)(: AND level = :level :)(: AND bin_number = :bin_number :)"
)

BIN_ROWS = [
    (7, 1, 8, "I-100", 88, None),
    (7, 2, 8, "I-200", 12, "top shelf"),
    (9, 1, 3, "I-100", 0, None),
]

ITEM_ROWS = [
    ("I-100", "Bolt, hex, 10mm", None),
    ("I-200", "Nut, hex, 10mm", None),
]


def load_ddl(dialect: str = "sqlite") -> str:
    """Return the sample DDL for ``dialect`` (``sqlite`` or ``postgres``)."""
    return (_FIXTURES_DIR / f"ddl_{dialect}.sql").read_text()


class RecordingStatement:
    """Native statement that records what it is asked to do."""

    def __init__(self, sql: str, update_count: int = 1) -> None:
        self.sql = sql
        self.update_count = update_count
        self.bound: dict[int, Any] = {}
        self.bind_calls: list[tuple[int, ParameterSetter]] = []
        self.settings: dict[str, Any] = {}
        self.batches: list[dict[int, Any]] = []
        self.executions = 0
        self.result_set: Any = None
        self.last_update_count = -1
        self.closed = False
        self.fail_on_bind = False

    def bind(self, position: int, setter: ParameterSetter) -> None:
        if self.fail_on_bind:
            raise RuntimeError("driver refused the value")
        self.bind_calls.append((position, setter))
        self.bound[position] = setter.native_value()

    def clear_parameters(self) -> None:
        self.bound.clear()

    def set_max_field_size(self, value: int) -> None:
        self.settings["max_field_size"] = value

    def get_max_field_size(self) -> int:
        return self.settings.get("max_field_size", 0)

    def set_max_rows(self, value: int) -> None:
        self.settings["max_rows"] = value

    def get_max_rows(self) -> int:
        return self.settings.get("max_rows", 0)

    def set_query_timeout(self, value: float) -> None:
        self.settings["query_timeout"] = value

    def get_query_timeout(self) -> float:
        return self.settings.get("query_timeout", 0)

    def set_cursor_name(self, value: str) -> None:
        self.settings["cursor_name"] = value

    def set_fetch_direction(self, value: FetchDirection) -> None:
        self.settings["fetch_direction"] = value

    def get_fetch_direction(self) -> FetchDirection:
        return self.settings.get("fetch_direction", FetchDirection.FORWARD)

    def set_fetch_size(self, value: int) -> None:
        self.settings["fetch_size"] = value

    def get_fetch_size(self) -> int:
        return self.settings.get("fetch_size", 0)

    def set_poolable(self, value: bool) -> None:
        self.settings["poolable"] = value

    def is_poolable(self) -> bool:
        return self.settings.get("poolable", False)

    def execute(self) -> bool:
        self.executions += 1
        if self.sql.lstrip().upper().startswith("SELECT"):
            self.result_set, self.last_update_count = [dict(self.bound)], -1
            return True
        self.result_set, self.last_update_count = None, self.update_count
        return False

    def execute_query(self) -> list[Any]:
        self.executions += 1
        return [dict(self.bound)]

    def execute_update(self) -> int:
        self.executions += 1
        return self.update_count

    def get_result_set(self) -> Any:
        return self.result_set

    def get_update_count(self) -> int:
        return self.last_update_count

    def add_batch(self) -> None:
        self.batches.append(dict(self.bound))

    def execute_batch(self) -> list[int]:
        counts = [self.update_count] * len(self.batches)
        self.batches.clear()
        return counts

    def clear_batch(self) -> None:
        self.batches.clear()

    def close(self) -> None:
        self.closed = True


class RecordingConnection:
    """Native connection that hands out :class:`RecordingStatement` objects."""

    def __init__(self, placeholder: str = "?") -> None:
        self._placeholder = placeholder
        self.prepared: list[RecordingStatement] = []
        self.fail_on_prepare = False

    @property
    def placeholder(self) -> str:
        return self._placeholder

    def prepare(self, sql: str) -> RecordingStatement:
        if self.fail_on_prepare:
            raise RuntimeError("syntax error")
        statement = RecordingStatement(sql)
        self.prepared.append(statement)
        return statement
