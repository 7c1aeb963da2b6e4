"""Bind a whole mapping of values to a prepared statement at once.

A :class:`MapSetter` knows, for each variable name, which typed setter of
:class:`~smileyql.statement.prepared.SmileyPreparedStatement` to call::

    setter = MapSetter.builder().int_var("aisle").int_var("bin").int_var("quantity").build()
    counts = setter.execute_update(statement, [
        {"aisle": 7, "bin": 8, "quantity": 88},
        {"aisle": 27, "bin": 28},
    ])
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from smileyql.errors import UnknownVariableError
from smileyql.statement.prepared import SmileyPreparedStatement

#: ``(statement, name, value) -> None``
VarSetter = Callable[[SmileyPreparedStatement, str, Any], None]


class MapSetter:
    """Applies mapping entries to a statement through per-name setters.

    Args:
        setters: Maps each variable name to the function that binds it.
    """

    def __init__(self, setters: Mapping[str, VarSetter]) -> None:
        self._setters: Mapping[str, VarSetter] = MappingProxyType(dict(setters))

    @classmethod
    def builder(cls) -> "MapSetterBuilder":
        return MapSetterBuilder()

    @property
    def setters(self) -> Mapping[str, VarSetter]:
        return self._setters

    def set_vars(self, statement: SmileyPreparedStatement, values: Mapping[str, Any]) -> None:
        """Clear ``statement``'s parameters, then bind every entry of ``values``.

        Raises:
            UnknownVariableError: If ``values`` has a key with no setter.
        """
        statement.clear_parameters()
        for name, value in values.items():
            setter = self._setters.get(name)
            if setter is None:
                raise UnknownVariableError(name, sorted(self._setters))
            setter(statement, name, value)

    def execute_update(
        self,
        statement: SmileyPreparedStatement,
        rows: Iterable[Mapping[str, Any]],
    ) -> list[int]:
        """Bind and execute each mapping in turn; return the update counts."""
        counts = []
        for values in rows:
            self.set_vars(statement, values)
            counts.append(statement.execute_update())
        return counts

    def __repr__(self) -> str:
        return f"MapSetter(names={sorted(self._setters)!r})"


class MapSetterBuilder:
    """Fluent builder for :class:`MapSetter`.  Each method declares one variable."""

    def __init__(self) -> None:
        self._setters: dict[str, VarSetter] = {}

    def var(self, name: str, setter: VarSetter) -> "MapSetterBuilder":
        """Declare ``name`` with a custom setter."""
        self._setters[name] = setter
        return self

    def _typed(self, name: str, method: str) -> "MapSetterBuilder":
        def setter(statement: SmileyPreparedStatement, var_name: str, value: Any) -> None:
            getattr(statement, method)(var_name, value)

        return self.var(name, setter)

    def boolean_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_boolean")

    def int_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_int")

    def float_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_float")

    def decimal_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_decimal")

    def string_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_string")

    def bytes_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_bytes")

    def date_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_date")

    def time_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_time")

    def timestamp_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_timestamp")

    def binary_stream_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_binary_stream")

    def character_stream_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_character_stream")

    def object_var(self, name: str) -> "MapSetterBuilder":
        return self._typed(name, "set_object")

    def build(self) -> MapSetter:
        return MapSetter(self._setters)
