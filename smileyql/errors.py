"""Custom exception hierarchy for smileyQL.

All public errors inherit from SmileyQLError so callers can catch the base
class for any smileyQL-specific failure.
"""
from __future__ import annotations

from typing import Any


class SmileyQLError(Exception):
    """Base exception for all smileyQL errors.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. UNBOUND_VARIABLE).
        details: Extra context describing the failure.
    """

    def __init__(
        self,
        message: str,
        code: str = "SMILEYQL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class UnboundVariableError(SmileyQLError):
    """Raised when a variable outside of any ``(: :)`` region has no value."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"No value is provided for :{name}",
            code="UNBOUND_VARIABLE",
            details={"name": name},
        )
        self.name = name


class NoFormatterError(SmileyQLError):
    """Base class for failures to find a formatter for a value."""


class NoApplicableFormatterError(NoFormatterError):
    """Raised when no registered formatter is the default for a value's type."""

    def __init__(self, value_type: str) -> None:
        super().__init__(
            f"No default formatter for value that is an instance of {value_type}; "
            'try adding an explicit formatter name using the syntax ":var:formatterName"',
            code="NO_FORMATTER",
            details={"value_type": value_type},
        )
        self.value_type = value_type


class FormatterNotFoundError(NoFormatterError):
    """Raised when a template names a formatter that is not registered."""

    def __init__(self, formatter_name: str, registered: list[str]) -> None:
        super().__init__(
            f"No registered formatter is named {formatter_name}",
            code="FORMATTER_NOT_FOUND",
            details={"formatter": formatter_name, "registered": registered},
        )
        self.formatter_name = formatter_name


class FormatterNotApplicableError(NoFormatterError):
    """Raised when a named formatter cannot format the given value."""

    def __init__(self, formatter_name: str, value_type: str) -> None:
        super().__init__(
            f"The formatter named {formatter_name} cannot be applied to "
            f"an instance of {value_type}",
            code="FORMATTER_NOT_APPLICABLE",
            details={"formatter": formatter_name, "value_type": value_type},
        )
        self.formatter_name = formatter_name
        self.value_type = value_type


class UnsupportedFeatureError(SmileyQLError):
    """Raised when a template uses a feature that is not supported."""


class UnsupportedNestingError(UnsupportedFeatureError):
    """Raised when ``(:`` appears inside an open ``(: :)`` region.

    Args:
        position: Offset of the nested open marker in the template.
    """

    def __init__(self, position: int) -> None:
        super().__init__(
            f"Nested brackets are not supported (nested '(:' at offset {position})",
            code="UNSUPPORTED_NESTING",
            details={"position": position},
        )
        self.position = position


class UnknownVariableError(SmileyQLError):
    """Raised when a caller binds a name the template does not declare."""

    def __init__(self, name: str, known_names: list[str], template: str | None = None) -> None:
        where = f" in {template}" if template is not None else ""
        super().__init__(
            f'"{name}" is not the name of a variable{where}',
            code="UNKNOWN_VARIABLE",
            details={"name": name, "known_names": known_names},
        )
        self.name = name


class StatementClosedError(SmileyQLError):
    """Raised when a closed prepared statement is used."""

    def __init__(self, class_name: str) -> None:
        super().__init__(
            f"Unable to use a {class_name} after it is closed.",
            code="STATEMENT_CLOSED",
        )


class NativeStatementError(SmileyQLError):
    """Wraps a failure raised by the underlying database driver.

    The driver exception is preserved as ``__cause__``.

    Args:
        message: Human-readable description.
        variable_name: The variable being bound when the failure happened.
    """

    def __init__(self, message: str, variable_name: str | None = None) -> None:
        details = {"variable": variable_name} if variable_name is not None else {}
        super().__init__(message, code="NATIVE_STATEMENT_ERROR", details=details)
        self.variable_name = variable_name


class ProfileConfigError(SmileyQLError):
    """Raised when a DialectProfile is misconfigured.

    Detected at :meth:`DialectProfileBuilder.build` time, before any template
    is scanned.

    Args:
        message: Human-readable description.
        missing: Builder setting(s) that must be supplied.
    """

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message, code="PROFILE_CONFIG", details={"missing": missing or []})
        self.missing = missing or []
