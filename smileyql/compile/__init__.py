"""smileyQL expansion layer: template + values → SQL."""
from smileyql.compile.expander import Expansion, TemplateExpander
from smileyql.compile.formatters import FormatterRegistry, PlaceholderRegistry, ValueFormatter
from smileyql.compile.registry import DatabaseType, DatabaseTypeRegistry, select_profile
from smileyql.compile.template import SmileyTemplate

__all__ = [
    "DatabaseType",
    "DatabaseTypeRegistry",
    "Expansion",
    "FormatterRegistry",
    "PlaceholderRegistry",
    "SmileyTemplate",
    "TemplateExpander",
    "ValueFormatter",
    "select_profile",
]
