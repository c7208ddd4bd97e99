"""JSON toolbox: lenient JSON repair plus format and conversion helpers.

The module-level functions use default settings. Build the service classes
directly (or from :func:`json_toolbox.core.config.load_config`) to change
indentation, the nested-JSON field or the XML root element.
"""

from __future__ import annotations

from json_toolbox.core.common.exceptions import (
    ConversionError,
    EmptyInputError,
    InvalidFieldTypeError,
    JSONParsingError,
    NestedParseError,
    ToolboxError,
    UnrepairableInputError,
)
from json_toolbox.core.services.json_conversion_service import JsonConversionService
from json_toolbox.core.services.json_format_service import (
    DEFAULT_NESTED_FIELD,
    JsonFormatService,
    JsonStats,
)
from json_toolbox.core.services.json_repair_service import JsonRepairService

__version__ = "0.1.0"

_repairer = JsonRepairService()
_formatter = JsonFormatService()
_converter = JsonConversionService()


def repair(text: str) -> str:
    return _repairer.repair(text)


def validate(text: str) -> bool:
    return _formatter.validate(text)


def format_json(text: str) -> str:
    return _formatter.format(text)


def minify(text: str) -> str:
    return _formatter.minify(text)


def to_yaml(text: str) -> str:
    return _converter.to_yaml(text)


def to_xml(text: str) -> str:
    return _converter.to_xml(text)


def extract_nested(text: str, field_name: str = DEFAULT_NESTED_FIELD) -> str:
    return _formatter.extract_nested(text, field_name)


def stats(text: str) -> JsonStats:
    return _formatter.stats(text)


__all__ = [
    "ConversionError",
    "EmptyInputError",
    "InvalidFieldTypeError",
    "JSONParsingError",
    "JsonConversionService",
    "JsonFormatService",
    "JsonRepairService",
    "JsonStats",
    "NestedParseError",
    "ToolboxError",
    "UnrepairableInputError",
    "extract_nested",
    "format_json",
    "minify",
    "repair",
    "stats",
    "to_xml",
    "to_yaml",
    "validate",
]
