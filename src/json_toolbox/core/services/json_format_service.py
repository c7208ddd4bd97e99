from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from json_toolbox.core.common.exceptions import (
    InvalidFieldTypeError,
    NestedParseError,
)
from json_toolbox.core.common.json_io import (
    decode_error_details,
    dump_compact,
    dump_pretty,
    ensure_text,
    loads_strict,
    parse_json,
)

logger = logging.getLogger(__name__)

DEFAULT_NESTED_FIELD = "request_body"


@dataclass(frozen=True)
class JsonStats:
    size_bytes: int
    key_count: int


def _count_keys(value: Any) -> int:
    # Explicit stack: parsed documents can be nested close to the recursion limit
    count = 0
    pending = [value]
    while pending:
        item = pending.pop()
        if isinstance(item, dict):
            count += len(item)
            pending.extend(item.values())
        elif isinstance(item, list):
            pending.extend(item)
    return count


class JsonFormatService:
    """Validation, pretty-printing, minification and nested-JSON extraction."""

    def __init__(self, indent: int = 2, ensure_ascii: bool = False) -> None:
        self._indent = indent
        self._ensure_ascii = ensure_ascii

    def validate(self, text: str) -> bool:
        """Return True if ``text`` is valid JSON.

        Raises:
            EmptyInputError: If the text is blank
            JSONParsingError: Describing the parse failure
        """
        parse_json(text, stage="validate")
        return True

    def format(self, text: str) -> str:
        value = parse_json(text, stage="format", error_prefix="Formatting error")
        return dump_pretty(value, indent=self._indent, ensure_ascii=self._ensure_ascii)

    def minify(self, text: str) -> str:
        value = parse_json(text, stage="minify", error_prefix="Minification error")
        return dump_compact(value, ensure_ascii=self._ensure_ascii)

    def extract_nested(self, text: str, field_name: str = DEFAULT_NESTED_FIELD) -> str:
        """
        Extract and pretty-print JSON stored as a string inside ``field_name``.

        Webhook payloads often carry the original request body as an escaped
        JSON string; this unwraps one level of it.

        Args:
            text: The outer JSON document
            field_name: The field holding the escaped JSON

        Returns:
            The nested document, pretty-printed

        Raises:
            JSONParsingError: If the outer document is not valid JSON
            InvalidFieldTypeError: If the field is missing or not a string
            NestedParseError: If the field's content is not valid JSON
        """
        outer = parse_json(
            text, stage="extract_nested", error_prefix="Nested JSON extraction error"
        )
        nested = outer.get(field_name) if isinstance(outer, dict) else None
        if not isinstance(nested, str):
            raise InvalidFieldTypeError(
                message=f"Field '{field_name}' not found or not a string",
                field_name=field_name,
                details={
                    "found_type": type(nested).__name__
                    if isinstance(outer, dict) and field_name in outer
                    else None
                },
            )
        try:
            value = loads_strict(nested)
        except ValueError as exc:
            raise NestedParseError(
                message=f"Could not parse nested JSON in {field_name}: {exc}",
                details={
                    "field_name": field_name,
                    **decode_error_details(exc, "extract_nested.inner"),
                },
            ) from exc
        logger.debug("Extracted nested JSON from field %s", field_name)
        return dump_pretty(value, indent=self._indent, ensure_ascii=self._ensure_ascii)

    def stats(self, text: str) -> JsonStats:
        value = parse_json(text, stage="stats", error_prefix="Key counting error")
        return JsonStats(
            size_bytes=self.json_size(text), key_count=_count_keys(value)
        )

    def count_keys(self, text: str) -> int:
        """Count object keys at every nesting level, including inside arrays."""
        return self.stats(text).key_count

    @staticmethod
    def json_size(text: str) -> int:
        """Return the UTF-8 byte length of ``text``."""
        return len(ensure_text(text).encode("utf-8"))

