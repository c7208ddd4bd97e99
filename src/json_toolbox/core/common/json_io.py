"""
Strict JSON parsing and serialization helpers.

``json.loads`` accepts ``NaN`` and ``Infinity``; the helpers here reject them
so that "parses" always means "parses under the standard JSON grammar".
"""

from __future__ import annotations

import json
from typing import Any

from json_toolbox.core.common.exceptions import EmptyInputError, JSONParsingError

NESTED_TOO_DEEPLY = "Document nested too deeply"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def ensure_text(text: str | None) -> str:
    """Return ``text`` or raise :class:`EmptyInputError` if it is blank."""
    if text is None or not text.strip():
        raise EmptyInputError()
    return text


def loads_strict(text: str) -> Any:
    """Parse ``text`` under the standard JSON grammar.

    Raises:
        json.JSONDecodeError: On syntax errors
        ValueError: On NaN/Infinity literals and on nesting deeper than the
            interpreter's recursion limit
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except RecursionError as exc:
        raise ValueError(NESTED_TOO_DEEPLY) from exc


def decode_error_details(exc: ValueError, stage: str) -> dict[str, Any]:
    """Build error details for a parse failure at ``stage``."""
    details: dict[str, Any] = {"stage": stage, "error_type": type(exc).__name__}
    if isinstance(exc, json.JSONDecodeError):
        details.update(
            error_message=exc.msg,
            line=exc.lineno,
            column=exc.colno,
            position=exc.pos,
        )
    else:
        details["error_message"] = str(exc)
    return details


def parse_json(
    text: str | None, *, stage: str, error_prefix: str = "Invalid JSON"
) -> Any:
    """Parse ``text`` or raise :class:`JSONParsingError` naming ``stage``."""
    source = ensure_text(text)
    try:
        return loads_strict(source)
    except ValueError as exc:
        raise JSONParsingError(
            message=f"{error_prefix}: {exc}",
            details=decode_error_details(exc, stage),
        ) from exc


def dump_pretty(value: Any, indent: int = 2, ensure_ascii: bool = False) -> str:
    return json.dumps(value, indent=indent, ensure_ascii=ensure_ascii)


def dump_compact(value: Any, ensure_ascii: bool = False) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=ensure_ascii)
