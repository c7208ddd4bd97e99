"""
Text rewrite passes used by the JSON repairer.

Each pass is a pure ``str -> str`` function targeting one class of syntax
error. Passes never raise and leave valid JSON untouched. Structural rewrites
only happen outside string literals and comments.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import NamedTuple

from json_toolbox.core.domain.text_scanner import (
    ANY_QUOTE,
    DOUBLE_QUOTE,
    ScanState,
    Segment,
    next_significant,
    previous_significant,
    scan,
)

_BARE_KEY = re.compile(r"([A-Za-z_$][A-Za-z0-9_$]*)(\s*:)")

_KEY_PRECEDERS = frozenset("{,")
_CLOSERS = frozenset("}]")
_PLAUSIBLE_AFTER_STRING = frozenset(",:}]")


def quote_bare_keys(text: str) -> str:
    """Wrap unquoted object keys in double quotes."""
    segments = scan(text, quotes=ANY_QUOTE)
    out: list[str] = []
    for index, segment in enumerate(segments):
        if not segment.is_code:
            out.append(segment.text)
            continue
        code = segment.text
        cursor = 0
        for match in _BARE_KEY.finditer(code):
            preceding = previous_significant(segments, index, match.start())
            if preceding not in _KEY_PRECEDERS:
                continue
            out.append(code[cursor : match.start()])
            out.append(f'"{match.group(1)}"{match.group(2)}')
            cursor = match.end()
        out.append(code[cursor:])
    return "".join(out)


def normalize_quotes(text: str) -> str:
    """Turn single-quoted string literals into double-quoted ones."""
    out: list[str] = []
    for segment in scan(text, quotes=ANY_QUOTE):
        if segment.state is ScanState.IN_STRING and segment.quote == "'":
            out.append(_requote(segment))
        else:
            out.append(segment.text)
    return "".join(out)


def _requote(segment: Segment) -> str:
    body = segment.text[1:-1] if segment.terminated else segment.text[1:]
    chars: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            chars.append("'" if nxt == "'" else ch + nxt)
            i += 2
            continue
        chars.append('\\"' if ch == '"' else ch)
        i += 1
    closing = DOUBLE_QUOTE if segment.terminated else ""
    return DOUBLE_QUOTE + "".join(chars) + closing


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing brace or bracket."""
    segments = scan(text)
    out: list[str] = []
    for index, segment in enumerate(segments):
        if not segment.is_code:
            out.append(segment.text)
            continue
        for offset, ch in enumerate(segment.text):
            if ch == ",":
                following = next_significant(segments, index, offset + 1)
                if following in _CLOSERS:
                    continue
            out.append(ch)
    return "".join(out)


def insert_missing_commas(text: str) -> str:
    """Insert a comma between adjacent values separated only by whitespace."""
    segments = scan(text)
    out: list[str] = []
    for index, segment in enumerate(segments):
        if segment.state is ScanState.IN_STRING:
            out.append(segment.text)
            if segment.terminated and _value_follows(segments, index + 1, 0):
                out.append(",")
            continue
        if not segment.is_code:
            out.append(segment.text)
            continue
        for offset, ch in enumerate(segment.text):
            out.append(ch)
            if ch in _CLOSERS and _value_follows(segments, index, offset + 1):
                out.append(",")
    return "".join(out)


def _value_follows(segments: list[Segment], index: int, offset: int) -> bool:
    for position in range(index, len(segments)):
        segment = segments[position]
        if segment.state is ScanState.IN_STRING:
            return True
        if not segment.is_code:
            return False
        start = offset if position == index else 0
        stripped = segment.text[start:].lstrip()
        if stripped:
            return _starts_value(stripped[0])
    return False


def _starts_value(ch: str) -> bool:
    return ch.isalnum() or ch in "_$[{\""


def strip_comments(text: str) -> str:
    """Remove ``//`` line comments and ``/* */`` block comments."""
    return "".join(segment.text for segment in scan(text) if not segment.is_comment)


def escape_inner_quotes(text: str) -> str:
    """Escape unescaped double quotes that sit inside a string literal.

    The closing quote of a literal is taken to be the first unescaped quote
    followed by ``,``, ``:``, ``}``, ``]`` or the end of the text. Quotes
    before it are escaped. A literal without such a quote is left unchanged.
    """
    out: list[str] = []
    # Quotes already walked past by a search that found no close
    dead: set[int] = set()
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch != DOUBLE_QUOTE:
            out.append(ch)
            i += 1
            continue
        close, inner = _find_plausible_close(text, i, dead)
        if close is None:
            end = _first_unescaped_quote(text, i)
            if end is None:
                out.append(text[i:])
                break
            out.append(text[i : end + 1])
            i = end + 1
            continue
        cursor = i
        for position in inner:
            out.append(text[cursor:position])
            out.append('\\"')
            cursor = position + 1
        out.append(text[cursor : close + 1])
        i = close + 1
    return "".join(out)


def _find_plausible_close(
    text: str, start: int, dead: set[int]
) -> tuple[int | None, list[int]]:
    """Find the close for the quote at ``start`` and the quotes before it.

    A walk that reaches a quote in ``dead`` follows the same path as the
    failed walk that marked it, so it fails too. Failed walks add the quotes
    they visited to ``dead``.
    """
    if start in dead:
        return None, []
    candidates: list[int] = []
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == DOUBLE_QUOTE:
            if i in dead:
                break
            following = _next_nonblank(text, i + 1)
            if following == "" or following in _PLAUSIBLE_AFTER_STRING:
                return i, candidates
            candidates.append(i)
        i += 1
    dead.add(start)
    dead.update(candidates)
    return None, []


def _next_nonblank(text: str, start: int) -> str:
    i = start
    while i < len(text) and text[i].isspace():
        i += 1
    return text[i] if i < len(text) else ""


def _first_unescaped_quote(text: str, start: int) -> int | None:
    i = start + 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == DOUBLE_QUOTE:
            return i
        i += 1
    return None


def balance_brackets(text: str) -> str:
    """Append the missing closing braces, then the missing closing brackets.

    The pass only counts; it cannot place closers correctly for interleaved
    nesting. An unterminated trailing string literal is closed first.
    """
    segments = scan(text)
    counts = {"{": 0, "}": 0, "[": 0, "]": 0}
    for segment in segments:
        if segment.is_code:
            for ch in segment.text:
                if ch in counts:
                    counts[ch] += 1

    suffix = ""
    if (
        segments
        and segments[-1].state is ScanState.IN_STRING
        and not segments[-1].terminated
    ):
        suffix = DOUBLE_QUOTE
    suffix += "}" * max(counts["{"] - counts["}"], 0)
    suffix += "]" * max(counts["["] - counts["]"], 0)
    return text + suffix


def drop_leading_comma(text: str) -> str:
    """Remove a stray comma at the start of the text."""
    stripped = text.lstrip()
    if stripped.startswith(","):
        return stripped[1:]
    return text


class RepairPass(NamedTuple):
    name: str
    apply: Callable[[str], str]


DEFAULT_PASSES: tuple[RepairPass, ...] = (
    RepairPass("quote_keys", quote_bare_keys),
    RepairPass("normalize_quotes", normalize_quotes),
    RepairPass("remove_trailing_commas", remove_trailing_commas),
    RepairPass("insert_missing_commas", insert_missing_commas),
    RepairPass("strip_comments", strip_comments),
    RepairPass("escape_inner_quotes", escape_inner_quotes),
    RepairPass("balance_brackets", balance_brackets),
    RepairPass("drop_leading_comma", drop_leading_comma),
)
