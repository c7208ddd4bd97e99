"""
String and comment aware scanning of JSON-like text.

The scanner splits text into segments that share one scan state, so that
rewrite passes can touch structural text only and leave string contents and
comments alone.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

DOUBLE_QUOTE = '"'
ANY_QUOTE = "\"'"


class ScanState(str, Enum):
    """Scanner states."""

    NORMAL = "normal"
    IN_STRING = "in_string"
    IN_LINE_COMMENT = "in_line_comment"
    IN_BLOCK_COMMENT = "in_block_comment"


COMMENT_STATES = frozenset({ScanState.IN_LINE_COMMENT, ScanState.IN_BLOCK_COMMENT})


@dataclass(frozen=True)
class Segment:
    """A run of characters sharing one scan state.

    String segments include their quotes. ``terminated`` is False for a string
    or block comment that runs to the end of the text.
    """

    state: ScanState
    start: int
    text: str
    terminated: bool = True
    quote: str = ""

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    @property
    def is_code(self) -> bool:
        return self.state is ScanState.NORMAL

    @property
    def is_comment(self) -> bool:
        return self.state in COMMENT_STATES


def scan(text: str, quotes: str = DOUBLE_QUOTE) -> list[Segment]:
    """Split ``text`` into scan segments.

    Args:
        text: The text to scan
        quotes: Characters that open a string literal. A literal is closed by
            the same character that opened it.

    Returns:
        Segments in document order; concatenating their text yields ``text``.
    """
    segments: list[Segment] = []
    n = len(text)
    i = 0
    code_start = 0

    def flush_code(upto: int) -> None:
        if upto > code_start:
            segments.append(
                Segment(ScanState.NORMAL, code_start, text[code_start:upto])
            )

    while i < n:
        ch = text[i]
        if ch in quotes:
            flush_code(i)
            end, terminated = _string_end(text, i, ch)
            segments.append(
                Segment(ScanState.IN_STRING, i, text[i:end], terminated, quote=ch)
            )
            i = code_start = end
        elif ch == "/" and text.startswith("//", i):
            flush_code(i)
            newline = text.find("\n", i)
            end = n if newline == -1 else newline
            segments.append(Segment(ScanState.IN_LINE_COMMENT, i, text[i:end]))
            i = code_start = end
        elif ch == "/" and text.startswith("/*", i):
            flush_code(i)
            close = text.find("*/", i + 2)
            end = n if close == -1 else close + 2
            segments.append(
                Segment(
                    ScanState.IN_BLOCK_COMMENT, i, text[i:end], terminated=close != -1
                )
            )
            i = code_start = end
        else:
            i += 1

    flush_code(n)
    return segments


def _string_end(text: str, start: int, quote: str) -> tuple[int, bool]:
    """Return the offset just past the literal opened at ``start``."""
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1, True
        i += 1
    return n, False


def next_significant(segments: Sequence[Segment], index: int, offset: int) -> str:
    """Return the first non-blank character at or after ``offset`` in segment ``index``.

    Comments are skipped. A string segment yields its opening quote. Returns
    an empty string at end of text.
    """
    for position in range(index, len(segments)):
        segment = segments[position]
        if segment.is_comment:
            continue
        if segment.state is ScanState.IN_STRING:
            return segment.text[0]
        start = offset if position == index else 0
        stripped = segment.text[start:].lstrip()
        if stripped:
            return stripped[0]
    return ""


def previous_significant(segments: Sequence[Segment], index: int, offset: int) -> str:
    """Return the last non-blank character before ``offset`` in segment ``index``.

    Comments are skipped. A string segment yields a double quote.
    """
    for position in range(index, -1, -1):
        segment = segments[position]
        if segment.is_comment:
            continue
        if segment.state is ScanState.IN_STRING:
            return DOUBLE_QUOTE
        end = offset if position == index else len(segment.text)
        stripped = segment.text[:end].rstrip()
        if stripped:
            return stripped[-1]
    return ""
