"""
CSV encode/decode for survey records.

Format (fixed, see rules.py):
- header line, then one line per record
- comma delimiter, LF row separator, no trailing separator
- a field is double-quoted only when it contains a comma, a quote or a
  line feed; inner quotes are doubled

Decoding is lenient: blank lines are skipped, short rows are padded with
'', extra columns are ignored, and malformed input never raises.
Line splitting is quote-aware, so quoted fields may hold raw line feeds.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from .models import SurveyRecord
from .rules import CSV_HEADER, DELIMITER, FIELD_ORDER, LINE_SEPARATOR, QUOTE

_SPECIAL_CHARS = (DELIMITER, QUOTE, LINE_SEPARATOR)


def escape_field(value: Any) -> str:
    text = str(value)
    if any(ch in text for ch in _SPECIAL_CHARS):
        return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
    return text


def _field_value(record: Any, field: str) -> str:
    if isinstance(record, Mapping):
        value = record.get(field)
    else:
        value = getattr(record, field, None)
    return "" if value is None else value


def encode_row(record: Any) -> str:
    return DELIMITER.join(escape_field(_field_value(record, f)) for f in FIELD_ORDER)


def encode(records: Iterable[Any]) -> str:
    """Serialize records to CSV text. An empty input yields the header alone."""
    lines = [CSV_HEADER]
    lines.extend(encode_row(record) for record in records)
    return LINE_SEPARATOR.join(lines)


def parse_line(line: str) -> List[str]:
    """
    Split one CSV row into fields.

    A quote toggles the in-quotes state, except that two quotes in a row
    while inside quotes produce one literal quote. Commas only separate
    fields outside quotes. The last field is always emitted, so the result
    has at least one element.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    i = 0
    n = len(line)
    while i < n:
        char = line[i]
        if char == QUOTE:
            if in_quotes and i + 1 < n and line[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == DELIMITER and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current))
    return fields


def split_lines(text: str) -> List[str]:
    """
    Split text on LF, ignoring line feeds that sit inside a quoted field.

    An escaped quote ("") toggles the state twice, leaving it unchanged.
    """
    lines: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in text:
        if char == QUOTE:
            in_quotes = not in_quotes
        elif char == LINE_SEPARATOR and not in_quotes:
            lines.append("".join(current))
            current = []
            continue
        current.append(char)

    lines.append("".join(current))
    return lines


def _to_record(fields: List[str]) -> SurveyRecord:
    padded = fields[: len(FIELD_ORDER)] + [""] * (len(FIELD_ORDER) - len(fields))
    return SurveyRecord(**dict(zip(FIELD_ORDER, padded)))


def decode(text: Optional[str]) -> List[SurveyRecord]:
    """Parse CSV text into records. The first non-blank line is the header."""
    if not text or not text.strip():
        return []

    lines = [line for line in split_lines(text) if line.strip()]
    if len(lines) <= 1:
        return []

    return [_to_record(parse_line(line)) for line in lines[1:]]


__all__ = [
    "escape_field",
    "encode_row",
    "encode",
    "parse_line",
    "split_lines",
    "decode",
]
