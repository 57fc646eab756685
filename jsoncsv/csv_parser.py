"""
CSV reading and writing.

- tokenizing a single line (quoted fields, doubled quotes)
- delimiter auto-detection
- parsing whole documents into header-keyed or positional rows
- escaping and joining rows back into CSV text
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from .errors import EmptyInputError, NoValidLinesError
from .models import CsvParseOptions, KeyedRows, ParsedCSV, PositionalRows, coerce_options
from .rules import (
    ARRAY_TEXT_SEPARATORS,
    CANDIDATE_DELIMITERS,
    DEFAULT_DELIMITER,
    DELIMITER_SAMPLE_LINES,
)

logger = logging.getLogger("jsoncsv.csv")


def auto_detect_delimiter(csv_text: str) -> str:
    """Guess the separator from the first few lines of `csv_text`.

    Each candidate scores the number of times it occurs in the sample.
    Ties go to the earlier candidate, so comma wins when nothing matches.
    """
    lines = csv_text.strip().split("\n")[:DELIMITER_SAMPLE_LINES]

    best_delimiter = DEFAULT_DELIMITER
    best_score = 0
    for delimiter in CANDIDATE_DELIMITERS:
        score = sum(line.count(delimiter) for line in lines)
        if score > best_score:
            best_score = score
            best_delimiter = delimiter

    logger.debug("detected delimiter %r (score %d)", best_delimiter, best_score)
    return best_delimiter


def parse_csv_line(line: str, delimiter: str) -> List[str]:
    """Split one CSV line into trimmed field values.

    An unterminated quote is tolerated: the rest of the line becomes part
    of the last field.
    """
    fields: List[str] = []
    current: List[str] = []
    inside_quotes = False
    i = 0
    n = len(line)

    while i < n:
        ch = line[i]

        if ch == '"':
            if inside_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 2
            else:
                inside_quotes = not inside_quotes
                i += 1
            continue

        if ch == delimiter and not inside_quotes:
            fields.append("".join(current).strip())
            current = []
            i += 1
            continue

        current.append(ch)
        i += 1

    fields.append("".join(current).strip())
    return fields


def _resolve_delimiter(text: str, options: CsvParseOptions) -> str:
    if options.delimiter:
        return options.delimiter
    if options.auto_detect_delimiter:
        return auto_detect_delimiter(text)
    return DEFAULT_DELIMITER


def parse_csv(
    csv_text: str,
    options: Union[CsvParseOptions, Mapping[str, Any], None] = None,
) -> ParsedCSV:
    """Parse CSV text into a `ParsedCSV`.

    With a header line every row is a mapping holding exactly one entry per
    header; empty and missing cells are None. Without one, rows are the
    raw field lists.
    """
    opts = coerce_options(CsvParseOptions, options)

    text = csv_text.strip()
    if not text:
        raise EmptyInputError("CSV text is empty")

    lines = [line for line in text.split("\n") if line.strip()]
    if not lines:
        raise NoValidLinesError("No valid CSV lines found")

    delimiter = _resolve_delimiter(text, opts)

    if opts.has_header:
        headers = parse_csv_line(lines[0], delimiter)
        keyed = []
        for line in lines[1:]:
            values = parse_csv_line(line, delimiter)
            row = {}
            for j, header in enumerate(headers):
                row[header] = values[j] if j < len(values) and values[j] else None
            keyed.append(row)
        rows: Union[KeyedRows, PositionalRows] = KeyedRows(items=keyed)
    else:
        headers = []
        rows = PositionalRows(items=[parse_csv_line(line, delimiter) for line in lines])

    logger.debug(
        "parsed %d %s rows with delimiter %r", len(rows.items), rows.kind, delimiter
    )
    return ParsedCSV(headers=headers, rows=rows, raw_text=text, delimiter=delimiter)


def _integral(value: Any) -> bool:
    # Past 1e21 integral floats keep exponent notation.
    return isinstance(value, float) and value.is_integer() and abs(value) < 1e21


def _plain_numbers(value: Any) -> Any:
    if _integral(value):
        return int(value)
    if isinstance(value, list):
        return [_plain_numbers(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain_numbers(v) for k, v in value.items()}
    return value


def compact_json(value: Any) -> str:
    """Compact JSON for a value kept whole in one cell; `1.0` is written as `1`."""
    return json.dumps(
        _plain_numbers(value), ensure_ascii=False, separators=ARRAY_TEXT_SEPARATORS
    )


def stringify_cell(value: Any) -> str:
    """Text form of a JSON value as it appears in a CSV cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if _integral(value):
        return str(int(value))
    if isinstance(value, (list, dict)):
        return compact_json(value)
    return str(value)


def escape_csv_field(value: Any, delimiter: str = DEFAULT_DELIMITER) -> str:
    """Quote a field when it holds the delimiter, a line break or a quote."""
    text = stringify_cell(value)
    if delimiter in text or "\n" in text or "\r" in text or '"' in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def write_rows(
    headers: Sequence[str],
    rows: Iterable[Mapping[str, Any]],
    delimiter: str = DEFAULT_DELIMITER,
    include_headers: bool = True,
) -> str:
    lines: List[str] = []
    if include_headers:
        lines.append(delimiter.join(escape_csv_field(h, delimiter) for h in headers))
    for row in rows:
        lines.append(delimiter.join(escape_csv_field(row.get(h), delimiter) for h in headers))
    return "\n".join(lines)


def to_csv(
    data: Sequence[Mapping[str, Any]],
    delimiter: str = DEFAULT_DELIMITER,
    include_headers: bool = True,
    headers: Optional[Sequence[str]] = None,
) -> str:
    """Serialize row mappings; columns follow the key order of the first row."""
    if not data:
        return ""
    columns = list(headers) if headers else list(data[0].keys())
    return write_rows(columns, data, delimiter, include_headers)
