"""
JSON side of the conversion.

`json_to_csv` and `csv_to_json` are the two public conversions; both are
pure functions over in-memory text.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Union

from .csv_parser import compact_json, write_rows
from .errors import (
    EmptyInputError,
    JsonSyntaxError,
    NestedObjectError,
    NotAnArrayError,
    NotObjectArrayError,
)
from .models import (
    CsvToJsonOptions,
    JsonToCsvOptions,
    JsonValue,
    KeyedRows,
    ParsedCSV,
    coerce_options,
)
from .rules import JSON_INDENT, POSITIONAL_COLUMN_PREFIX

logger = logging.getLogger("jsoncsv.json")


class JsonDocument(NamedTuple):
    data: JsonValue
    is_array: bool
    is_array_of_objects: bool


def _members(value: JsonValue):
    # Arrays nested inside a flattened branch are addressed by index.
    if isinstance(value, dict):
        return value.items()
    if isinstance(value, list):
        return ((str(i), v) for i, v in enumerate(value))
    return ()


def flatten_object(
    obj: JsonValue, prefix: str = "", flattened: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Collapse nested objects into dot-path keys.

    Arrays are never expanded: they are stored as compact JSON text under
    their own path. Input must be acyclic.
    """
    if flattened is None:
        flattened = {}

    for key, value in _members(obj):
        new_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            flatten_object(value, new_key, flattened)
        elif isinstance(value, list):
            flattened[new_key] = compact_json(value)
        else:
            flattened[new_key] = value
    return flattened


def _reject_constant(name: str):
    raise ValueError(f"Unexpected token {name}")


def parse_json(json_text: str) -> JsonDocument:
    """Parse and classify JSON text.

    Only the first element decides whether an array holds objects; nested
    arrays count as objects there, null and primitives do not.
    """
    trimmed = json_text.strip()
    if not trimmed:
        raise EmptyInputError("JSON text is empty")

    try:
        data = json.loads(trimmed, parse_constant=_reject_constant)
    except ValueError as exc:
        raise JsonSyntaxError(f"Invalid JSON: {exc}") from exc

    is_array = isinstance(data, list)
    is_array_of_objects = bool(is_array and data and isinstance(data[0], (dict, list)))
    return JsonDocument(data, is_array, is_array_of_objects)


def _as_row(item: JsonValue) -> Mapping[str, Any]:
    row = dict(_members(item))
    for key, value in row.items():
        if isinstance(value, dict):
            raise NestedObjectError(key)
    return row


def json_to_csv(
    json_text: str,
    options: Union[JsonToCsvOptions, Mapping[str, Any], None] = None,
) -> str:
    """Convert a JSON array of objects into CSV text.

    Without a custom column order the header is the sorted union of every
    key seen; cells for keys a row lacks are left empty.
    """
    opts = coerce_options(JsonToCsvOptions, options)
    doc = parse_json(json_text)

    if not doc.is_array:
        raise NotAnArrayError("JSON must be an array of objects to convert to CSV")
    if not doc.data:
        return ""
    if not doc.is_array_of_objects:
        raise NotObjectArrayError("JSON array must contain objects (not primitives)")

    if opts.flatten_nested:
        rows = [flatten_object(item) for item in doc.data]
    else:
        rows = [_as_row(item) for item in doc.data]

    headers: List[str] = list(opts.custom_column_order or [])
    if not headers:
        seen = set()
        for row in rows:
            seen.update(row.keys())
        headers = sorted(seen)

    logger.debug("writing %d rows x %d columns", len(rows), len(headers))
    return write_rows(headers, rows, opts.delimiter, opts.include_headers)


def _positional_headers(parsed: ParsedCSV) -> List[str]:
    if parsed.headers:
        return list(parsed.headers)
    width = max((len(row) for row in parsed.rows.items), default=0)
    return [f"{POSITIONAL_COLUMN_PREFIX}{i + 1}" for i in range(width)]


def csv_to_json(
    parsed_csv: Union[ParsedCSV, Mapping[str, Any]],
    options: Union[CsvToJsonOptions, Mapping[str, Any], None] = None,
) -> str:
    """Render parsed CSV as JSON text, as objects or as plain value arrays."""
    opts = coerce_options(CsvToJsonOptions, options)
    parsed = (
        parsed_csv
        if isinstance(parsed_csv, ParsedCSV)
        else ParsedCSV.model_validate(dict(parsed_csv))
    )
    rows = parsed.rows

    result: List[Any]
    if opts.array_of_objects:
        if isinstance(rows, KeyedRows):
            result = list(rows.items)
        else:
            headers = _positional_headers(parsed)
            result = [
                {h: row[i] for i, h in enumerate(headers) if i < len(row)}
                for row in rows.items
            ]
    else:
        if isinstance(rows, KeyedRows):
            result = [[row.get(h) for h in parsed.headers] for row in rows.items]
        else:
            result = [list(row) for row in rows.items]

    if opts.pretty_print:
        return json.dumps(result, ensure_ascii=False, indent=JSON_INDENT)
    return json.dumps(result, ensure_ascii=False, separators=(",", ":"))
