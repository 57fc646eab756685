from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from .rules import DEFAULT_DELIMITER

Delimiter = Literal[",", ";", "\t", "|"]

# Mirrors what json.loads can hand back.
JsonValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]


class JsonToCsvOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    delimiter: Delimiter = DEFAULT_DELIMITER
    include_headers: bool = True
    custom_column_order: Optional[List[str]] = None
    flatten_nested: bool = True


class CsvParseOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_header: bool = True
    delimiter: Optional[str] = Field(default=None, min_length=1, max_length=1)
    auto_detect_delimiter: bool = True


class CsvToJsonOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    array_of_objects: bool = True
    pretty_print: bool = True


class KeyedRows(BaseModel):
    """Rows read with a header line: one mapping per row."""

    kind: Literal["keyed"] = "keyed"
    items: List[Dict[str, Optional[str]]] = Field(default_factory=list)


class PositionalRows(BaseModel):
    """Rows read without a header line: raw field lists."""

    kind: Literal["positional"] = "positional"
    items: List[List[str]] = Field(default_factory=list)


Rows = Annotated[Union[KeyedRows, PositionalRows], Field(discriminator="kind")]


class ParsedCSV(BaseModel):
    headers: List[str] = Field(default_factory=list)
    rows: Rows
    raw_text: str
    delimiter: str = DEFAULT_DELIMITER


class FileSizeCheck(BaseModel):
    valid: bool
    error: Optional[str] = None


class JsonToCsvRequest(BaseModel):
    text: str
    options: JsonToCsvOptions = Field(default_factory=JsonToCsvOptions)


class CsvToJsonRequest(BaseModel):
    text: str
    parse_options: CsvParseOptions = Field(default_factory=CsvParseOptions)
    options: CsvToJsonOptions = Field(default_factory=CsvToJsonOptions)


class ConversionResult(BaseModel):
    output: str
    filename: str = Field(examples=["converted-1700000000000.csv"])
    size: int
    size_label: str = Field(examples=["1.5 KB"])
    line_count: int
    delimiter: Optional[str] = None


class HealthResponse(BaseModel):
    ok: bool = True


OptionsT = TypeVar("OptionsT", bound=BaseModel)


def coerce_options(
    model: Type[OptionsT], options: Union[OptionsT, Mapping[str, Any], None]
) -> OptionsT:
    """Accept an options model, a plain mapping, or None (all defaults)."""
    if options is None:
        return model()
    if isinstance(options, model):
        return options
    return model.model_validate(dict(options))
