import pytest
from pydantic import ValidationError

from jsoncsv.csv_parser import (
    auto_detect_delimiter,
    escape_csv_field,
    parse_csv,
    parse_csv_line,
    to_csv,
)
from jsoncsv.errors import EmptyInputError, ParseError
from jsoncsv.models import KeyedRows, PositionalRows


def test_parse_simple_line():
    assert parse_csv_line("a,b,c", ",") == ["a", "b", "c"]


def test_quoted_field_keeps_delimiter():
    assert parse_csv_line('"a,b",c,d', ",") == ["a,b", "c", "d"]


def test_doubled_quote_inside_quotes():
    assert parse_csv_line('"He said ""hi"", ok",x', ",") == ['He said "hi", ok', "x"]


def test_fields_are_trimmed():
    assert parse_csv_line("  a ;  b  ", ";") == ["a", "b"]


def test_empty_line_yields_one_empty_field():
    assert parse_csv_line("", ",") == [""]


def test_trailing_delimiter_yields_empty_last_field():
    assert parse_csv_line("a,b,", ",") == ["a", "b", ""]


def test_unterminated_quote_is_lenient():
    assert parse_csv_line('a,"b,c', ",") == ["a", "b,c"]


@pytest.mark.parametrize(
    "value",
    ['He said "hi", ok', "line one\nline two", "a;b", '"'],
)
def test_escaped_field_parses_back(value):
    for delimiter in (",", ";"):
        assert parse_csv_line(escape_csv_field(value, delimiter), delimiter) == [value]


def test_detects_semicolon():
    assert auto_detect_delimiter("name;age\nJohn;30") == ";"


def test_detects_comma():
    assert auto_detect_delimiter("name,age\nJohn,30") == ","


def test_detects_tab_and_pipe():
    assert auto_detect_delimiter("a\tb\tc\n1\t2\t3") == "\t"
    assert auto_detect_delimiter("a|b\n1|2") == "|"


def test_detection_defaults_to_comma():
    assert auto_detect_delimiter("single column\nvalue") == ","


def test_detection_tie_prefers_comma():
    assert auto_detect_delimiter("a,b;c") == ","


def test_detection_samples_first_five_lines():
    text = "\n".join(["a,b"] * 5 + ["x;y;z;w;v;u;t;s;r;q;p"] * 3)
    assert auto_detect_delimiter(text) == ","


def test_parse_with_header_builds_keyed_rows():
    parsed = parse_csv("name,age,city\nJohn,30,NYC\nJane,25")
    assert parsed.headers == ["name", "age", "city"]
    assert isinstance(parsed.rows, KeyedRows)
    assert parsed.rows.items == [
        {"name": "John", "age": "30", "city": "NYC"},
        {"name": "Jane", "age": "25", "city": None},
    ]
    assert parsed.delimiter == ","


def test_parse_empty_cells_become_none():
    parsed = parse_csv("a,b,c\n1,,3")
    assert parsed.rows.items == [{"a": "1", "b": None, "c": "3"}]


def test_parse_skips_blank_lines_and_keeps_trimmed_text():
    parsed = parse_csv("\n\na;b\n\n1;2\n   \n3;4\n")
    assert parsed.delimiter == ";"
    assert len(parsed.rows.items) == 2
    assert parsed.raw_text == "a;b\n\n1;2\n   \n3;4"


def test_parse_handles_crlf_line_endings():
    parsed = parse_csv("a,b\r\n1,2\r\n")
    assert parsed.headers == ["a", "b"]
    assert parsed.rows.items == [{"a": "1", "b": "2"}]


def test_explicit_delimiter_wins_over_detection():
    parsed = parse_csv("a;b,c\n1;2,3", {"delimiter": ","})
    assert parsed.headers == ["a;b", "c"]


def test_auto_detection_disabled_falls_back_to_comma():
    parsed = parse_csv("a;b\n1;2", {"auto_detect_delimiter": False})
    assert parsed.headers == ["a;b"]


def test_headerless_csv_yields_positional_rows():
    # The header-keyed path alone used to build rows; headerless input now
    # keeps every line as a raw field list instead of dropping it.
    parsed = parse_csv("1,2\n3,4", {"has_header": False})
    assert parsed.headers == []
    assert isinstance(parsed.rows, PositionalRows)
    assert parsed.rows.items == [["1", "2"], ["3", "4"]]


def test_blank_input_raises_empty_input_error():
    with pytest.raises(EmptyInputError, match="CSV text is empty"):
        parse_csv("   ")


def test_empty_input_is_a_parse_error():
    with pytest.raises(ParseError):
        parse_csv("")


def test_multi_character_delimiter_is_rejected():
    with pytest.raises(ValidationError):
        parse_csv("a,b", {"delimiter": "::"})


def test_escape_rules():
    assert escape_csv_field('He said "hi", ok', ",") == '"He said ""hi"", ok"'
    assert escape_csv_field("plain", ",") == "plain"
    assert escape_csv_field("a,b", ";") == "a,b"
    assert escape_csv_field("a\rb", ",") == '"a\rb"'
    assert escape_csv_field(None, ",") == ""


def test_escape_stringifies_scalars():
    assert escape_csv_field(True) == "true"
    assert escape_csv_field(False) == "false"
    assert escape_csv_field(30) == "30"
    assert escape_csv_field(2.0) == "2"
    assert escape_csv_field(2.5) == "2.5"


def test_escape_keeps_exponent_for_huge_floats():
    assert escape_csv_field(1e21) == "1e+21"
    assert escape_csv_field(1e20) == "100000000000000000000"


def test_nested_values_write_integral_floats_as_integers():
    assert escape_csv_field([1.0, 2.5], ";") == "[1,2.5]"
    assert escape_csv_field({"a": [3.0, True]}, ";") == '"{""a"":[3,true]}"'


def test_to_csv_uses_first_row_key_order():
    rows = [{"b": 1, "a": "x,y"}, {"a": None, "b": 2}]
    assert to_csv(rows) == 'b,a\n1,"x,y"\n2,'


def test_to_csv_without_headers_and_other_delimiter():
    assert to_csv([{"a": 1, "b": 2}], delimiter="|", include_headers=False) == "1|2"


def test_to_csv_empty_input():
    assert to_csv([]) == ""
