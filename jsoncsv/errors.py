from __future__ import annotations


class ConversionError(ValueError):
    """Base class for every failure raised by the conversion core."""


class ParseError(ConversionError):
    pass


class EmptyInputError(ParseError):
    pass


class NoValidLinesError(ParseError):
    pass


class JsonSyntaxError(ParseError):
    pass


class NotAnArrayError(ConversionError):
    pass


class NotObjectArrayError(ConversionError):
    pass


class NestedObjectError(ConversionError):
    """A nested object reached the CSV writer without being flattened."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(
            f"Column '{column}' holds a nested object; enable flattening to convert it"
        )
