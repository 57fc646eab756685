import logging
from typing import List, Optional

from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from .csv_parser import parse_csv
from .errors import ConversionError
from .files import decode_upload, download_filename, format_bytes, validate_file_size
from .json_converter import csv_to_json, json_to_csv
from .models import (
    ConversionResult,
    CsvParseOptions,
    CsvToJsonOptions,
    CsvToJsonRequest,
    Delimiter,
    HealthResponse,
    JsonToCsvOptions,
    JsonToCsvRequest,
)
from .rules import CSV_EXTENSIONS, JSON_EXTENSIONS, MAX_UPLOAD_MB

logger = logging.getLogger("jsoncsv.api")

app = FastAPI(
    title="jsoncsv",
    description="Bidirectional JSON and CSV conversion",
    version="0.1.0",
)


@app.exception_handler(ConversionError)
async def conversion_error_handler(request: Request, exc: ConversionError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def _result(output: str, extension: str, delimiter: Optional[str] = None) -> ConversionResult:
    size = len(output.encode("utf-8"))
    return ConversionResult(
        output=output,
        filename=download_filename(extension),
        size=size,
        size_label=format_bytes(size),
        line_count=output.count("\n"),
        delimiter=delimiter,
    )


async def _read_upload(file: UploadFile, extensions) -> str:
    name = (file.filename or "").lower()
    if not name.endswith(tuple(extensions)):
        raise HTTPException(
            status_code=422,
            detail=f"Only {', '.join(extensions)} files are supported",
        )

    raw = await file.read()
    check = validate_file_size(len(raw), MAX_UPLOAD_MB)
    if not check.valid:
        logger.warning("rejected upload %s: %s", file.filename, check.error)
        raise HTTPException(status_code=413, detail=check.error)
    return decode_upload(raw)


def _csv_to_json_result(
    text: str, parse_options: CsvParseOptions, options: CsvToJsonOptions
) -> ConversionResult:
    parsed = parse_csv(text, parse_options)
    return _result(csv_to_json(parsed, options), "json", parsed.delimiter)


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/json-to-csv", response_model=ConversionResult)
def convert_json_to_csv(body: JsonToCsvRequest):
    output = json_to_csv(body.text, body.options)
    return _result(output, "csv", body.options.delimiter)


@app.post("/csv-to-json", response_model=ConversionResult)
def convert_csv_to_json(body: CsvToJsonRequest):
    return _csv_to_json_result(body.text, body.parse_options, body.options)


@app.post("/json-to-csv/file", response_model=ConversionResult)
async def convert_json_file(
    file: UploadFile = File(...),
    delimiter: Delimiter = ",",
    include_headers: bool = True,
    flatten_nested: bool = True,
    column: Optional[List[str]] = Query(default=None),
):
    text = await _read_upload(file, JSON_EXTENSIONS)
    options = JsonToCsvOptions(
        delimiter=delimiter,
        include_headers=include_headers,
        flatten_nested=flatten_nested,
        custom_column_order=column,
    )
    return _result(json_to_csv(text, options), "csv", delimiter)


@app.post("/csv-to-json/file", response_model=ConversionResult)
async def convert_csv_file(
    file: UploadFile = File(...),
    has_header: bool = True,
    delimiter: Optional[str] = Query(default=None, min_length=1, max_length=1),
    auto_detect_delimiter: bool = True,
    array_of_objects: bool = True,
    pretty_print: bool = True,
):
    text = await _read_upload(file, CSV_EXTENSIONS)
    parse_options = CsvParseOptions(
        has_header=has_header,
        delimiter=delimiter,
        auto_detect_delimiter=auto_detect_delimiter,
    )
    options = CsvToJsonOptions(array_of_objects=array_of_objects, pretty_print=pretty_print)
    return _csv_to_json_result(text, parse_options, options)
