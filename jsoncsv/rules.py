"""
Fixed conversion rules.

Everything here is a constant; per-call behaviour comes from the option
models in `jsoncsv.models`.
"""

import os

CANDIDATE_DELIMITERS = (",", ";", "\t", "|")
DEFAULT_DELIMITER = ","
DELIMITER_SAMPLE_LINES = 5  # lines inspected by delimiter auto-detection

JSON_INDENT = 2
ARRAY_TEXT_SEPARATORS = (",", ":")  # compact JSON for arrays kept in one cell

POSITIONAL_COLUMN_PREFIX = "column_"

MAX_UPLOAD_MB = int(os.environ.get("JSONCSV_MAX_UPLOAD_MB", "20"))
JSON_EXTENSIONS = (".json",)
CSV_EXTENSIONS = (".csv",)
