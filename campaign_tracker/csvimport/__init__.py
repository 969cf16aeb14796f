"""CSV ingestion: numeric normalization, header detection and row parsing."""

from .header_map import HEADER_RULES, REQUIRED_FIELDS, HeaderMap, build_header_map
from .normalizer import normalize_number, parse_number
from .parser import (
    CsvParseError,
    EmptyInputError,
    MissingColumnsError,
    NoValidRowsError,
    ParseResult,
    RowIssue,
    parse_csv_content,
    tokenize_line,
)
from .reader import CsvReadError, decode_csv_bytes, read_csv_file

__all__ = [
    "HEADER_RULES",
    "REQUIRED_FIELDS",
    "HeaderMap",
    "build_header_map",
    "normalize_number",
    "parse_number",
    "CsvParseError",
    "EmptyInputError",
    "MissingColumnsError",
    "NoValidRowsError",
    "ParseResult",
    "RowIssue",
    "parse_csv_content",
    "tokenize_line",
    "CsvReadError",
    "decode_csv_bytes",
    "read_csv_file",
]
