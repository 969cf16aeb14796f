from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from ..models.import_row import ImportRow
from .header_map import (
    GROSS_AMOUNT,
    NET_AMOUNT,
    PRODUCT_NAME,
    TAX_AMOUNT,
    UNITS_SOLD,
    HeaderMap,
    build_header_map,
)
from .normalizer import normalize_number

"""Monthly sales CSV parser.

raw text -> header detection -> per-row tokenization -> per-field
normalization -> validation -> list[ImportRow]

Two error tiers:
- fatal (CsvParseError subclasses): empty input, required header columns not
  found, no valid data row left. The exception carries the row issues
  collected so far.
- row-level (RowIssue): insufficient columns, missing product name,
  non-positive amount or quantity. The row is skipped and parsing goes on.
"""

__all__ = [
    "CsvParseError",
    "EmptyInputError",
    "MissingColumnsError",
    "NoValidRowsError",
    "RowIssue",
    "ParseResult",
    "tokenize_line",
    "parse_csv_content",
    "INSUFFICIENT_COLUMNS",
    "INVALID_ROW",
]

logger = logging.getLogger(__name__)

INSUFFICIENT_COLUMNS = "INSUFFICIENT_COLUMNS"
INVALID_ROW = "INVALID_ROW"

QUOTE_CHARS = "\"'"
_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class RowIssue:
    """A skipped data row (row is 1-based, header excluded)."""
    row: int
    error_type: str
    message: str

    def __str__(self) -> str:
        return self.message


class CsvParseError(Exception):
    """Fatal parse failure; nothing from the upload can be used."""

    error_type = "PARSE_ERROR"

    def __init__(self, message: str, issues: list[RowIssue] | None = None) -> None:
        super().__init__(message)
        self.issues: list[RowIssue] = list(issues or [])


class EmptyInputError(CsvParseError):
    """Raised when the upload has no non-blank line."""

    error_type = "EMPTY_INPUT"


class MissingColumnsError(CsvParseError):
    """Raised when required fields cannot be located in the header line."""

    error_type = "MISSING_COLUMNS"

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"missing required columns: {', '.join(missing)}")
        self.missing = list(missing)


class NoValidRowsError(CsvParseError):
    """Raised when every data row was rejected."""

    error_type = "NO_VALID_ROWS"


@dataclass(frozen=True)
class ParseResult:
    rows: list[ImportRow]
    header_map: HeaderMap
    issues: list[RowIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        """Human-readable per-row diagnostics."""
        return [i.message for i in self.issues]


def tokenize_line(line: str) -> list[str]:
    """Split a data line on commas, keeping quoted commas literal.

    A single or double quote opens a quoted section only if the same quote
    character appears again later on the line; the quote characters
    themselves are dropped. Tokens are trimmed.

    >>> tokenize_line('"Widget, Deluxe",5,"1.220,00"')
    ['Widget, Deluxe', '5', '1.220,00']
    """
    tokens: list[str] = []
    current: list[str] = []
    quote: str | None = None
    for i, ch in enumerate(line):
        if quote is not None:
            if ch == quote:
                quote = None
            else:
                current.append(ch)
        elif ch in QUOTE_CHARS and line.find(ch, i + 1) != -1:
            quote = ch
        elif ch == ",":
            tokens.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    tokens.append("".join(current).strip())
    return tokens


def _vat_from_rate(gross: float, rate: float) -> float:
    # gross includes VAT: tax = gross * r / (100 + r)
    if rate == -100:
        return 0.0
    return gross * rate / (100 + rate)


def _parse_row(values: list[str], header_map: HeaderMap) -> ImportRow:
    product_name = values[header_map.get(PRODUCT_NAME)].strip()  # type: ignore[index]
    units_sold = normalize_number(values[header_map.get(UNITS_SOLD)])  # type: ignore[index]
    gross = normalize_number(values[header_map.get(GROSS_AMOUNT)])  # type: ignore[index]

    tax_col = header_map.get(TAX_AMOUNT)
    net_col = header_map.get(NET_AMOUNT)

    tax = 0.0
    if tax_col is not None:
        raw_tax = values[tax_col]
        tax = normalize_number(raw_tax)
        # "22%" or a bare 22 next to a larger gross is a VAT rate, not an amount
        if "%" in raw_tax or (0 < tax <= 100 and tax < gross):
            tax = _vat_from_rate(gross, tax)

    if net_col is not None:
        net = normalize_number(values[net_col])
        if tax_col is None:
            tax = gross - net
    else:
        net = gross - tax

    return ImportRow(
        product_name=product_name,
        units_sold=units_sold,
        gross_amount=gross,
        tax_amount=tax,
        net_amount=net,
    )


def parse_csv_content(text: str) -> ParseResult:
    """Parse a monthly sales CSV into ImportRow records.

    Args:
        text: Full upload content; first non-blank line is the header

    Returns:
        ParseResult with the valid rows in input order plus row-level issues

    Raises:
        EmptyInputError: No non-blank line
        MissingColumnsError: productName/unitsSold/grossAmount not in header
        NoValidRowsError: Every data row was rejected
    """
    lines = [ln for ln in _LINE_SPLIT_RE.split(text) if ln.strip()]
    if not lines:
        raise EmptyInputError("empty input")

    header_map = build_header_map(lines[0])
    logger.debug(f"header cells={header_map.headers} mapping={header_map.as_dict()}")
    missing = header_map.missing_required()
    if missing:
        raise MissingColumnsError(missing)

    required_width = header_map.max_index + 1
    rows: list[ImportRow] = []
    issues: list[RowIssue] = []

    for row_no, line in enumerate(lines[1:], start=1):
        values = tokenize_line(line.strip())
        if len(values) < required_width:
            issues.append(RowIssue(row_no, INSUFFICIENT_COLUMNS, f"Row {row_no}: Insufficient columns"))
            logger.warning(f"Row {row_no}: insufficient columns ({len(values)}/{required_width})")
            continue

        row = _parse_row(values, header_map)
        if not row.product_name or row.gross_amount <= 0 or row.units_sold <= 0:
            label = row.product_name or "No product name"
            issues.append(RowIssue(row_no, INVALID_ROW, f"Row {row_no}: Invalid data - {label}"))
            logger.warning(
                f"Row {row_no}: skipped name={row.product_name!r} "
                f"units={row.units_sold} gross={row.gross_amount}"
            )
            continue
        rows.append(row)

    logger.debug(f"parsed {len(rows)} rows from {len(lines) - 1} data lines")
    if not rows:
        raise NoValidRowsError("no valid data rows found", issues)
    return ParseResult(rows=rows, header_map=header_map, issues=issues)
