from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

"""Header detection for monthly sales CSV uploads.

Exports come from different shop back-ends, in Italian or English, with
headers such as "Pezzi totali", "Importo totale (€)" or "Net amount". Each
header cell is classified against HEADER_RULES, an ordered table of
(field, substring patterns). The first rule that matches decides the cell's
field, and the first column classified into a field keeps it.
"""

__all__ = [
    "PRODUCT_NAME",
    "UNITS_SOLD",
    "GROSS_AMOUNT",
    "TAX_AMOUNT",
    "NET_AMOUNT",
    "REQUIRED_FIELDS",
    "HeaderPattern",
    "HeaderRule",
    "HEADER_RULES",
    "HeaderMap",
    "build_header_map",
    "clean_header_cell",
    "match_header_cell",
]

PRODUCT_NAME = "productName"
UNITS_SOLD = "unitsSold"
GROSS_AMOUNT = "grossAmount"
TAX_AMOUNT = "taxAmount"
NET_AMOUNT = "netAmount"

REQUIRED_FIELDS: tuple[str, ...] = (PRODUCT_NAME, UNITS_SOLD, GROSS_AMOUNT)


@dataclass(frozen=True)
class HeaderPattern:
    """Matches a cleaned header cell containing all of `required` and none of `forbidden`."""
    required: tuple[str, ...]
    forbidden: tuple[str, ...] = ()

    def matches(self, cell: str) -> bool:
        return all(s in cell for s in self.required) and not any(s in cell for s in self.forbidden)


@dataclass(frozen=True)
class HeaderRule:
    field: str
    patterns: tuple[HeaderPattern, ...]

    def matches(self, cell: str) -> bool:
        return any(p.matches(cell) for p in self.patterns)


def _any_of(*substrings: str) -> tuple[HeaderPattern, ...]:
    return tuple(HeaderPattern((s,)) for s in substrings)


# Precedence matters: "pezzi totali" must hit UNITS_SOLD before the bare
# "total" pattern of GROSS_AMOUNT, and "imponibile totale" must not be gross.
HEADER_RULES: tuple[HeaderRule, ...] = (
    HeaderRule(PRODUCT_NAME, _any_of("prodotto", "product", "nome", "item")),
    HeaderRule(UNITS_SOLD, _any_of("pezzi", "totali", "quantity", "quantità", "qty")),
    HeaderRule(
        GROSS_AMOUNT,
        (
            HeaderPattern(("importo", "totale")),
            HeaderPattern(("total",), forbidden=("imponibile",)),
            HeaderPattern(("gross",)),
        ),
    ),
    HeaderRule(TAX_AMOUNT, _any_of("iva", "tax", "vat")),
    HeaderRule(NET_AMOUNT, _any_of("imponibile", "net", "netto")),
)


def clean_header_cell(cell: str) -> str:
    """Lowercase a header cell, dropping quote characters and surrounding whitespace."""
    return cell.replace('"', "").replace("'", "").strip().lower()


def match_header_cell(cell: str, rules: Iterable[HeaderRule] = HEADER_RULES) -> str | None:
    """Return the field of the first rule matching a cleaned header cell."""
    for rule in rules:
        if rule.matches(cell):
            return rule.field
    return None


class HeaderMap:
    """Target field -> zero-based source column index."""

    def __init__(self, columns: Mapping[str, int] | None = None, headers: list[str] | None = None) -> None:
        self._columns: dict[str, int] = dict(columns or {})
        self.headers: list[str] = list(headers or [])

    def get(self, field: str) -> int | None:
        return self._columns.get(field)

    def __contains__(self, field: object) -> bool:
        return field in self._columns

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderMap):
            return NotImplemented
        return self._columns == other._columns

    def __repr__(self) -> str:  # pragma: no cover (debug aid)
        return f"HeaderMap({self._columns!r})"

    def as_dict(self) -> dict[str, int]:
        return dict(self._columns)

    @property
    def max_index(self) -> int:
        return max(self._columns.values(), default=-1)

    def missing_required(self) -> list[str]:
        return [f for f in REQUIRED_FIELDS if f not in self._columns]


def build_header_map(header_line: str, rules: Iterable[HeaderRule] = HEADER_RULES) -> HeaderMap:
    """Classify each comma-separated header cell into a target field.

    Args:
        header_line: First non-blank line of the upload
        rules: Ordered precedence table (defaults to HEADER_RULES)

    Returns:
        HeaderMap with one column per recognised field. Required fields may
        still be missing; check HeaderMap.missing_required().
    """
    rules = tuple(rules)
    headers = [clean_header_cell(c) for c in header_line.split(",")]
    columns: dict[str, int] = {}
    for index, cell in enumerate(headers):
        field = match_header_cell(cell, rules)
        if field is not None and field not in columns:
            columns[field] = index
    return HeaderMap(columns, headers)
