from __future__ import annotations

import logging
import re

"""Locale-tolerant numeric normalizer for CSV tokens.

Sales exports arrive with either European ("1.234,56") or US ("1,234.56")
number formatting, often with a currency symbol attached, and no locale
information. The decimal separator is inferred from its proximity to the end
of the token:

- a separator within the last 3 characters is the decimal point
- any other separator is a thousands separator

Inputs such as "1,234" stay ambiguous; they are read as 1234. Only the
leading number of a token counts, so a unit suffix ("10 pz", "5pcs") is
dropped.

normalize_number() never raises: an unparseable token becomes 0.0.
parse_number() exposes the failure as None for callers that need to tell
"zero" and "garbage" apart.
"""

__all__ = [
    "normalize_number",
    "parse_number",
]

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = "€$£¥₹"
# Currency symbols, whitespace, parentheses and quotes
_STRIP_RE = re.compile(r"[" + CURRENCY_SYMBOLS + r"\s()\"']")
# Sign, digits and separators up to the first other character ("10pz" -> "10")
_NUMERIC_HEAD_RE = re.compile(r"[+-]?[\d.,]*")
# Leading plain decimal; float() alone would also accept inf/nan/1e3/1_000
_LEADING_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
# A separator at index >= len - DECIMAL_WINDOW is the decimal point
DECIMAL_WINDOW = 3


def _to_float(text: str) -> float | None:
    match = _LEADING_DECIMAL_RE.match(text)
    return float(match.group()) if match else None


def _digits_only(text: str) -> str:
    return text.replace(".", "").replace(",", "")


def _resolve_separators(cleaned: str) -> str:
    last_comma = cleaned.rfind(",")
    last_dot = cleaned.rfind(".")
    window_start = len(cleaned) - DECIMAL_WINDOW

    if last_comma > last_dot and last_comma >= window_start:
        # European decimal comma: "1.234,56"
        return f"{_digits_only(cleaned[:last_comma])}.{cleaned[last_comma + 1:]}"
    if last_dot > last_comma and last_dot >= window_start:
        # US decimal dot: "1,234.56"
        return f"{_digits_only(cleaned[:last_dot])}.{cleaned[last_dot + 1:]}"
    # Grouping separators only: "1.234.567", "12,345"
    return _digits_only(cleaned)


def parse_number(token: str | None) -> float | None:
    """Parse a free-form numeric token.

    Args:
        token: Raw cell text (may carry currency symbols, separators, a percent sign)

    Returns:
        The parsed value; 0.0 for a blank token; None if the token is not blank but
        does not start with a number. Text after the leading number is
        ignored ("10 pz" -> 10.0). A percent sign is dropped without scaling
        ("22%" -> 22.0).
    """
    if token is None or not token.strip():
        return 0.0

    cleaned = _STRIP_RE.sub("", token)

    if "%" in cleaned:
        cleaned = cleaned.replace("%", "").replace(",", ".", 1)
        return _to_float(cleaned)

    head = _NUMERIC_HEAD_RE.match(cleaned).group()
    return _to_float(_resolve_separators(head))


def normalize_number(token: str | None) -> float:
    """Parse a numeric token, degrading to 0.0 when it cannot be read.

    Examples:
        >>> normalize_number("1.234,56")
        1234.56
        >>> normalize_number("1,234.56")
        1234.56
        >>> normalize_number("€1.234")
        1234.0
        >>> normalize_number("abc")
        0.0
    """
    value = parse_number(token)
    if value is None:
        logger.debug(f"unparseable numeric token {token!r} -> 0")
        return 0.0
    return value
