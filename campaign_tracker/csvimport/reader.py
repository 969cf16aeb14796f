from __future__ import annotations

import logging
from pathlib import Path

from charset_normalizer import from_bytes

"""CSV upload reader.

Exports from shop back-ends are not always UTF-8 (Windows-1252 exports with
"€" or "quantità" are common). Without a configured encoding the best guess of
charset-normalizer is used; a UTF-8 BOM is dropped, and undecodable bytes fall
back to UTF-8 with replacement characters so the parser still sees the rows.
"""

__all__ = [
    "CsvReadError",
    "decode_csv_bytes",
    "read_csv_file",
]

logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"


class CsvReadError(Exception):
    """Raised when the upload file cannot be read from disk."""


def decode_csv_bytes(raw: bytes, encoding: str | None = None) -> str:
    """Decode upload bytes to text.

    Args:
        raw: File content
        encoding: Explicit encoding (config `encoding`); None = detect
    """
    if raw.startswith(UTF8_BOM):
        return raw[len(UTF8_BOM):].decode("utf-8", errors="replace")

    if encoding is None:
        match = from_bytes(raw).best()
        encoding = match.encoding if match is not None else "utf-8"
        logger.debug(f"detected encoding={encoding}")

    try:
        return raw.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        logger.warning(f"decode with {encoding} failed ({e}); falling back to utf-8 with replacement")
        return raw.decode("utf-8", errors="replace")


def read_csv_file(path: Path, encoding: str | None = None) -> str:
    """Read an upload file and return its text content.

    Raises:
        CsvReadError: If the file cannot be read
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise CsvReadError(f"cannot read {path}: {e}") from e
    return decode_csv_bytes(raw, encoding)
