"""
CSV codec for moving whole grids in and out of a single cell.

Rows are joined with CRLF and the last row carries no terminator, so an
encoded grid can be dropped into another grid's cell without a trailing
blank line. Quoting is minimal: a field is quoted only when it holds the
separator, a quote or a line break, and embedded quotes are doubled.
"""

from __future__ import annotations

import csv
import io
import logging

from grid_types import Dataset

logger = logging.getLogger(__name__)

__all__ = ["decode", "encode", "normalize", "quote_field"]

ROW_TERMINATOR = "\r\n"


def decode(text: str) -> Dataset:
    """
    Decode CSV text into rows of fields.

    Empty text decodes to no rows. Rows are padded with empty fields to the
    widest row so callers always see a rectangular dataset.
    """
    if not text:
        return []
    reader = csv.reader(io.StringIO(text, newline=""))
    return normalize([list(row) for row in reader])


def encode(rows: Dataset) -> str:
    """Encode rows of fields as CSV text."""
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, lineterminator=ROW_TERMINATOR)
    for row in rows:
        writer.writerow(row)
    text = buffer.getvalue()
    if text.endswith(ROW_TERMINATOR):
        text = text[: -len(ROW_TERMINATOR)]
    return text


def quote_field(text: str) -> str:
    """Escape and quote text exactly as it would appear as a one-field row."""
    return encode([[text]])


def normalize(rows: list[list[str]]) -> Dataset:
    """Pad irregular rows with empty fields; blank lines become empty rows."""
    if not rows:
        return []
    width = max(len(row) for row in rows)
    if any(len(row) != width for row in rows):
        logger.debug("normalize: padding irregular dataset to width %d", width)
    return [row + [""] * (width - len(row)) for row in rows]
