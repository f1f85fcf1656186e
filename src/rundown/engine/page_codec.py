"""
Page/block codec.

A page code is the block letter code followed by the page number, e.g. ``A3``.
Page numbers are the 1-based position of a row in the bulletin-wide walk of
live rows; block codes are labels that ride along with the row. Codes are
always derived from position and never stored independently of it.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from ..domain.entities import RundownRow
from ..infra.exceptions import ValidationError

MAX_BLOCK_CODE_LENGTH = 5

_BLOCK_RE = re.compile(r"^[A-Z]{1,%d}$" % MAX_BLOCK_CODE_LENGTH)
_PAGE_CODE_RE = re.compile(r"^([A-Z]{1,%d})(\d*)$" % MAX_BLOCK_CODE_LENGTH)


def normalize_block_code(code: str | None) -> str:
    """Trim and upper-case a block code. Raises ValidationError unless 1-5 letters."""
    normalized = (code or "").strip().upper()
    if not _BLOCK_RE.match(normalized):
        raise ValidationError(
            f"Invalid block code '{code}'. Use 1-{MAX_BLOCK_CODE_LENGTH} letters (e.g. 'A')"
        )
    return normalized


def page_code(block_code: str, page_number: int) -> str:
    return f"{block_code}{page_number}"


def parse_page_code(code: str) -> tuple[str, int | None]:
    """Split ``"B12"`` into ``("B", 12)``; a bare block ``"B"`` yields ``("B", None)``."""
    match = _PAGE_CODE_RE.match((code or "").strip().upper())
    if not match:
        raise ValidationError(f"Invalid page code '{code}'. Expected block letters then a number")
    block, digits = match.groups()
    return block, int(digits) if digits else None


def assign_pages(rows: Iterable[RundownRow]) -> int:
    """Renumber rows in the given order. Returns the number of rows walked."""
    count = 0
    for index, row in enumerate(rows):
        row.page_number = index + 1
        row.page_code = page_code(row.block_code, row.page_number)
        count += 1
    return count


__all__ = [
    "MAX_BLOCK_CODE_LENGTH",
    "normalize_block_code",
    "page_code",
    "parse_page_code",
    "assign_pages",
]
