"""
Record extraction from the search results page.

The results table has no stable ids, so rows are projected to plain cell
texts plus the row's link label and the target is picked by a heuristic:
the first row with a link and a strictly positive amount.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY_MARKERS = ("$",)
DEFAULT_LINK_PATTERN = r"^\d{5,}$"

_NON_NUMERIC = re.compile(r"[^0-9.\-]")

ROWS_SCRIPT = """
(rows) => rows.map((tr) => {
  const cells = Array.from(tr.querySelectorAll('td')).map((td) => (td.textContent || '').trim());
  const link = tr.querySelector('a');
  return { cells, link: link ? (link.textContent || '').trim() : null };
})
"""

LINK_TEXTS_SCRIPT = "(links) => links.map((a) => (a.textContent || '').trim())"


def parse_amount(text: str) -> Optional[Decimal]:
    """
    Parse a money cell by dropping everything but digits, '.' and '-'.

    "$1,234.50" -> Decimal("1234.50"). Returns None when nothing numeric is left.
    """
    cleaned = _NON_NUMERIC.sub("", text or "")
    if not cleaned:
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


@dataclass
class RecordRow:
    """One results table row."""
    cells: list[str] = field(default_factory=list)
    link_label: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "RecordRow":
        return cls(
            cells=[str(c) for c in data.get("cells") or []],
            link_label=data.get("link") or None,
        )

    def amount_cell(self, markers: Sequence[str] = DEFAULT_CURRENCY_MARKERS) -> Optional[str]:
        """First cell whose raw text carries a currency marker."""
        for cell in self.cells:
            if any(marker in cell for marker in markers):
                return cell
        return None

    def amount(self, markers: Sequence[str] = DEFAULT_CURRENCY_MARKERS) -> Optional[Decimal]:
        cell = self.amount_cell(markers)
        return parse_amount(cell) if cell is not None else None

    def qualifies(self, markers: Sequence[str] = DEFAULT_CURRENCY_MARKERS) -> bool:
        amount = self.amount(markers)
        return bool(self.link_label) and amount is not None and amount > 0


def select_target_record(
    rows: Sequence[RecordRow],
    markers: Sequence[str] = DEFAULT_CURRENCY_MARKERS,
) -> Optional[RecordRow]:
    """First row in document order with a link label and a positive amount."""
    for row in rows:
        if row.qualifies(markers):
            return row
    return None


def first_identifier_link(
    labels: Sequence[str], pattern: str = DEFAULT_LINK_PATTERN
) -> Optional[str]:
    """First link text that looks like a record identifier."""
    regex = re.compile(pattern)
    for label in labels:
        label = (label or "").strip()
        if regex.search(label):
            return label
    return None


async def extract_record_rows(page, row_selector: str = "table tbody tr") -> list[RecordRow]:
    """Project every results row on the page into a RecordRow."""
    raw_rows = await page.eval_on_selector_all(row_selector, ROWS_SCRIPT)
    return [RecordRow.from_dict(r) for r in raw_rows or []]


async def extract_link_texts(page, link_selector: str = "a") -> list[str]:
    return await page.eval_on_selector_all(link_selector, LINK_TEXTS_SCRIPT) or []
