"""
Invoice PDF Parsing

Pure Python implementation - NO Django imports.
Turns supplier invoice PDFs into priceable line items, either from the
raw text layer (pypdf) or from the Markdown table the Gemini extractor
returns.
"""

import io
import re
from dataclasses import dataclass, field
from typing import Optional

from pypdf import PdfReader

MAX_HEURISTIC_ITEMS = 20
MIN_DESCRIPTION_LENGTH = 10

PRICE_PATTERN = re.compile(r"\$?(\d+\.?\d*)")
MONEY_PATTERN = re.compile(r"-?\d[\d,]*\.?\d*")

# Markdown header names that can hold the unit cost, most specific first
COST_HEADERS = ("unit price", "unit cost", "price", "cost", "total")
DESCRIPTION_HEADERS = ("description", "item", "product")


@dataclass
class ParsedInvoice:
    """Text and candidate line items pulled from an invoice."""

    text: str
    items: list[dict] = field(default_factory=list)
    page_count: int = 0


def validate_pdf_bytes(pdf_bytes: bytes) -> tuple[bool, str]:
    """
    Validate that bytes represent a valid PDF file.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not pdf_bytes:
        return False, "File is empty"

    if not pdf_bytes.startswith(b"%PDF-"):
        return False, "File is not a valid PDF"

    return True, ""


def get_page_count(pdf_bytes: bytes) -> int:
    reader = PdfReader(io.BytesIO(pdf_bytes))
    return len(reader.pages)


def read_pdf_text(pdf_bytes: bytes) -> tuple[str, int]:
    """
    Extract the text layer of a PDF.

    Returns:
        Tuple of (text, page_count)

    Raises:
        ValueError: If the bytes cannot be read as a PDF
    """
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as e:
        raise ValueError(f"Failed to read PDF: {e}") from e
    return "\n".join(pages), len(pages)


def blank_item(index: int, description: str, cost: float) -> dict:
    """An unpriced line item in the shape the calculator expects."""
    return {
        "id": f"item-{index}",
        "description": description or f"Extracted Item {index + 1}",
        "costUsd": cost,
        "categoryId": "",
        "categoryName": "",
        "markupPercentage": 0,
        "costJmd": 0,
        "sellingPrice": 0,
        "finalPrice": 0,
    }


def parse_text_lines(text: str, limit: int = MAX_HEURISTIC_ITEMS) -> list[dict]:
    """
    Guess line items from raw invoice text.

    A line is kept when it is longer than MIN_DESCRIPTION_LENGTH
    characters and contains a number; the first number is taken as the
    cost and the remaining text, numbers stripped, as the description.
    """
    lines = [line for line in text.split("\n") if line.strip()]
    candidates = [
        line for line in lines
        if PRICE_PATTERN.search(line) and len(line) > MIN_DESCRIPTION_LENGTH
    ]

    items = []
    for index, line in enumerate(candidates[:limit]):
        match = PRICE_PATTERN.search(line)
        cost = float(match.group(1)) if match else 0.0
        description = PRICE_PATTERN.sub("", line).strip()
        items.append(blank_item(index, description, cost))
    return items


def parse_money(value: str) -> Optional[float]:
    """Parse '1,234.50' or '$12' style cells; None when no number is present."""
    match = MONEY_PATTERN.search(value or "")
    if not match:
        return None
    try:
        return float(match.group(0).replace(",", ""))
    except ValueError:
        return None


def _split_row(line: str) -> list[str]:
    return [cell.strip() for cell in line.strip().strip("|").split("|")]


def _is_separator(cells: list[str]) -> bool:
    return all(re.fullmatch(r":?-{2,}:?", cell or "--") for cell in cells)


def _find_column(headers: list[str], names: tuple[str, ...]) -> Optional[int]:
    lowered = [h.lower() for h in headers]
    for name in names:
        for index, header in enumerate(lowered):
            if header == name or header.startswith(name):
                return index
    return None


def parse_markdown_table(markdown: str) -> list[dict]:
    """
    Convert Markdown invoice tables into line items.

    The first header row found defines the columns; later header rows
    (repeated per page) and separator rows are skipped. Rows whose cost
    cell holds no positive number (discounts, freight) are dropped.
    """
    headers = None
    desc_col = cost_col = None
    items = []

    for line in markdown.splitlines():
        if not line.strip().startswith("|"):
            continue
        cells = _split_row(line)
        if _is_separator(cells):
            continue
        if headers is None:
            headers = cells
            desc_col = _find_column(headers, DESCRIPTION_HEADERS)
            cost_col = _find_column(headers, COST_HEADERS)
            continue
        if cells == headers:
            continue
        if cost_col is None or cost_col >= len(cells):
            continue

        cost = parse_money(cells[cost_col])
        if cost is None or cost <= 0:
            continue
        description = cells[desc_col] if desc_col is not None and desc_col < len(cells) else ""
        items.append(blank_item(len(items), description, cost))

    return items


def parse_invoice_pdf(pdf_bytes: bytes) -> ParsedInvoice:
    """Read a PDF's text layer and guess its line items."""
    text, page_count = read_pdf_text(pdf_bytes)
    return ParsedInvoice(text=text, items=parse_text_lines(text), page_count=page_count)
