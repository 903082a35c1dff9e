"""
Invoice line item extraction with Google Gemini.

Pure Python, no Django imports. The whole PDF goes to the model together
with a prompt asking for one Markdown table; the table is parsed into
the same item dicts the pypdf heuristic produces.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from google import genai
from google.genai import types

from .invoice_parser import get_page_count, parse_markdown_table, validate_pdf_bytes

logger = logging.getLogger(__name__)

# Overridden by the GEMINI_MODEL_NAME environment variable
DEFAULT_MODEL_NAME = "gemini-2.5-flash"

EXTRACTION_PROMPT = """
Look at ALL PAGES of this supplier invoice.

Extract every purchased line item into a single Markdown table.
- Columns: No., Item No., Description, Qty, Unit Price, Total.
- Unit Price is the cost of ONE unit in the invoice currency, digits only.
- Do NOT include shipper, consignee, freight, tax or subtotal rows.
- Start with the table header row and do NOT repeat it on later pages.
- If a column is not found, leave that cell empty.
"""

# finish reasons that still carry a complete answer
COMPLETE_FINISH_REASONS = {"STOP", "FINISH_REASON_UNSPECIFIED"}

FINISH_REASON_ERRORS = {
    "MAX_TOKENS": "Invoice table was truncated at the output token limit",
    "SAFETY": "Gemini withheld the answer (safety filter)",
    "RECITATION": "Gemini withheld the answer (recitation filter)",
    "OTHER": "Gemini stopped before finishing the table",
}


@dataclass
class ExtractionResult:
    success: bool
    text: Optional[str] = None
    items: list[dict] = field(default_factory=list)
    error: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    page_count: Optional[int] = None
    model_name: Optional[str] = None


def _token_usage(response) -> dict:
    usage = response.usage_metadata
    if not usage:
        return {}
    return {
        "prompt_tokens": usage.prompt_token_count,
        "completion_tokens": usage.candidates_token_count,
        "total_tokens": usage.total_token_count,
    }


def _finish_error(candidate) -> Optional[str]:
    reason = candidate.finish_reason
    if not reason or reason.name in COMPLETE_FINISH_REASONS:
        return None
    return FINISH_REASON_ERRORS.get(reason.name, f"Gemini stopped early ({reason.name})")


class GeminiInvoiceExtractor:
    """
    Turns an invoice PDF into line items with one generate_content call.

    Failures never raise out of extract_items; they come back as an
    unsuccessful ExtractionResult so the caller can show the message.
    """

    def __init__(self, api_key: str, model_name: str = None):
        if not api_key:
            raise ValueError("Gemini API key is required")
        self.api_key = api_key
        self.model_name = model_name or os.environ.get("GEMINI_MODEL_NAME", DEFAULT_MODEL_NAME)
        self.client = genai.Client(api_key=api_key)

    def _request_contents(self, pdf_bytes: bytes) -> list:
        return [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(data=pdf_bytes, mime_type="application/pdf"),
                    types.Part.from_text(text=EXTRACTION_PROMPT),
                ],
            )
        ]

    def extract_items(self, pdf_bytes: bytes, filename: str = "invoice.pdf") -> ExtractionResult:
        """
        Extract line items from raw PDF bytes.

        ``filename`` only appears in log messages.
        """
        is_valid, error_msg = validate_pdf_bytes(pdf_bytes)
        if not is_valid:
            return ExtractionResult(success=False, error=error_msg)

        try:
            page_count = get_page_count(pdf_bytes)
        except Exception as e:
            return ExtractionResult(success=False, error=f"Failed to read PDF: {e}")

        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=self._request_contents(pdf_bytes),
            )
        except Exception as e:
            logger.warning("Gemini extraction of %s failed: %s", filename, e)
            return ExtractionResult(
                success=False, error=f"Extraction failed: {type(e).__name__}: {e}"
            )

        result = self._to_result(response)
        result.page_count = page_count
        result.model_name = self.model_name
        if result.success:
            logger.info(
                "Gemini found %d items in %s (%d pages, %s tokens)",
                len(result.items), filename, page_count, result.total_tokens,
            )
        else:
            logger.warning("Gemini extraction of %s unsuccessful: %s", filename, result.error)
        return result

    def _to_result(self, response) -> ExtractionResult:
        if not response.candidates:
            return ExtractionResult(success=False, error="No response from Gemini API")

        error = _finish_error(response.candidates[0])
        if error:
            return ExtractionResult(success=False, error=error)

        text = response.text or ""
        if not text:
            return ExtractionResult(success=False, error="No text extracted from PDF")

        items = parse_markdown_table(text)
        if not items:
            return ExtractionResult(success=False, text=text, error="No line items found in invoice")

        return ExtractionResult(success=True, text=text, items=items, **_token_usage(response))
