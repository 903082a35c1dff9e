"""
Amazon product URL helpers.

Pure Python - NO Django imports.
"""
import re
from typing import Optional
from urllib.parse import urlparse

ASIN_PATTERNS = (
    re.compile(r"/dp/([A-Z0-9]{10})"),
    re.compile(r"/gp/product/([A-Z0-9]{10})"),
    re.compile(r"/exec/obidos/ASIN/([A-Z0-9]{10})"),
    re.compile(r"/product/([A-Z0-9]{10})"),
    re.compile(r"asin=([A-Z0-9]{10})", re.IGNORECASE),
)


def is_amazon_url(url: str) -> bool:
    """True for http(s) URLs on amazon.com or one of its subdomains."""
    parsed = urlparse(url or "")
    host = (parsed.hostname or "").lower()
    return parsed.scheme in ("http", "https") and (
        host == "amazon.com" or host.endswith(".amazon.com")
    )


def extract_asin(url: str) -> Optional[str]:
    """Return the 10-character ASIN embedded in an Amazon URL, if any."""
    for pattern in ASIN_PATTERNS:
        match = pattern.search(url or "")
        if match:
            return match.group(1).upper()
    return None
