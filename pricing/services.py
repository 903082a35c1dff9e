"""
Pricing Service Layer

Business logic for pricing operations, separated from views
for better testability. The arithmetic itself lives in
core.pricing_engine; this module binds it to the database,
uploaded files and email.
"""
import logging
from dataclasses import replace
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.amazon import extract_asin
from core.gemini_client import ExtractionResult, GeminiInvoiceExtractor
from core.invoice_parser import parse_invoice_pdf, validate_pdf_bytes
from core.pricing_engine import (
    GCT_RATE,
    PricingLineItem,
    ZERO,
    PricingValidationError,
    apply_invoice_pricing,
    calculate_amazon_price,
    default_amazon_markup,
    invoice_total,
)
from opsdesk.mail import send_html_mail
from .models import AmazonPricingSession, Category, ExchangeRate, PricingSession

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _fit_column(model, field_name: str, value: Decimal, error_field: str) -> Decimal:
    """
    Round ``value`` to cents, rejecting it when it would overflow the column.

    Raises:
        PricingValidationError: If the value has too many integer digits
    """
    column = model._meta.get_field(field_name)
    if abs(value) >= Decimal(10) ** (column.max_digits - column.decimal_places):
        raise PricingValidationError({error_field: "Price is too large to store."})
    return value.quantize(CENTS)


DEFAULT_CATEGORIES = [
    ("Accessories", "100.00"),
    ("Ink", "45.00"),
    ("Sub Woofers", "35.00"),
    ("Speakers", "45.00"),
    ("Headphones", "65.00"),
    ("UPS", "50.00"),
    ("Laptop Bags", "50.00"),
    ("Laptops", "25.00"),
    ("Desktops", "25.00"),
    ("Adaptors", "65.00"),
    ("Routers", "50.00"),
]


def seed_default_categories() -> int:
    """Create the default category list when no categories exist. Returns the count created."""
    if Category.objects.exists():
        return 0
    Category.objects.bulk_create(
        Category(name=name, markup_percentage=Decimal(markup))
        for name, markup in DEFAULT_CATEGORIES
    )
    logger.info("Seeded %d default categories", len(DEFAULT_CATEGORIES))
    return len(DEFAULT_CATEGORIES)


def get_current_exchange_rate() -> Decimal:
    """Newest recorded USD to JMD rate, or DEFAULT_EXCHANGE_RATE when none is recorded."""
    rate = ExchangeRate.objects.order_by("-created_at", "-id").first()
    if rate is None:
        return Decimal(settings.DEFAULT_EXCHANGE_RATE)
    return rate.usd_to_jmd


def record_exchange_rate(usd_to_jmd: Decimal, user=None) -> ExchangeRate:
    rate = ExchangeRate.objects.create(usd_to_jmd=usd_to_jmd, recorded_by=user)
    logger.info("Exchange rate set to %s by %s", usd_to_jmd, getattr(user, "email", None))
    return rate


def extract_invoice_items(uploaded_file) -> ExtractionResult:
    """
    Pull candidate line items out of an uploaded invoice PDF.

    Uses Gemini when GEMINI_API_KEY is configured, otherwise the PDF's
    own text layer and a line heuristic. Never raises; failures are
    reported through the result.

    Args:
        uploaded_file: Django UploadedFile object

    Returns:
        ExtractionResult with items, raw text and page count, or error
    """
    pdf_bytes = uploaded_file.read()
    is_valid, error_msg = validate_pdf_bytes(pdf_bytes)
    if not is_valid:
        return ExtractionResult(success=False, error=error_msg)

    api_key = settings.GEMINI_API_KEY
    if api_key:
        extractor = GeminiInvoiceExtractor(api_key, settings.GEMINI_MODEL_NAME)
        return extractor.extract_items(pdf_bytes, uploaded_file.name)

    try:
        parsed = parse_invoice_pdf(pdf_bytes)
    except ValueError as e:
        logger.warning("Could not read %s: %s", uploaded_file.name, e)
        return ExtractionResult(success=False, error=str(e))

    logger.info("Parsed %d candidate items from %s", len(parsed.items), uploaded_file.name)
    return ExtractionResult(
        success=True,
        text=parsed.text,
        items=parsed.items,
        page_count=parsed.page_count,
    )


def parse_line_items(raw_items) -> list[PricingLineItem]:
    """
    Decode JSON line items and attach category name and markup from the
    category table.

    Raises:
        PricingValidationError: For malformed items or unknown categories
    """
    if not isinstance(raw_items, list):
        raise PricingValidationError({"items": "Items must be a list."})

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise PricingValidationError({f"items[{index}]": "Each item must be an object."})
        # markup always comes from the category table
        raw = {key: value for key, value in raw.items() if key != "markupPercentage"}
        items.append(PricingLineItem.from_dict(raw, index))

    category_ids = {item.category_id for item in items if item.category_id}
    categories = {
        str(c.pk): c
        for c in Category.objects.filter(pk__in=[c for c in category_ids if c.isdigit()])
    }
    unknown = category_ids - categories.keys()
    if unknown:
        raise PricingValidationError(
            {"categoryId": f"Unknown category: {', '.join(sorted(unknown))}."}
        )

    resolved = []
    for item in items:
        category = categories.get(item.category_id)
        if category is not None:
            item = replace(
                item,
                category_name=category.name,
                markup_percent=category.markup_percentage,
            )
        resolved.append(item)
    return resolved


def calculate_invoice_items(raw_items, exchange_rate, rounding_option, recompute=False):
    """Price JSON line items; returns the priced PricingLineItem list."""
    items = parse_line_items(raw_items)
    return apply_invoice_pricing(items, exchange_rate, rounding_option, recompute=recompute)


@transaction.atomic
def save_pricing_session(
    user,
    raw_items,
    exchange_rate: Decimal,
    rounding_option: int,
    invoice_number: str = "",
) -> PricingSession:
    """
    Reprice every categorized item at the session's rate and rounding, then
    persist the batch. Prices sent with uncategorized items are discarded.

    Raises:
        PricingValidationError: If no item has both a category and a positive cost
    """
    items = [
        item if item.has_category
        else replace(item, local_cost=ZERO, selling_price=ZERO, final_price=ZERO)
        for item in parse_line_items(raw_items)
    ]
    items = apply_invoice_pricing(items, exchange_rate, rounding_option, recompute=True)
    if not items:
        raise PricingValidationError({"items": "Please add items before saving."})
    if not any(item.has_category and item.cost > 0 for item in items):
        raise PricingValidationError(
            {"items": "Please ensure items have valid categories and costs."}
        )

    session = PricingSession.objects.create(
        invoice_number=invoice_number or "",
        exchange_rate=exchange_rate,
        rounding_option=rounding_option,
        items=[item.to_dict() for item in items],
        total_value=_fit_column(PricingSession, "total_value", invoice_total(items), "items"),
        created_by=user,
    )
    logger.info("Saved pricing session %s with %d items", session.pk, len(items))
    return session


def update_session_status(session, status: str):
    session.status = status
    session.save(update_fields=["status"])
    logger.info("%s %s marked %s", type(session).__name__, session.pk, status)
    return session


def lookup_amazon_product(amazon_url: str) -> dict:
    """
    Prepare an Amazon URL for manual pricing.

    The product API is not called; the ASIN is read from the URL and
    the cost is left for the user to enter.
    """
    asin = extract_asin(amazon_url)
    return {
        "amazonUrl": amazon_url,
        "asin": asin,
        "productName": "",
        "costUsd": 0,
        "suggestedMarkup": float(default_amazon_markup(0)),
        "extractedSuccessfully": False,
    }


def calculate_amazon(cost_usd, markup_percentage=None, exchange_rate=None):
    """Amazon-mode prices using the current exchange rate unless one is given."""
    if exchange_rate is None:
        exchange_rate = get_current_exchange_rate()
    return calculate_amazon_price(cost_usd, exchange_rate, markup_percentage)


def _apply_amazon_prices(session, cleaned_data, exchange_rate):
    result = calculate_amazon(
        cleaned_data["cost_usd"], cleaned_data.get("markup_percentage"), exchange_rate
    )
    session.amazon_url = cleaned_data["amazon_url"]
    session.product_name = cleaned_data["product_name"]
    session.notes = cleaned_data.get("notes") or ""
    session.cost_usd = result.cost_usd
    session.markup_percentage = result.markup_percent
    session.exchange_rate = result.exchange_rate
    for name in ("amazon_price", "selling_price_usd", "selling_price_jmd"):
        setattr(
            session,
            name,
            _fit_column(AmazonPricingSession, name, getattr(result, name), "costUsd"),
        )
    return session


def save_amazon_session(user, cleaned_data) -> AmazonPricingSession:
    """Persist an Amazon calculation; an explicit markup is kept as entered."""
    session = _apply_amazon_prices(
        AmazonPricingSession(created_by=user), cleaned_data, get_current_exchange_rate()
    )
    session.save()
    logger.info("Saved Amazon pricing session %s (%s)", session.pk, session.product_name)
    return session


def update_amazon_session(session, cleaned_data) -> AmazonPricingSession:
    """Recalculate an existing session with its original exchange rate."""
    _apply_amazon_prices(session, cleaned_data, session.exchange_rate)
    session.save()
    return session


def send_pricing_report(session: PricingSession, to: str, subject: str, notes: str = ""):
    """Email the pricing report and stamp the session's email_sent time."""
    send_html_mail(
        subject,
        "pricing/email/pricing_report.html",
        {
            "session": session,
            "items": session.items,
            "notes": notes,
            "gct_percent": int(GCT_RATE * 100),
            "generated_at": timezone.now(),
        },
        to,
    )
    session.email_sent = timezone.now()
    session.save(update_fields=["email_sent"])


def send_amazon_report(session: AmazonPricingSession, to: str, subject: str, notes: str = ""):
    send_html_mail(
        subject,
        "pricing/email/amazon_report.html",
        {"session": session, "notes": notes, "generated_at": timezone.now()},
        to,
    )
    session.email_sent = timezone.now()
    session.save(update_fields=["email_sent"])
