"""
Pricing Engine

Pure Python pricing formulas, framework-agnostic.
This module should have NO Django imports.

Two modes are supported:

* Invoice mode converts a supplier cost into a local shelf price:
  exchange rate, 15% GCT, category markup, then rounded up to a
  denomination (100, 1,000 or 10,000).
* Amazon mode adds the 7% marketplace surcharge in USD, applies a
  tiered markup and converts to local currency without rounding.
"""
from dataclasses import dataclass, replace
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Iterable, Optional

GCT_RATE = Decimal("0.15")
AMAZON_SURCHARGE_RATE = Decimal("0.07")
ROUNDING_UNITS = (100, 1000, 10000)
DEFAULT_ROUNDING_UNIT = 1000
MAX_MARKUP_PERCENT = Decimal("500")

AMAZON_TIER_THRESHOLD = Decimal("100")
AMAZON_LOW_TIER_MARKUP = Decimal("80")
AMAZON_HIGH_TIER_MARKUP = Decimal("120")

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class PricingValidationError(ValueError):
    """Raised when pricing inputs are rejected before any arithmetic runs."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{field}: {msg}" for field, msg in errors.items()))


def to_decimal(value, field: str = "value") -> Decimal:
    """Coerce a number or numeric string into a finite Decimal."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() keeps floats like 0.1 from dragging binary noise along
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            raise PricingValidationError({field: "Must be a number."})
    if not result.is_finite():
        raise PricingValidationError({field: "Must be a finite number."})
    return result


@dataclass(frozen=True)
class PricingLineItem:
    """An invoice line item and its derived local-currency prices."""

    id: str
    description: str = ""
    cost: Decimal = ZERO
    category_id: str = ""
    category_name: str = ""
    markup_percent: Decimal = ZERO
    local_cost: Decimal = ZERO
    selling_price: Decimal = ZERO
    final_price: Decimal = ZERO

    @property
    def has_category(self) -> bool:
        return bool(self.category_id)

    @property
    def is_priced(self) -> bool:
        return self.final_price > ZERO

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "PricingLineItem":
        """Build an item from its JSON (camelCase) representation."""
        return cls(
            id=str(data.get("id") or f"item-{index}"),
            description=str(data.get("description") or ""),
            cost=to_decimal(data.get("costUsd", data.get("cost", 0)) or 0, "costUsd"),
            category_id=str(data.get("categoryId") or ""),
            category_name=str(data.get("categoryName") or ""),
            markup_percent=to_decimal(data.get("markupPercentage", 0) or 0, "markupPercentage"),
            local_cost=to_decimal(data.get("costJmd", 0) or 0, "costJmd"),
            selling_price=to_decimal(data.get("sellingPrice", 0) or 0, "sellingPrice"),
            final_price=to_decimal(data.get("finalPrice", 0) or 0, "finalPrice"),
        )

    def to_dict(self) -> dict:
        """JSON-ready representation; decimals become floats."""
        return {
            "id": self.id,
            "description": self.description,
            "costUsd": float(self.cost),
            "categoryId": self.category_id,
            "categoryName": self.category_name,
            "markupPercentage": float(self.markup_percent),
            "costJmd": float(self.local_cost),
            "sellingPrice": float(self.selling_price),
            "finalPrice": float(self.final_price),
        }


@dataclass(frozen=True)
class AmazonLineItem:
    """Result of an Amazon-mode calculation."""

    cost_usd: Decimal
    markup_percent: Decimal
    exchange_rate: Decimal
    amazon_price: Decimal
    selling_price_usd: Decimal
    selling_price_jmd: Decimal

    def to_dict(self) -> dict:
        return {
            "costUsd": float(self.cost_usd),
            "markupPercentage": float(self.markup_percent),
            "exchangeRate": float(self.exchange_rate),
            "amazonPrice": float(self.amazon_price),
            "sellingPriceUsd": float(self.selling_price_usd),
            "sellingPriceJmd": float(self.selling_price_jmd),
        }


def validate_exchange_rate(exchange_rate) -> Decimal:
    rate = to_decimal(exchange_rate, "exchangeRate")
    if rate <= ZERO:
        raise PricingValidationError({"exchangeRate": "Exchange rate must be greater than 0."})
    return rate


def validate_markup(markup_percent, field: str = "markupPercentage") -> Decimal:
    markup = to_decimal(markup_percent, field)
    if markup < ZERO or markup > MAX_MARKUP_PERCENT:
        raise PricingValidationError({field: "Markup must be between 0% and 500%."})
    return markup


def validate_rounding_unit(rounding_unit) -> int:
    try:
        unit = int(rounding_unit)
    except (TypeError, ValueError):
        unit = None
    if unit not in ROUNDING_UNITS:
        raise PricingValidationError(
            {"roundingOption": "Rounding must be one of 100, 1000 or 10000."}
        )
    return unit


def round_up(value: Decimal, unit: int) -> Decimal:
    """Ceiling of ``value`` to the next multiple of ``unit``."""
    step = Decimal(unit)
    return (value / step).to_integral_value(rounding=ROUND_CEILING) * step


def calculate_invoice_price(cost, exchange_rate, markup_percent, rounding_unit):
    """
    Price one invoice line.

    Args:
        cost: Supplier cost in source currency (>= 0)
        exchange_rate: Source-to-local rate (> 0)
        markup_percent: Category markup, 0 to 500
        rounding_unit: 100, 1000 or 10000

    Returns:
        Tuple of (local_cost, selling_price, final_price)

    Raises:
        PricingValidationError: If any input is out of range
    """
    rate = validate_exchange_rate(exchange_rate)
    unit = validate_rounding_unit(rounding_unit)
    markup = validate_markup(markup_percent)
    cost = to_decimal(cost, "costUsd")
    if cost < ZERO:
        raise PricingValidationError({"costUsd": "Cost cannot be negative."})

    local_cost = cost * rate * (1 + GCT_RATE)
    selling_price = local_cost * (1 + markup / HUNDRED)
    return local_cost, selling_price, round_up(selling_price, unit)


def _validate_items(items: Iterable[PricingLineItem]) -> None:
    errors = {}
    for index, item in enumerate(items):
        if item.cost < ZERO:
            errors[f"items[{index}].costUsd"] = "Cost cannot be negative."
        if item.markup_percent < ZERO or item.markup_percent > MAX_MARKUP_PERCENT:
            errors[f"items[{index}].markupPercentage"] = "Markup must be between 0% and 500%."
    if errors:
        raise PricingValidationError(errors)


def apply_invoice_pricing(
    items: Iterable[PricingLineItem],
    exchange_rate,
    rounding_unit=DEFAULT_ROUNDING_UNIT,
    recompute: bool = False,
) -> list[PricingLineItem]:
    """
    Price a batch of invoice lines.

    Items without a category id are returned untouched, as are items that
    already carry a final price unless ``recompute`` is set. The whole
    batch is validated before anything is priced, so a rejected batch
    leaves every item as it was.
    """
    items = list(items)
    rate = validate_exchange_rate(exchange_rate)
    unit = validate_rounding_unit(rounding_unit)
    _validate_items(items)

    priced = []
    for item in items:
        if not item.has_category or (item.is_priced and not recompute):
            priced.append(item)
            continue
        local_cost, selling_price, final_price = calculate_invoice_price(
            item.cost, rate, item.markup_percent, unit
        )
        priced.append(
            replace(
                item,
                local_cost=local_cost,
                selling_price=selling_price,
                final_price=final_price,
            )
        )
    return priced


def invoice_total(items: Iterable[PricingLineItem]) -> Decimal:
    return sum((item.final_price for item in items), ZERO)


def default_amazon_markup(cost_usd) -> Decimal:
    """Suggested markup: 120% above $100, otherwise 80%."""
    cost = to_decimal(cost_usd, "costUsd")
    if cost > AMAZON_TIER_THRESHOLD:
        return AMAZON_HIGH_TIER_MARKUP
    return AMAZON_LOW_TIER_MARKUP


def calculate_amazon_price(
    cost_usd, exchange_rate, markup_percent: Optional[Decimal] = None
) -> AmazonLineItem:
    """
    Price an Amazon product in USD and local currency.

    When ``markup_percent`` is None the tier default is used; an explicit
    value is honoured as given.
    """
    rate = validate_exchange_rate(exchange_rate)
    cost = to_decimal(cost_usd, "costUsd")
    if cost <= ZERO:
        raise PricingValidationError({"costUsd": "Cost must be greater than 0."})
    if markup_percent is None:
        markup = default_amazon_markup(cost)
    else:
        markup = validate_markup(markup_percent)

    amazon_price = cost * (1 + AMAZON_SURCHARGE_RATE)
    selling_price_usd = amazon_price * (1 + markup / HUNDRED)
    return AmazonLineItem(
        cost_usd=cost,
        markup_percent=markup,
        exchange_rate=rate,
        amazon_price=amazon_price,
        selling_price_usd=selling_price_usd,
        selling_price_jmd=selling_price_usd * rate,
    )
