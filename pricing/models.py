from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Category(models.Model):
    """Product category and the markup applied to its invoice items."""

    name = models.CharField(max_length=100, unique=True)
    markup_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("500"))],
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "category"
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self):
        return f"{self.name} ({self.markup_percentage}%)"

    def to_dict(self):
        return {
            "id": self.pk,
            "name": self.name,
            "markupPercentage": str(self.markup_percentage),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class ExchangeRate(models.Model):
    """USD to JMD rate history; the newest record is the current rate."""

    usd_to_jmd = models.DecimalField(
        max_digits=10,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0.0001"))],
    )
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "exchange_rate"
        ordering = ["-created_at", "-id"]
        get_latest_by = ["created_at", "id"]

    def __str__(self):
        return f"{self.usd_to_jmd} JMD/USD"


class SessionStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class PricingSession(models.Model):
    """A saved invoice pricing calculation; items are stored as calculated."""

    ROUNDING_CHOICES = [
        (100, "Nearest $100"),
        (1000, "Nearest $1,000"),
        (10000, "Nearest $10,000"),
    ]

    invoice_number = models.CharField(max_length=100, blank=True)
    exchange_rate = models.DecimalField(max_digits=10, decimal_places=4)
    rounding_option = models.IntegerField(choices=ROUNDING_CHOICES, default=1000)
    items = models.JSONField(default=list)
    total_value = models.DecimalField(max_digits=15, decimal_places=2)
    status = models.CharField(
        max_length=20, choices=SessionStatus.choices, default=SessionStatus.PENDING
    )
    email_sent = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="pricing_sessions",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "pricing_session"
        ordering = ["-created_at"]

    def __str__(self):
        return self.invoice_number or f"Pricing session {self.pk}"

    def to_dict(self):
        return {
            "id": self.pk,
            "invoiceNumber": self.invoice_number,
            "exchangeRate": str(self.exchange_rate),
            "roundingOption": self.rounding_option,
            "items": self.items,
            "totalValue": str(self.total_value),
            "status": self.status,
            "emailSent": self.email_sent.isoformat() if self.email_sent else None,
            "createdBy": self.created_by_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class AmazonPricingSession(models.Model):
    """A saved Amazon product pricing calculation."""

    amazon_url = models.URLField(max_length=1000)
    product_name = models.CharField(max_length=255)
    cost_usd = models.DecimalField(max_digits=10, decimal_places=2)
    amazon_price = models.DecimalField(max_digits=10, decimal_places=2)
    markup_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    selling_price_usd = models.DecimalField(max_digits=10, decimal_places=2)
    selling_price_jmd = models.DecimalField(max_digits=15, decimal_places=2)
    exchange_rate = models.DecimalField(max_digits=10, decimal_places=4)
    notes = models.TextField(blank=True)
    status = models.CharField(
        max_length=20, choices=SessionStatus.choices, default=SessionStatus.PENDING
    )
    email_sent = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="amazon_pricing_sessions",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "amazon_pricing_session"
        ordering = ["-created_at"]

    def __str__(self):
        return self.product_name

    def to_dict(self):
        return {
            "id": self.pk,
            "amazonUrl": self.amazon_url,
            "productName": self.product_name,
            "costUsd": str(self.cost_usd),
            "amazonPrice": str(self.amazon_price),
            "markupPercentage": str(self.markup_percentage),
            "sellingPriceUsd": str(self.selling_price_usd),
            "sellingPriceJmd": str(self.selling_price_jmd),
            "exchangeRate": str(self.exchange_rate),
            "notes": self.notes,
            "status": self.status,
            "emailSent": self.email_sent.isoformat() if self.email_sent else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
