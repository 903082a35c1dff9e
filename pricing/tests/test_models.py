"""
Tests for pricing models.
"""
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.test import TestCase

from accounts.models import CustomUser
from pricing.models import AmazonPricingSession, Category, PricingSession


class CategoryModelTests(TestCase):

    def test_to_dict(self):
        category = Category.objects.create(name="Laptops", markup_percentage=Decimal("25.00"))
        data = category.to_dict()
        self.assertEqual(data["name"], "Laptops")
        self.assertEqual(data["markupPercentage"], "25.00")
        self.assertIsNotNone(data["createdAt"])

    def test_name_unique(self):
        Category.objects.create(name="Ink", markup_percentage=Decimal("45"))
        with self.assertRaises(IntegrityError):
            Category.objects.create(name="Ink", markup_percentage=Decimal("50"))

    def test_markup_validators(self):
        category = Category(name="UPS", markup_percentage=Decimal("501"))
        with self.assertRaises(ValidationError):
            category.full_clean()

    def test_ordered_by_name(self):
        Category.objects.create(name="Routers", markup_percentage=Decimal("50"))
        Category.objects.create(name="Adaptors", markup_percentage=Decimal("65"))
        self.assertEqual([c.name for c in Category.objects.all()], ["Adaptors", "Routers"])


class PricingSessionModelTests(TestCase):

    def setUp(self):
        self.user = CustomUser.objects.create_user(
            username="testuser", email="test@fenntechltd.com", password="testpass123"
        )

    def test_defaults(self):
        session = PricingSession.objects.create(
            exchange_rate=Decimal("162.00"),
            items=[],
            total_value=Decimal("0"),
            created_by=self.user,
        )
        self.assertEqual(session.status, "pending")
        self.assertEqual(session.rounding_option, 1000)
        self.assertIsNone(session.email_sent)
        self.assertEqual(str(session), f"Pricing session {session.pk}")

    def test_to_dict(self):
        session = PricingSession.objects.create(
            invoice_number="INV-001",
            exchange_rate=Decimal("162.00"),
            items=[{"id": "item-0", "finalPrice": 3000.0}],
            total_value=Decimal("3000.00"),
            created_by=self.user,
        )
        session.refresh_from_db()
        data = session.to_dict()
        self.assertEqual(data["invoiceNumber"], "INV-001")
        self.assertEqual(data["exchangeRate"], "162.0000")
        self.assertEqual(data["totalValue"], "3000.00")
        self.assertEqual(data["items"][0]["finalPrice"], 3000.0)
        self.assertEqual(data["createdBy"], self.user.pk)
        self.assertIsNone(data["emailSent"])

    def test_creator_deletion_keeps_session(self):
        session = PricingSession.objects.create(
            exchange_rate=Decimal("162"), total_value=Decimal("0"), created_by=self.user
        )
        self.user.delete()
        session.refresh_from_db()
        self.assertIsNone(session.created_by)


class AmazonPricingSessionModelTests(TestCase):

    def test_to_dict(self):
        session = AmazonPricingSession.objects.create(
            amazon_url="https://www.amazon.com/dp/B08N5WRWNW",
            product_name="Echo Dot",
            cost_usd=Decimal("50.00"),
            amazon_price=Decimal("53.50"),
            markup_percentage=Decimal("80.00"),
            selling_price_usd=Decimal("96.30"),
            selling_price_jmd=Decimal("15600.60"),
            exchange_rate=Decimal("162.0000"),
        )
        data = session.to_dict()
        self.assertEqual(data["productName"], "Echo Dot")
        self.assertEqual(data["sellingPriceJmd"], "15600.60")
        self.assertEqual(data["status"], "pending")
        self.assertEqual(str(session), "Echo Dot")
