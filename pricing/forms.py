"""
Forms for the pricing application.
"""
from decimal import Decimal

from django import forms

from core.amazon import is_amazon_url
from core.pricing_engine import ROUNDING_UNITS
from .models import AmazonPricingSession, Category, ExchangeRate


class PDFUploadForm(forms.Form):
    """Form for uploading supplier invoice PDFs."""

    pdf = forms.FileField(
        label="Invoice PDF",
        help_text="Maximum file size: 10MB. Only PDF files are accepted.",
        widget=forms.FileInput(attrs={
            'accept': 'application/pdf,.pdf',
            'class': 'form-control',
        })
    )

    # Maximum file size: 10MB
    MAX_FILE_SIZE = 10 * 1024 * 1024

    def clean_pdf(self):
        """Validate uploaded file is a PDF and within size limits."""
        pdf_file = self.cleaned_data.get('pdf')

        if pdf_file:
            if pdf_file.size > self.MAX_FILE_SIZE:
                raise forms.ValidationError(
                    f"File size exceeds 10MB limit. Your file is {pdf_file.size / (1024*1024):.1f}MB."
                )

            if pdf_file.content_type != 'application/pdf':
                raise forms.ValidationError("File must be a PDF.")

            if not pdf_file.name.lower().endswith('.pdf'):
                raise forms.ValidationError("Invalid file extension. Please upload a .pdf file.")

            pdf_file.seek(0)
            header = pdf_file.read(5)
            pdf_file.seek(0)
            if header != b'%PDF-':
                raise forms.ValidationError(
                    "Invalid PDF file. The file does not appear to be a valid PDF."
                )

        return pdf_file


class CategoryForm(forms.ModelForm):
    class Meta:
        model = Category
        fields = ["name", "markup_percentage"]


class ExchangeRateForm(forms.ModelForm):
    class Meta:
        model = ExchangeRate
        fields = ["usd_to_jmd"]


class InvoiceCalculationForm(forms.Form):
    """Batch-level settings of an invoice calculation; items are checked by the engine."""

    # sized to the session column; range checks live in core.pricing_engine
    exchange_rate = forms.DecimalField(max_digits=10, decimal_places=4)
    rounding_option = forms.TypedChoiceField(
        choices=[(unit, unit) for unit in ROUNDING_UNITS], coerce=int, initial=1000
    )
    recompute = forms.BooleanField(required=False)


class PricingSessionForm(InvoiceCalculationForm):
    invoice_number = forms.CharField(max_length=100, required=False)


class StatusForm(forms.Form):
    status = forms.ChoiceField(choices=[
        ("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected"),
    ])


class AmazonUrlForm(forms.Form):
    amazon_url = forms.URLField(max_length=1000)

    def clean_amazon_url(self):
        url = self.cleaned_data["amazon_url"]
        if not is_amazon_url(url):
            raise forms.ValidationError("Please provide a valid Amazon.com URL.")
        return url


class AmazonCalculationForm(forms.Form):
    cost_usd = forms.DecimalField(min_value=Decimal("0.01"), max_digits=10, decimal_places=2)
    markup_percentage = forms.DecimalField(
        min_value=Decimal("0"), max_value=Decimal("500"), max_digits=5, decimal_places=2,
        required=False,
    )
    exchange_rate = forms.DecimalField(
        min_value=Decimal("0.0001"), max_digits=10, decimal_places=4, required=False
    )


class AmazonPricingSessionForm(forms.ModelForm):
    """User-entered fields; derived prices are filled in by the service."""

    markup_percentage = forms.DecimalField(
        min_value=Decimal("0"), max_value=Decimal("500"), max_digits=5, decimal_places=2,
        required=False,
    )
    cost_usd = forms.DecimalField(min_value=Decimal("0.01"), max_digits=10, decimal_places=2)

    class Meta:
        model = AmazonPricingSession
        fields = ["amazon_url", "product_name", "cost_usd", "markup_percentage", "notes"]


class EmailReportForm(forms.Form):
    to = forms.EmailField()
    subject = forms.CharField(max_length=200)
    notes = forms.CharField(required=False)


class PricingEmailReportForm(EmailReportForm):
    session_id = forms.IntegerField()
