from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404, render
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from accounts.decorators import admin_required, api_login_required
from core.pricing_engine import PricingValidationError, invoice_total
from opsdesk.api import form_errors, json_error, merged_form_data, parse_json
from opsdesk.mail import EmailDeliveryError
from .forms import (
    AmazonCalculationForm,
    AmazonPricingSessionForm,
    AmazonUrlForm,
    CategoryForm,
    EmailReportForm,
    ExchangeRateForm,
    InvoiceCalculationForm,
    PDFUploadForm,
    PricingEmailReportForm,
    PricingSessionForm,
    StatusForm,
)
from .models import AmazonPricingSession, Category, PricingSession
from .services import (
    calculate_amazon,
    calculate_invoice_items,
    extract_invoice_items,
    get_current_exchange_rate,
    lookup_amazon_product,
    record_exchange_rate,
    save_amazon_session,
    save_pricing_session,
    send_amazon_report,
    send_pricing_report,
    update_amazon_session,
    update_session_status,
)


@login_required
def index(request):
    """
    Pricing calculator page with invoice upload.

    GET: Display upload form
    POST: Extract line items from the uploaded invoice and list them
    """
    result = None
    filename = None

    if request.method == 'POST':
        form = PDFUploadForm(request.POST, request.FILES)

        if form.is_valid():
            uploaded_file = form.cleaned_data['pdf']
            filename = uploaded_file.name
            result = extract_invoice_items(uploaded_file)

            if result.success:
                messages.success(request, f'Extracted {len(result.items)} potential items.')
            else:
                messages.error(request, 'Failed to extract items from PDF.')
    else:
        form = PDFUploadForm()

    return render(request, 'pricing/calculator.html', {
        'form': form,
        'result': result,
        'filename': filename,
        'categories': Category.objects.all(),
        'exchange_rate': get_current_exchange_rate(),
    })


def _validation_response(error: PricingValidationError):
    return json_error("Invalid pricing data", errors=error.errors)


# Categories

@require_http_methods(["GET", "POST"])
@api_login_required
def category_list(request):
    if request.method == 'GET':
        return JsonResponse([c.to_dict() for c in Category.objects.all()], safe=False)

    if not request.user.is_administrator:
        return json_error("Administrator access required", status=403)
    form = CategoryForm(parse_json(request))
    if not form.is_valid():
        return json_error("Invalid category data", errors=form_errors(form))
    return JsonResponse(form.save().to_dict(), status=201)


@require_http_methods(["PUT", "PATCH", "DELETE"])
@admin_required
def category_detail(request, pk):
    category = get_object_or_404(Category, pk=pk)
    if request.method == 'DELETE':
        category.delete()
        return HttpResponse(status=204)

    form = CategoryForm(
        merged_form_data(category, CategoryForm, parse_json(request)), instance=category
    )
    if not form.is_valid():
        return json_error("Invalid category data", errors=form_errors(form))
    return JsonResponse(form.save().to_dict())


# Exchange rate

@require_http_methods(["GET", "POST"])
@api_login_required
def exchange_rate(request):
    if request.method == 'POST':
        if not request.user.is_administrator:
            return json_error("Administrator access required", status=403)
        payload = parse_json(request)
        form = ExchangeRateForm({'usd_to_jmd': payload.get('usdToJmd')})
        if not form.is_valid():
            return json_error("Invalid exchange rate", errors=form_errors(form))
        record_exchange_rate(form.cleaned_data['usd_to_jmd'], request.user)

    return JsonResponse({'usdToJmd': float(get_current_exchange_rate())})


# Invoice pricing

@require_POST
@api_login_required
def extract_pdf(request):
    """Extract candidate line items from an uploaded invoice PDF."""
    if 'pdf' not in request.FILES:
        return json_error("No PDF file uploaded")

    form = PDFUploadForm(request.POST, request.FILES)
    if not form.is_valid():
        return json_error(form_errors(form)['pdf'], errors=form_errors(form))

    result = extract_invoice_items(form.cleaned_data['pdf'])
    if not result.success:
        return json_error(result.error or "Failed to extract text from PDF", status=422)

    return JsonResponse({
        'text': result.text,
        'extractedItems': result.items,
        'totalPages': result.page_count,
    })


def _calculation_form(payload, form_class=InvoiceCalculationForm):
    data = {
        'exchange_rate': payload.get('exchangeRate', get_current_exchange_rate()),
        'rounding_option': payload.get('roundingOption', 1000),
        'recompute': payload.get('recompute', False),
    }
    if form_class is PricingSessionForm:
        data['invoice_number'] = payload.get('invoiceNumber') or ''
    return form_class(data)


@require_POST
@api_login_required
def calculate_invoice(request):
    """
    Price a batch of invoice line items.

    Items without a category keep their previous values; already priced
    items are only recalculated when "recompute" is true.
    """
    payload = parse_json(request)
    form = _calculation_form(payload)
    if not form.is_valid():
        return json_error("Invalid pricing data", errors=form_errors(form))

    try:
        items = calculate_invoice_items(
            payload.get('items', []),
            form.cleaned_data['exchange_rate'],
            form.cleaned_data['rounding_option'],
            recompute=form.cleaned_data['recompute'],
        )
    except PricingValidationError as e:
        return _validation_response(e)

    return JsonResponse({
        'items': [item.to_dict() for item in items],
        'totalValue': float(invoice_total(items)),
    })


@require_http_methods(["GET", "POST"])
@api_login_required
def pricing_session_list(request):
    if request.method == 'GET':
        sessions = PricingSession.objects.all()
        return JsonResponse([s.to_dict() for s in sessions], safe=False)

    payload = parse_json(request)
    form = _calculation_form(payload, PricingSessionForm)
    if not form.is_valid():
        return json_error("Invalid session data", errors=form_errors(form))
    try:
        session = save_pricing_session(
            request.user,
            payload.get('items', []),
            form.cleaned_data['exchange_rate'],
            form.cleaned_data['rounding_option'],
            form.cleaned_data['invoice_number'],
        )
    except PricingValidationError as e:
        return _validation_response(e)
    return JsonResponse(session.to_dict(), status=201)


@require_GET
@api_login_required
def pricing_session_detail(request, pk):
    session = get_object_or_404(PricingSession, pk=pk)
    return JsonResponse(session.to_dict())


def _set_status(request, session):
    form = StatusForm(parse_json(request))
    if not form.is_valid():
        return json_error("Invalid status", errors=form_errors(form))
    update_session_status(session, form.cleaned_data['status'])
    return JsonResponse(session.to_dict())


@require_http_methods(["PATCH", "POST"])
@admin_required
def pricing_session_status(request, pk):
    return _set_status(request, get_object_or_404(PricingSession, pk=pk))


@require_POST
@api_login_required
def send_email_report(request):
    payload = parse_json(request)
    form = PricingEmailReportForm({**payload, "session_id": payload.get("sessionId")})
    if not form.is_valid():
        return json_error("Invalid email data", errors=form_errors(form))

    data = form.cleaned_data
    session = get_object_or_404(PricingSession, pk=data["session_id"])
    try:
        send_pricing_report(session, data["to"], data["subject"], data["notes"])
    except EmailDeliveryError:
        return json_error("Failed to send email", status=502)
    return JsonResponse({'message': "Email sent successfully"})


# Amazon pricing

@require_POST
@api_login_required
def extract_amazon_price(request):
    payload = parse_json(request)
    form = AmazonUrlForm({'amazon_url': payload.get('amazonUrl')})
    if not form.is_valid():
        return json_error("Invalid Amazon URL", errors=form_errors(form))
    return JsonResponse(lookup_amazon_product(form.cleaned_data['amazon_url']))


@require_POST
@api_login_required
def calculate_amazon_view(request):
    """Derived Amazon prices; the tier default applies when no markup is given."""
    payload = parse_json(request)
    form = AmazonCalculationForm({
        'cost_usd': payload.get('costUsd'),
        'markup_percentage': payload.get('markupPercentage'),
        'exchange_rate': payload.get('exchangeRate'),
    })
    if not form.is_valid():
        return json_error("Invalid pricing data", errors=form_errors(form))

    try:
        result = calculate_amazon(
            form.cleaned_data['cost_usd'],
            form.cleaned_data['markup_percentage'],
            form.cleaned_data['exchange_rate'],
        )
    except PricingValidationError as e:
        return _validation_response(e)
    return JsonResponse(result.to_dict())


def _amazon_form(payload, session=None):
    data = {
        'amazon_url': payload.get('amazonUrl'),
        'product_name': payload.get('productName'),
        'cost_usd': payload.get('costUsd'),
        'markup_percentage': payload.get('markupPercentage'),
        'notes': payload.get('notes'),
    }
    if session is not None:
        current = merged_form_data(session, AmazonPricingSessionForm, {})
        data = {k: (v if v is not None else current[k]) for k, v in data.items()}
    data['notes'] = data['notes'] or ''
    return AmazonPricingSessionForm(data)


@require_http_methods(["GET", "POST"])
@api_login_required
def amazon_session_list(request):
    if request.method == 'GET':
        sessions = AmazonPricingSession.objects.all()
        return JsonResponse([s.to_dict() for s in sessions], safe=False)

    form = _amazon_form(parse_json(request))
    if not form.is_valid():
        return json_error("Invalid session data", errors=form_errors(form))
    try:
        session = save_amazon_session(request.user, form.cleaned_data)
    except PricingValidationError as e:
        return _validation_response(e)
    return JsonResponse(session.to_dict(), status=201)


@require_http_methods(["GET", "PUT"])
@api_login_required
def amazon_session_detail(request, pk):
    session = get_object_or_404(AmazonPricingSession, pk=pk)
    if request.method == 'GET':
        return JsonResponse(session.to_dict())

    form = _amazon_form(parse_json(request), session)
    if not form.is_valid():
        return json_error("Invalid session data", errors=form_errors(form))
    try:
        update_amazon_session(session, form.cleaned_data)
    except PricingValidationError as e:
        return _validation_response(e)
    return JsonResponse(session.to_dict())


@require_http_methods(["PATCH", "POST"])
@admin_required
def amazon_session_status(request, pk):
    return _set_status(request, get_object_or_404(AmazonPricingSession, pk=pk))


@require_POST
@api_login_required
def amazon_session_email(request, pk):
    session = get_object_or_404(AmazonPricingSession, pk=pk)
    form = EmailReportForm(parse_json(request))
    if not form.is_valid():
        return json_error("Invalid email data", errors=form_errors(form))
    try:
        send_amazon_report(session, **form.cleaned_data)
    except EmailDeliveryError:
        return json_error("Failed to send email", status=502)
    return JsonResponse({'message': "Email sent successfully"})
