from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from accounts.decorators import admin_required, api_login_required
from opsdesk.api import form_errors, json_error, merged_form_data, parse_json
from opsdesk.mail import EmailDeliveryError
from .forms import WorkOrderEmailForm
from .models import ChangeLog, Notification, Task, WorkOrder
from .services import create_record, delete_record, send_work_order_update, update_record

LIST_FILTERS = ("status", "assigned_to", "created_by")


def record_list_view(form_class):
    """GET lists records (filterable by status and user), POST creates one."""
    model = form_class._meta.model

    @require_http_methods(["GET", "POST"])
    @api_login_required
    def view(request):
        if request.method == 'GET':
            records = model.objects.all()
            filters = {
                key: request.GET[key]
                for key in LIST_FILTERS
                if request.GET.get(key) and hasattr(model, key)
            }
            if any(key != "status" and not value.isdigit() for key, value in filters.items()):
                return json_error("User filters must be numeric ids.")
            records = records.filter(**filters)
            return JsonResponse([r.to_dict() for r in records], safe=False)

        form = form_class(parse_json(request))
        if not form.is_valid():
            return json_error("Invalid data", errors=form_errors(form))
        return JsonResponse(create_record(form, request.user).to_dict(), status=201)

    view.__name__ = f"{model._meta.model_name}_list"
    return view


def record_detail_view(form_class):
    """GET one record; PUT/PATCH merge the body over current values; DELETE removes it."""
    model = form_class._meta.model

    @require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
    @api_login_required
    def view(request, pk):
        record = get_object_or_404(model, pk=pk)
        if request.method == 'GET':
            return JsonResponse(record.to_dict())

        if request.method == 'DELETE':
            delete_record(record, request.user)
            return HttpResponse(status=204)

        form = form_class(
            merged_form_data(record, form_class, parse_json(request)), instance=record
        )
        if not form.is_valid():
            return json_error("Invalid data", errors=form_errors(form))
        return JsonResponse(update_record(form, request.user).to_dict())

    view.__name__ = f"{model._meta.model_name}_detail"
    return view


@require_GET
@api_login_required
def task_logs(request, pk):
    task = get_object_or_404(Task, pk=pk)
    return JsonResponse([log.to_dict() for log in task.logs.all()], safe=False)


@require_POST
@api_login_required
def work_order_email(request, pk):
    """Email the customer a status update and stamp last_email_sent."""
    work_order = get_object_or_404(WorkOrder, pk=pk)
    form = WorkOrderEmailForm(parse_json(request))
    if not form.is_valid():
        return json_error("Invalid email data", errors=form_errors(form))
    try:
        send_work_order_update(
            work_order, request.user, form.cleaned_data['subject'], form.cleaned_data['message']
        )
    except EmailDeliveryError:
        return json_error("Failed to send email", status=502)
    return JsonResponse(work_order.to_dict())


@require_GET
@admin_required
def change_log(request):
    """Audit trail, newest first; filter with ?entity_type=&entity_id=."""
    entries = ChangeLog.objects.all()
    entity_type = request.GET.get('entity_type')
    entity_id = request.GET.get('entity_id')
    if entity_type:
        entries = entries.filter(entity_type=entity_type)
    if entity_id:
        if not entity_id.isdigit():
            return json_error("entity_id must be a numeric id.")
        entries = entries.filter(entity_id=entity_id)
    return JsonResponse([entry.to_dict() for entry in entries[:500]], safe=False)


@require_GET
@api_login_required
def notification_list(request):
    notifications = request.user.notifications.all()
    if request.GET.get('unread'):
        notifications = notifications.filter(is_read=False)
    return JsonResponse([n.to_dict() for n in notifications], safe=False)


@require_POST
@api_login_required
def notification_read(request, pk):
    notification = get_object_or_404(Notification, pk=pk, user=request.user)
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=["is_read"])
    return JsonResponse(notification.to_dict())


@require_POST
@api_login_required
def notification_read_all(request):
    updated = request.user.notifications.filter(is_read=False).update(is_read=True)
    return JsonResponse({'updated': updated})
