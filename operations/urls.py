from django.urls import path

from . import forms, views

RESOURCES = [
    ('customer-inquiries', forms.CustomerInquiryForm),
    ('quotation-requests', forms.QuotationRequestForm),
    ('work-orders', forms.WorkOrderForm),
    ('tickets', forms.TicketForm),
    ('tasks', forms.TaskForm),
    ('call-logs', forms.CallLogForm),
    ('cash-collections', forms.CashCollectionForm),
]

api_urlpatterns = [
    path('tasks/<int:pk>/logs', views.task_logs, name='task_logs'),
    path('work-orders/<int:pk>/email', views.work_order_email, name='work_order_email'),
    path('change-log', views.change_log, name='change_log'),
    path('notifications', views.notification_list, name='notification_list'),
    path('notifications/read-all', views.notification_read_all, name='notification_read_all'),
    path('notifications/<int:pk>/read', views.notification_read, name='notification_read'),
]

for prefix, form_class in RESOURCES:
    name = form_class._meta.model._meta.model_name
    api_urlpatterns += [
        path(prefix, views.record_list_view(form_class), name=f'{name}_list'),
        path(f'{prefix}/<int:pk>', views.record_detail_view(form_class), name=f'{name}_detail'),
    ]
