"""
Forms for the operations records.

Fields with a model default may be omitted on create; the default is
used instead.
"""
from django import forms

from .models import (
    CallLog,
    CashCollection,
    CustomerInquiry,
    QuotationRequest,
    Task,
    Ticket,
    WorkOrder,
)


class RecordForm(forms.ModelForm):

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._defaulted = []
        for name, field in self.fields.items():
            if self._meta.model._meta.get_field(name).has_default():
                field.required = False
                self._defaulted.append(name)

    def clean(self):
        cleaned_data = super().clean()
        for name in self._defaulted:
            if cleaned_data.get(name) in self.fields[name].empty_values:
                cleaned_data[name] = self._meta.model._meta.get_field(name).get_default()
        return cleaned_data


class CustomerInquiryForm(RecordForm):
    class Meta:
        model = CustomerInquiry
        fields = [
            "customer_name", "telephone_number", "item_inquiry",
            "status", "assigned_to", "due_date",
        ]


class QuotationRequestForm(RecordForm):
    class Meta:
        model = QuotationRequest
        fields = [
            "customer_name", "telephone_number", "email_address", "quote_description",
            "urgency", "status", "assigned_to", "due_date",
        ]


class WorkOrderForm(RecordForm):
    class Meta:
        model = WorkOrder
        fields = [
            "customer_name", "telephone", "email", "item_description", "issue",
            "status", "notes", "assigned_to", "due_date",
        ]


class TicketForm(RecordForm):
    class Meta:
        model = Ticket
        fields = ["title", "description", "priority", "status", "assigned_to", "due_date"]


class TaskForm(RecordForm):
    class Meta:
        model = Task
        fields = [
            "title", "description", "urgency_level", "priority", "status",
            "assigned_to", "due_date", "tags", "notes",
        ]

    def clean_tags(self):
        tags = self.cleaned_data.get("tags") or []
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise forms.ValidationError("Tags must be a list of strings.")
        return tags


class CallLogForm(RecordForm):
    class Meta:
        model = CallLog
        fields = [
            "customer_name", "phone_number", "call_type", "call_purpose", "outcome",
            "duration", "notes", "follow_up_date", "assigned_to",
        ]

    def clean_duration(self):
        duration = self.cleaned_data.get("duration", "")
        if duration:
            minutes, _, seconds = duration.partition(":")
            if not (minutes.isdigit() and seconds.isdigit() and len(seconds) == 2):
                raise forms.ValidationError("Duration must be in MM:SS format.")
        return duration


class CashCollectionForm(RecordForm):
    class Meta:
        model = CashCollection
        fields = [
            "customer_name", "amount", "currency", "collection_type",
            "reason", "action", "notes", "assigned_to",
        ]


class WorkOrderEmailForm(forms.Form):
    subject = forms.CharField(max_length=200, required=False)
    message = forms.CharField(required=False)
