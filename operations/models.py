from datetime import date, datetime
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


def _json_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


class OperationsRecord(models.Model):
    """
    Common columns of the day-to-day business records.

    Subclasses set ``entity_type`` (the name used in the change log and
    notifications) and ``title_field`` (the field that names a record
    in messages).
    """

    entity_type = ""
    title_field = "customer_name"

    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.display_title

    @property
    def display_title(self):
        return str(getattr(self, self.title_field))

    def to_dict(self):
        """Every concrete field; foreign keys as primary keys."""
        return {
            field.name: _json_value(field.value_from_object(self))
            for field in self._meta.concrete_fields
        }


class StatusTrackedRecord(OperationsRecord):
    """A record that moves through a status workflow and may fall due."""

    due_date = models.DateTimeField(null=True, blank=True)
    # [{"status": ..., "changedAt": ..., "changedBy": ...}], oldest first
    status_history = models.JSONField(default=list, blank=True)

    class Meta(OperationsRecord.Meta):
        abstract = True


class Urgency(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"


class CustomerInquiry(StatusTrackedRecord):
    entity_type = "customer_inquiry"

    class Status(models.TextChoices):
        NEW = "new", "New"
        CONTACTED = "contacted", "Contacted"
        FOLLOW_UP = "follow_up", "Follow up"
        COMPLETED = "completed", "Completed"
        CLOSED = "closed", "Closed"

    customer_name = models.CharField(max_length=255)
    telephone_number = models.CharField(max_length=50)
    item_inquiry = models.CharField(max_length=500)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.NEW)

    class Meta(StatusTrackedRecord.Meta):
        db_table = "customer_inquiry"
        verbose_name_plural = "customer inquiries"


class QuotationRequest(StatusTrackedRecord):
    entity_type = "quotation_request"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        IN_PROGRESS = "in_progress", "In progress"
        QUOTED = "quoted", "Quoted"
        ACCEPTED = "accepted", "Accepted"
        DECLINED = "declined", "Declined"
        COMPLETED = "completed", "Completed"

    customer_name = models.CharField(max_length=255)
    telephone_number = models.CharField(max_length=50)
    email_address = models.EmailField()
    quote_description = models.TextField()
    urgency = models.CharField(max_length=20, choices=Urgency.choices, default=Urgency.MEDIUM)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    class Meta(StatusTrackedRecord.Meta):
        db_table = "quotation_request"


class WorkOrder(StatusTrackedRecord):
    """An item left with the workshop for repair."""

    entity_type = "work_order"

    class Status(models.TextChoices):
        RECEIVED = "received", "Received"
        IN_PROGRESS = "in_progress", "In progress"
        TESTING = "testing", "Testing"
        READY_FOR_PICKUP = "ready_for_pickup", "Ready for pickup"
        COMPLETED = "completed", "Completed"

    customer_name = models.CharField(max_length=255)
    telephone = models.CharField(max_length=50)
    email = models.EmailField()
    item_description = models.TextField()
    issue = models.TextField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.RECEIVED)
    notes = models.TextField(blank=True)
    last_email_sent = models.DateTimeField(null=True, blank=True)

    class Meta(StatusTrackedRecord.Meta):
        db_table = "work_order"


class Ticket(StatusTrackedRecord):
    entity_type = "ticket"
    title_field = "title"

    class Status(models.TextChoices):
        OPEN = "open", "Open"
        IN_PROGRESS = "in_progress", "In progress"
        RESOLVED = "resolved", "Resolved"
        CLOSED = "closed", "Closed"

    title = models.CharField(max_length=255)
    description = models.TextField()
    priority = models.CharField(max_length=20, choices=Urgency.choices, default=Urgency.MEDIUM)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.OPEN)

    class Meta(StatusTrackedRecord.Meta):
        db_table = "ticket"


class Task(StatusTrackedRecord):
    entity_type = "task"
    title_field = "title"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    class Priority(models.TextChoices):
        LOW = "low", "Low"
        NORMAL = "normal", "Normal"
        HIGH = "high", "High"
        CRITICAL = "critical", "Critical"

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    urgency_level = models.CharField(max_length=20, choices=Urgency.choices, default=Urgency.MEDIUM)
    priority = models.CharField(max_length=20, choices=Priority.choices, default=Priority.NORMAL)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    completed_at = models.DateTimeField(null=True, blank=True)
    tags = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)

    class Meta(StatusTrackedRecord.Meta):
        db_table = "task"


class TaskLog(models.Model):
    """Activity entry on a task: created, updated, assigned, completed."""

    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="logs")
    action = models.CharField(max_length=100)
    description = models.TextField()
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL
    )
    user_name = models.CharField(max_length=255)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "task_log"
        ordering = ["created_at", "id"]

    def to_dict(self):
        return {
            "id": self.pk,
            "task": self.task_id,
            "action": self.action,
            "description": self.description,
            "user": self.user_id,
            "user_name": self.user_name,
            "metadata": self.metadata,
            "created_at": _json_value(self.created_at),
        }


class CallLog(OperationsRecord):
    entity_type = "call_log"

    class CallType(models.TextChoices):
        INCOMING = "incoming", "Incoming"
        OUTGOING = "outgoing", "Outgoing"

    class Purpose(models.TextChoices):
        INQUIRY = "inquiry", "Inquiry"
        SUPPORT = "support", "Support"
        FOLLOW_UP = "follow_up", "Follow up"
        QUOTE = "quote", "Quote"
        COMPLAINT = "complaint", "Complaint"
        OTHER = "other", "Other"

    class Outcome(models.TextChoices):
        ANSWERED = "answered", "Answered"
        VOICEMAIL = "voicemail", "Voicemail"
        BUSY = "busy", "Busy"
        NO_ANSWER = "no_answer", "No answer"
        RESOLVED = "resolved", "Resolved"
        FOLLOW_UP_NEEDED = "follow_up_needed", "Follow up needed"

    customer_name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=50)
    call_type = models.CharField(max_length=20, choices=CallType.choices)
    call_purpose = models.CharField(max_length=20, choices=Purpose.choices)
    outcome = models.CharField(max_length=20, choices=Outcome.choices, blank=True)
    # "MM:SS"
    duration = models.CharField(max_length=10, blank=True)
    notes = models.TextField(blank=True)
    follow_up_date = models.DateTimeField(null=True, blank=True)

    class Meta(OperationsRecord.Meta):
        db_table = "call_log"


class CashCollection(OperationsRecord):
    """Money taken from a customer outside the invoicing flow."""

    entity_type = "cash_collection"

    class Currency(models.TextChoices):
        JMD = "JMD", "JMD"
        USD = "USD", "USD"

    class CollectionType(models.TextChoices):
        CASH = "cash", "Cash"
        CHEQUE = "cheque", "Cheque"
        CARD = "card", "Card"
        BANK_TRANSFER = "bank_transfer", "Bank transfer"

    class Action(models.TextChoices):
        RECEIVED = "received", "Received"
        DEPOSITED = "deposited", "Deposited"
        REFUNDED = "refunded", "Refunded"

    customer_name = models.CharField(max_length=255)
    amount = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0.01"))]
    )
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.JMD)
    collection_type = models.CharField(
        max_length=20, choices=CollectionType.choices, default=CollectionType.CASH
    )
    reason = models.CharField(max_length=255)
    action = models.CharField(max_length=20, choices=Action.choices, default=Action.RECEIVED)
    notes = models.TextField(blank=True)

    class Meta(OperationsRecord.Meta):
        db_table = "cash_collection"


class ChangeLog(models.Model):
    """System-wide audit trail of record changes."""

    class Action(models.TextChoices):
        CREATED = "created", "Created"
        UPDATED = "updated", "Updated"
        STATUS_CHANGED = "status_changed", "Status changed"
        ASSIGNED = "assigned", "Assigned"
        DELETED = "deleted", "Deleted"

    entity_type = models.CharField(max_length=50)
    entity_id = models.PositiveBigIntegerField()
    action = models.CharField(max_length=20, choices=Action.choices)
    field_changed = models.CharField(max_length=100, blank=True)
    old_value = models.TextField(blank=True)
    new_value = models.TextField(blank=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL
    )
    user_name = models.CharField(max_length=255)
    description = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "change_log"
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["entity_type", "entity_id"], name="change_log_entity_idx")]

    def __str__(self):
        return self.description

    def to_dict(self):
        return {
            "id": self.pk,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action": self.action,
            "field_changed": self.field_changed,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "user": self.user_id,
            "user_name": self.user_name,
            "description": self.description,
            "created_at": _json_value(self.created_at),
        }


class Notification(models.Model):
    class Type(models.TextChoices):
        DUE_DATE = "due_date", "Due date"
        OVERDUE = "overdue", "Overdue"
        STATUS_CHANGE = "status_change", "Status change"
        ASSIGNMENT = "assignment", "Assignment"
        SYSTEM_ALERT = "system_alert", "System alert"

    class Priority(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"
        URGENT = "urgent", "Urgent"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications"
    )
    type = models.CharField(max_length=20, choices=Type.choices)
    title = models.CharField(max_length=255)
    message = models.TextField()
    entity_type = models.CharField(max_length=50, blank=True)
    entity_id = models.PositiveBigIntegerField(null=True, blank=True)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.MEDIUM)
    action_url = models.CharField(max_length=255, blank=True)
    is_read = models.BooleanField(default=False)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "notification"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.title

    def to_dict(self):
        return {
            "id": self.pk,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "priority": self.priority,
            "action_url": self.action_url,
            "is_read": self.is_read,
            "metadata": self.metadata,
            "created_at": _json_value(self.created_at),
        }
