"""
Operations Service Layer

Record lifecycle for inquiries, quotation requests, work orders,
tickets, tasks, call logs and cash collections: status history, the
change log, task activity, notifications and work order emails.
"""
import logging
from datetime import datetime, time, timedelta

from django.db import transaction
from django.utils import timezone

from opsdesk.mail import send_html_mail
from .models import (
    ChangeLog,
    Notification,
    StatusTrackedRecord,
    Task,
    TaskLog,
    Ticket,
    WorkOrder,
)

logger = logging.getLogger(__name__)

NOTIFICATION_RETENTION_DAYS = 30

# model -> status that makes a record due-date relevant
DUE_DATE_WATCH = [
    (Task, Task.Status.PENDING),
    (Ticket, Ticket.Status.OPEN),
    (WorkOrder, WorkOrder.Status.IN_PROGRESS),
]


def _user_name(user):
    return user.display_name if user is not None else "System"


def _label(entity_type: str) -> str:
    return entity_type.replace("_", " ")


def _action_url(entity_type: str) -> str:
    return f"/{entity_type.replace('_', '-')}s"


def _display(value) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def tracks_status(record) -> bool:
    return isinstance(record, StatusTrackedRecord)


def history_entry(status: str, user) -> dict:
    return {
        "status": status,
        "changedAt": timezone.now().isoformat(),
        "changedBy": _user_name(user),
    }


def log_change(record, action, user, description, field="", old_value=None, new_value=None):
    return ChangeLog.objects.create(
        entity_type=record.entity_type,
        entity_id=record.pk,
        action=action,
        field_changed=field,
        old_value=_display(old_value),
        new_value=_display(new_value),
        user=user,
        user_name=_user_name(user),
        description=description,
    )


def log_task_activity(task: Task, action: str, user, description: str, **metadata):
    return TaskLog.objects.create(
        task=task,
        action=action,
        description=description,
        user=user,
        user_name=_user_name(user),
        metadata=metadata,
    )


def notify_assignment(record, assigned_by):
    """Tell the assignee about a new assignment, unless they assigned themselves."""
    assignee = record.assigned_to
    if assignee is None or assignee == assigned_by:
        return None
    assigner = _user_name(assigned_by) if assigned_by is not None else "Someone"
    return Notification.objects.create(
        user=assignee,
        type=Notification.Type.ASSIGNMENT,
        title=f"New {_label(record.entity_type)} assigned",
        message=f'{assigner} assigned "{record.display_title}" to you',
        entity_type=record.entity_type,
        entity_id=record.pk,
        priority=Notification.Priority.MEDIUM,
        action_url=_action_url(record.entity_type),
        metadata={"assignedBy": assigner},
    )


def notify_status_change(record, old_status, new_status, changed_by):
    """Notify the assignee and the creator, other than whoever made the change."""
    recipients = []
    for user in (record.assigned_to, record.created_by):
        if user is not None and user != changed_by and user not in recipients:
            recipients.append(user)

    return Notification.objects.bulk_create(
        Notification(
            user=user,
            type=Notification.Type.STATUS_CHANGE,
            title=f"{_label(record.entity_type).capitalize()} status updated",
            message=f'"{record.display_title}" status changed from {old_status} to {new_status}',
            entity_type=record.entity_type,
            entity_id=record.pk,
            priority=Notification.Priority.MEDIUM,
            action_url=_action_url(record.entity_type),
            metadata={"oldStatus": old_status, "newStatus": new_status},
        )
        for user in recipients
    )


@transaction.atomic
def create_record(form, user):
    """
    Save a new record from a valid form and record its creation.

    Writes the first status history entry, the "created" change log
    row, task activity and an assignment notification.
    """
    record = form.save(commit=False)
    record.created_by = user
    if tracks_status(record):
        record.status_history = [history_entry(record.status, user)]
    if isinstance(record, Task) and record.status == Task.Status.COMPLETED:
        record.completed_at = timezone.now()
    record.save()

    log_change(
        record,
        ChangeLog.Action.CREATED,
        user,
        f"Created {_label(record.entity_type)} {record.display_title}",
    )
    if isinstance(record, Task):
        log_task_activity(record, "created", user, f'Task "{record.title}" created')
    if record.assigned_to is not None:
        notify_assignment(record, user)

    logger.info("%s %s created by %s", record.entity_type, record.pk, _user_name(user))
    return record


@transaction.atomic
def update_record(form, user):
    """
    Save changes from a valid form bound to an existing record.

    Each changed field gets a change log row. A status change appends to
    the status history and notifies; a new assignee is notified.
    """
    record = form.instance
    previous = type(record).objects.get(pk=record.pk)
    changes = [
        (name, getattr(previous, name), getattr(record, name))
        for name in form._meta.fields
        if getattr(previous, name) != getattr(record, name)
    ]

    status_change = None
    for name, old, new in changes:
        if name == "status":
            status_change = (old, new)
            if tracks_status(record):
                record.status_history = [*previous.status_history, history_entry(new, user)]
            if isinstance(record, Task):
                record.completed_at = timezone.now() if new == Task.Status.COMPLETED else None

    record.save()

    for name, old, new in changes:
        if name == "status":
            log_change(
                record, ChangeLog.Action.STATUS_CHANGED, user,
                f"Status changed from {old} to {new}", name, old, new,
            )
        elif name == "assigned_to":
            log_change(
                record, ChangeLog.Action.ASSIGNED, user,
                f"Assigned to {_user_name(new) if new else 'nobody'}",
                name,
                old.pk if old else None,
                new.pk if new else None,
            )
            notify_assignment(record, user)
        else:
            log_change(
                record, ChangeLog.Action.UPDATED, user,
                f"Updated {name.replace('_', ' ')}", name, old, new,
            )

    if isinstance(record, Task) and changes:
        _log_task_update(record, user, changes)
    if status_change is not None:
        notify_status_change(record, *status_change, changed_by=user)

    logger.info(
        "%s %s updated by %s (%s)",
        record.entity_type, record.pk, _user_name(user),
        ", ".join(name for name, _, _ in changes) or "no changes",
    )
    return record


def _log_task_update(task, user, changes):
    for name, old, new in changes:
        if name == "status" and new == Task.Status.COMPLETED:
            log_task_activity(task, "completed", user, f'Task "{task.title}" completed')
        elif name == "status":
            log_task_activity(
                task, "status_changed", user, f"Status changed from {old} to {new}",
                oldStatus=old, newStatus=new,
            )
        elif name == "assigned_to":
            log_task_activity(
                task, "assigned", user, f"Assigned to {_user_name(new) if new else 'nobody'}",
                assignedTo=new.pk if new else None,
            )
    fields = [name for name, _, _ in changes if name not in ("status", "assigned_to")]
    if fields:
        log_task_activity(
            task, "updated", user, f"Updated {', '.join(fields)}", fields=fields
        )


@transaction.atomic
def delete_record(record, user):
    entity_id = record.pk
    log_change(
        record,
        ChangeLog.Action.DELETED,
        user,
        f"Deleted {_label(record.entity_type)} {record.display_title}",
    )
    record.delete()
    logger.info("%s %s deleted by %s", record.entity_type, entity_id, _user_name(user))


def send_work_order_update(work_order: WorkOrder, user, subject="", message=""):
    """
    Email the customer the current state of their work order.

    Raises:
        EmailDeliveryError: If the mail backend fails
    """
    subject = subject or f"Work order update: {work_order.get_status_display()}"
    send_html_mail(
        subject,
        "operations/email/work_order_update.html",
        {"work_order": work_order, "message": message, "sent_by": _user_name(user)},
        work_order.email,
    )
    work_order.last_email_sent = timezone.now()
    work_order.save(update_fields=["last_email_sent", "updated_at"])
    log_change(
        work_order,
        ChangeLog.Action.UPDATED,
        user,
        f"Status update emailed to {work_order.email}",
        "last_email_sent",
        None,
        work_order.last_email_sent,
    )
    return work_order


def _end_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.max))


def create_due_date_notifications(now=None) -> int:
    """
    Notify assignees of watched records due before the end of tomorrow.

    A record already past due gets an "overdue" notification, others a
    "due_date" one. An unread notification of the same kind for the
    same record is not repeated. Returns the number created.
    """
    now = now or timezone.now()
    today = timezone.localtime(now).date()
    end_of_today = _end_of_day(today)
    end_of_tomorrow = _end_of_day(today + timedelta(days=1))

    created = []
    for model, status in DUE_DATE_WATCH:
        due = model.objects.filter(
            status=status,
            assigned_to__isnull=False,
            due_date__isnull=False,
            due_date__lte=end_of_tomorrow,
        ).select_related("assigned_to")
        for record in due:
            overdue = record.due_date < now
            kind = Notification.Type.OVERDUE if overdue else Notification.Type.DUE_DATE
            already_sent = Notification.objects.filter(
                user=record.assigned_to,
                type=kind,
                entity_type=record.entity_type,
                entity_id=record.pk,
                is_read=False,
            ).exists()
            if already_sent:
                continue

            label = _label(record.entity_type).capitalize()
            if overdue:
                when = "overdue"
            elif record.due_date <= end_of_today:
                when = "due today"
            else:
                when = "due tomorrow"
            created.append(Notification(
                user=record.assigned_to,
                type=kind,
                title=f"{label} {when}",
                message=f'{label} "{record.display_title}" is {when}',
                entity_type=record.entity_type,
                entity_id=record.pk,
                priority=Notification.Priority.URGENT if overdue else Notification.Priority.HIGH,
                action_url=_action_url(record.entity_type),
                metadata={"dueDate": record.due_date.isoformat()},
            ))

    Notification.objects.bulk_create(created)
    if created:
        logger.info("Created %d due date notifications", len(created))
    return len(created)


def purge_old_notifications(now=None, days=NOTIFICATION_RETENTION_DAYS) -> int:
    cutoff = (now or timezone.now()) - timedelta(days=days)
    deleted, _ = Notification.objects.filter(created_at__lt=cutoff).delete()
    if deleted:
        logger.info("Purged %d notifications older than %d days", deleted, days)
    return deleted
