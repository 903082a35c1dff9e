from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

URGENCY_CHOICES = [("low", "Low"), ("medium", "Medium"), ("high", "High"), ("urgent", "Urgent")]


def user_fk(**kwargs):
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        to=settings.AUTH_USER_MODEL,
        **kwargs,
    )


def record_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("assigned_to", user_fk(related_name="+")),
        ("created_by", user_fk(related_name="+")),
    ]


def tracked_fields():
    return record_fields() + [
        ("due_date", models.DateTimeField(blank=True, null=True)),
        ("status_history", models.JSONField(blank=True, default=list)),
    ]


RECORD_OPTIONS = {"ordering": ["-created_at", "-id"], "abstract": False}


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CustomerInquiry",
            fields=tracked_fields() + [
                ("customer_name", models.CharField(max_length=255)),
                ("telephone_number", models.CharField(max_length=50)),
                ("item_inquiry", models.CharField(max_length=500)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("new", "New"),
                            ("contacted", "Contacted"),
                            ("follow_up", "Follow up"),
                            ("completed", "Completed"),
                            ("closed", "Closed"),
                        ],
                        default="new",
                        max_length=20,
                    ),
                ),
            ],
            options={**RECORD_OPTIONS, "db_table": "customer_inquiry", "verbose_name_plural": "customer inquiries"},
        ),
        migrations.CreateModel(
            name="QuotationRequest",
            fields=tracked_fields() + [
                ("customer_name", models.CharField(max_length=255)),
                ("telephone_number", models.CharField(max_length=50)),
                ("email_address", models.EmailField(max_length=254)),
                ("quote_description", models.TextField()),
                ("urgency", models.CharField(choices=URGENCY_CHOICES, default="medium", max_length=20)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("in_progress", "In progress"),
                            ("quoted", "Quoted"),
                            ("accepted", "Accepted"),
                            ("declined", "Declined"),
                            ("completed", "Completed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
            ],
            options={**RECORD_OPTIONS, "db_table": "quotation_request"},
        ),
        migrations.CreateModel(
            name="WorkOrder",
            fields=tracked_fields() + [
                ("customer_name", models.CharField(max_length=255)),
                ("telephone", models.CharField(max_length=50)),
                ("email", models.EmailField(max_length=254)),
                ("item_description", models.TextField()),
                ("issue", models.TextField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("received", "Received"),
                            ("in_progress", "In progress"),
                            ("testing", "Testing"),
                            ("ready_for_pickup", "Ready for pickup"),
                            ("completed", "Completed"),
                        ],
                        default="received",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("last_email_sent", models.DateTimeField(blank=True, null=True)),
            ],
            options={**RECORD_OPTIONS, "db_table": "work_order"},
        ),
        migrations.CreateModel(
            name="Ticket",
            fields=tracked_fields() + [
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField()),
                ("priority", models.CharField(choices=URGENCY_CHOICES, default="medium", max_length=20)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("open", "Open"),
                            ("in_progress", "In progress"),
                            ("resolved", "Resolved"),
                            ("closed", "Closed"),
                        ],
                        default="open",
                        max_length=20,
                    ),
                ),
            ],
            options={**RECORD_OPTIONS, "db_table": "ticket"},
        ),
        migrations.CreateModel(
            name="Task",
            fields=tracked_fields() + [
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("urgency_level", models.CharField(choices=URGENCY_CHOICES, default="medium", max_length=20)),
                (
                    "priority",
                    models.CharField(
                        choices=[("low", "Low"), ("normal", "Normal"), ("high", "High"), ("critical", "Critical")],
                        default="normal",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("in_progress", "In progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("notes", models.TextField(blank=True)),
            ],
            options={**RECORD_OPTIONS, "db_table": "task"},
        ),
        migrations.CreateModel(
            name="TaskLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=100)),
                ("description", models.TextField()),
                ("user_name", models.CharField(max_length=255)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "task",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="logs",
                        to="operations.task",
                    ),
                ),
                ("user", user_fk()),
            ],
            options={"db_table": "task_log", "ordering": ["created_at", "id"]},
        ),
        migrations.CreateModel(
            name="CallLog",
            fields=record_fields() + [
                ("customer_name", models.CharField(max_length=255)),
                ("phone_number", models.CharField(max_length=50)),
                (
                    "call_type",
                    models.CharField(choices=[("incoming", "Incoming"), ("outgoing", "Outgoing")], max_length=20),
                ),
                (
                    "call_purpose",
                    models.CharField(
                        choices=[
                            ("inquiry", "Inquiry"),
                            ("support", "Support"),
                            ("follow_up", "Follow up"),
                            ("quote", "Quote"),
                            ("complaint", "Complaint"),
                            ("other", "Other"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "outcome",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("answered", "Answered"),
                            ("voicemail", "Voicemail"),
                            ("busy", "Busy"),
                            ("no_answer", "No answer"),
                            ("resolved", "Resolved"),
                            ("follow_up_needed", "Follow up needed"),
                        ],
                        max_length=20,
                    ),
                ),
                ("duration", models.CharField(blank=True, max_length=10)),
                ("notes", models.TextField(blank=True)),
                ("follow_up_date", models.DateTimeField(blank=True, null=True)),
            ],
            options={**RECORD_OPTIONS, "db_table": "call_log"},
        ),
        migrations.CreateModel(
            name="CashCollection",
            fields=record_fields() + [
                ("customer_name", models.CharField(max_length=255)),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("currency", models.CharField(choices=[("JMD", "JMD"), ("USD", "USD")], default="JMD", max_length=3)),
                (
                    "collection_type",
                    models.CharField(
                        choices=[
                            ("cash", "Cash"),
                            ("cheque", "Cheque"),
                            ("card", "Card"),
                            ("bank_transfer", "Bank transfer"),
                        ],
                        default="cash",
                        max_length=20,
                    ),
                ),
                ("reason", models.CharField(max_length=255)),
                (
                    "action",
                    models.CharField(
                        choices=[("received", "Received"), ("deposited", "Deposited"), ("refunded", "Refunded")],
                        default="received",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
            ],
            options={**RECORD_OPTIONS, "db_table": "cash_collection"},
        ),
        migrations.CreateModel(
            name="ChangeLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entity_type", models.CharField(max_length=50)),
                ("entity_id", models.PositiveBigIntegerField()),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("created", "Created"),
                            ("updated", "Updated"),
                            ("status_changed", "Status changed"),
                            ("assigned", "Assigned"),
                            ("deleted", "Deleted"),
                        ],
                        max_length=20,
                    ),
                ),
                ("field_changed", models.CharField(blank=True, max_length=100)),
                ("old_value", models.TextField(blank=True)),
                ("new_value", models.TextField(blank=True)),
                ("user_name", models.CharField(max_length=255)),
                ("description", models.TextField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", user_fk()),
            ],
            options={
                "db_table": "change_log",
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["entity_type", "entity_id"], name="change_log_entity_idx")],
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("due_date", "Due date"),
                            ("overdue", "Overdue"),
                            ("status_change", "Status change"),
                            ("assignment", "Assignment"),
                            ("system_alert", "System alert"),
                        ],
                        max_length=20,
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("message", models.TextField()),
                ("entity_type", models.CharField(blank=True, max_length=50)),
                ("entity_id", models.PositiveBigIntegerField(blank=True, null=True)),
                (
                    "priority",
                    models.CharField(choices=URGENCY_CHOICES, default="medium", max_length=10),
                ),
                ("action_url", models.CharField(blank=True, max_length=255)),
                ("is_read", models.BooleanField(default=False)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"db_table": "notification", "ordering": ["-created_at", "-id"]},
        ),
    ]
