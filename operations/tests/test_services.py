"""
Tests for the operations record lifecycle.
"""
from datetime import timedelta
from smtplib import SMTPException
from unittest.mock import patch

from django.core import mail
from django.test import TestCase
from django.utils import timezone

from accounts.models import CustomUser
from opsdesk.api import merged_form_data
from opsdesk.mail import EmailDeliveryError
from operations.forms import CallLogForm, TaskForm, TicketForm, WorkOrderForm
from operations.models import ChangeLog, Notification, Task, Ticket, WorkOrder
from operations.services import (
    create_due_date_notifications,
    create_record,
    delete_record,
    purge_old_notifications,
    send_work_order_update,
    update_record,
)


class OperationsTestCase(TestCase):

    def setUp(self):
        self.alice = CustomUser.objects.create_user(
            username='alice', email='alice@fenntechltd.com', password='testpass123',
            first_name='Alice', last_name='Brown',
        )
        self.bob = CustomUser.objects.create_user(
            username='bob', email='bob@fenntechltd.com', password='testpass123',
            first_name='Bob', last_name='Green',
        )

    def create_ticket(self, **data):
        form = TicketForm({'title': 'Printer jam', 'description': 'Front desk printer', **data})
        self.assertTrue(form.is_valid(), form.errors)
        return create_record(form, self.alice)

    def update(self, record, form_class, **changes):
        form = form_class(merged_form_data(record, form_class, changes), instance=record)
        self.assertTrue(form.is_valid(), form.errors)
        return update_record(form, self.alice)


class CreateRecordTests(OperationsTestCase):

    def test_defaults_and_first_history_entry(self):
        ticket = self.create_ticket()
        self.assertEqual(ticket.status, 'open')
        self.assertEqual(ticket.priority, 'medium')
        self.assertEqual(ticket.created_by, self.alice)
        self.assertEqual(len(ticket.status_history), 1)
        self.assertEqual(ticket.status_history[0]['status'], 'open')
        self.assertEqual(ticket.status_history[0]['changedBy'], 'Alice Brown')

    def test_change_log_written(self):
        ticket = self.create_ticket()
        entry = ChangeLog.objects.get()
        self.assertEqual(entry.entity_type, 'ticket')
        self.assertEqual(entry.entity_id, ticket.pk)
        self.assertEqual(entry.action, 'created')
        self.assertEqual(entry.user_name, 'Alice Brown')

    def test_assignment_notifies_assignee(self):
        ticket = self.create_ticket(assigned_to=self.bob.pk)
        notification = Notification.objects.get(user=self.bob)
        self.assertEqual(notification.type, 'assignment')
        self.assertEqual(notification.entity_id, ticket.pk)
        self.assertIn('Alice Brown assigned "Printer jam"', notification.message)

    def test_self_assignment_not_notified(self):
        self.create_ticket(assigned_to=self.alice.pk)
        self.assertFalse(Notification.objects.exists())

    def test_invalid_status_rejected(self):
        form = TicketForm({'title': 'x', 'description': 'y', 'status': 'shipped'})
        self.assertFalse(form.is_valid())
        self.assertIn('status', form.errors)

    def test_call_log_has_no_history(self):
        form = CallLogForm({
            'customer_name': 'Mr Lee', 'phone_number': '876-555-0100',
            'call_type': 'incoming', 'call_purpose': 'quote', 'duration': '03:15',
        })
        self.assertTrue(form.is_valid(), form.errors)
        call = create_record(form, self.alice)
        self.assertFalse(hasattr(call, 'status_history'))
        self.assertEqual(ChangeLog.objects.get().entity_type, 'call_log')

    def test_call_log_duration_format(self):
        form = CallLogForm({
            'customer_name': 'Mr Lee', 'phone_number': '876-555-0100',
            'call_type': 'incoming', 'call_purpose': 'quote', 'duration': '3 minutes',
        })
        self.assertFalse(form.is_valid())
        self.assertIn('duration', form.errors)


class UpdateRecordTests(OperationsTestCase):

    def test_status_change_appends_history(self):
        ticket = self.create_ticket()
        ticket = self.update(ticket, TicketForm, status='in_progress')
        ticket = self.update(ticket, TicketForm, status='resolved')

        ticket.refresh_from_db()
        self.assertEqual(
            [entry['status'] for entry in ticket.status_history],
            ['open', 'in_progress', 'resolved'],
        )
        actions = list(
            ChangeLog.objects.filter(entity_id=ticket.pk).order_by('id').values_list('action', flat=True)
        )
        self.assertEqual(actions, ['created', 'status_changed', 'status_changed'])

    def test_unchanged_status_adds_no_history(self):
        ticket = self.create_ticket()
        ticket = self.update(ticket, TicketForm, title='Printer jam, tray 2')
        self.assertEqual(len(ticket.status_history), 1)
        entry = ChangeLog.objects.filter(action='updated').get()
        self.assertEqual(entry.field_changed, 'title')
        self.assertEqual(entry.old_value, 'Printer jam')
        self.assertEqual(entry.new_value, 'Printer jam, tray 2')

    def test_no_changes_no_log(self):
        ticket = self.create_ticket()
        self.update(ticket, TicketForm)
        self.assertEqual(ChangeLog.objects.count(), 1)

    def test_status_change_notifies_assignee(self):
        ticket = self.create_ticket(assigned_to=self.bob.pk)
        Notification.objects.all().delete()

        self.update(ticket, TicketForm, status='resolved')

        notification = Notification.objects.get()
        self.assertEqual(notification.user, self.bob)
        self.assertEqual(notification.type, 'status_change')
        self.assertEqual(notification.metadata, {'oldStatus': 'open', 'newStatus': 'resolved'})

    def test_reassignment(self):
        ticket = self.create_ticket()
        self.update(ticket, TicketForm, assigned_to=self.bob.pk)
        entry = ChangeLog.objects.get(action='assigned')
        self.assertEqual(entry.new_value, str(self.bob.pk))
        self.assertTrue(Notification.objects.filter(user=self.bob, type='assignment').exists())


class TaskLifecycleTests(OperationsTestCase):

    def create_task(self, **data):
        form = TaskForm({'title': 'Restock ink', **data})
        self.assertTrue(form.is_valid(), form.errors)
        return create_record(form, self.alice)

    def test_defaults(self):
        task = self.create_task()
        self.assertEqual(task.status, 'pending')
        self.assertEqual(task.priority, 'normal')
        self.assertEqual(task.urgency_level, 'medium')
        self.assertEqual(task.tags, [])
        self.assertIsNone(task.completed_at)

    def test_completion_stamps_and_logs(self):
        task = self.create_task(tags=['ink'])
        task = self.update(task, TaskForm, status='completed')
        self.assertIsNotNone(task.completed_at)
        self.assertEqual(
            list(task.logs.values_list('action', flat=True)), ['created', 'completed']
        )

        task = self.update(task, TaskForm, status='in_progress')
        self.assertIsNone(task.completed_at)

    def test_tags_must_be_strings(self):
        form = TaskForm({'title': 'Restock ink', 'tags': [1, 2]})
        self.assertFalse(form.is_valid())
        self.assertIn('tags', form.errors)


class DeleteRecordTests(OperationsTestCase):

    def test_delete_logged(self):
        ticket = self.create_ticket()
        ticket_id = ticket.pk
        delete_record(ticket, self.alice)

        self.assertFalse(Ticket.objects.exists())
        entry = ChangeLog.objects.get(action='deleted')
        self.assertEqual(entry.entity_id, ticket_id)


class WorkOrderEmailTests(OperationsTestCase):

    def setUp(self):
        super().setUp()
        form = WorkOrderForm({
            'customer_name': 'Ms Campbell', 'telephone': '876-555-0199', 'email': 'campbell@example.com',
            'item_description': 'Dell laptop', 'issue': 'No power', 'status': 'ready_for_pickup',
        })
        self.assertTrue(form.is_valid(), form.errors)
        self.work_order = create_record(form, self.alice)

    def test_sends_update(self):
        send_work_order_update(self.work_order, self.alice, message='Bring your receipt.')

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ['campbell@example.com'])
        self.assertEqual(message.subject, 'Work order update: Ready for pickup')
        self.assertIn('ready for pickup', message.alternatives[0][0])
        self.assertIn('Bring your receipt.', message.body)
        self.work_order.refresh_from_db()
        self.assertIsNotNone(self.work_order.last_email_sent)

    @patch('opsdesk.mail.send_mail', side_effect=SMTPException('down'))
    def test_failure_leaves_timestamp(self, mock_send):
        with self.assertRaises(EmailDeliveryError):
            send_work_order_update(self.work_order, self.alice)
        self.work_order.refresh_from_db()
        self.assertIsNone(self.work_order.last_email_sent)


class DueDateNotificationTests(OperationsTestCase):

    def setUp(self):
        super().setUp()
        self.now = timezone.now()

    def make_task(self, due, status=Task.Status.PENDING, assigned_to=None):
        return Task.objects.create(
            title='Call supplier',
            status=status,
            due_date=due,
            assigned_to=assigned_to or self.bob,
        )

    def test_overdue_and_due(self):
        overdue = self.make_task(self.now - timedelta(hours=2))
        upcoming = self.make_task(self.now + timedelta(minutes=5))
        self.make_task(self.now + timedelta(days=5))
        self.make_task(self.now - timedelta(days=1), status=Task.Status.COMPLETED)

        self.assertEqual(create_due_date_notifications(self.now), 2)

        self.assertEqual(Notification.objects.get(entity_id=overdue.pk).type, 'overdue')
        self.assertEqual(Notification.objects.get(entity_id=overdue.pk).priority, 'urgent')
        self.assertEqual(Notification.objects.get(entity_id=upcoming.pk).type, 'due_date')

    def test_tickets_and_work_orders(self):
        Ticket.objects.create(
            title='Router down', description='Office', assigned_to=self.bob, due_date=self.now,
        )
        WorkOrder.objects.create(
            customer_name='Mr Grant', telephone='1', email='g@example.com', item_description='PC',
            issue='Slow', status=WorkOrder.Status.IN_PROGRESS, assigned_to=self.bob, due_date=self.now,
        )
        WorkOrder.objects.create(
            customer_name='Mr Reid', telephone='1', email='r@example.com', item_description='PC',
            issue='Slow', status=WorkOrder.Status.RECEIVED, assigned_to=self.bob, due_date=self.now,
        )
        self.assertEqual(create_due_date_notifications(self.now + timedelta(seconds=1)), 2)

    def test_unassigned_skipped(self):
        Task.objects.create(title='Nobody', due_date=self.now)
        self.assertEqual(create_due_date_notifications(self.now), 0)

    def test_not_repeated_while_unread(self):
        self.make_task(self.now - timedelta(hours=1))
        self.assertEqual(create_due_date_notifications(self.now), 1)
        self.assertEqual(create_due_date_notifications(self.now), 0)

        Notification.objects.update(is_read=True)
        self.assertEqual(create_due_date_notifications(self.now), 1)

    def test_purge(self):
        old = Notification.objects.create(user=self.bob, type='system_alert', title='Old', message='m')
        Notification.objects.filter(pk=old.pk).update(created_at=self.now - timedelta(days=31))
        Notification.objects.create(user=self.bob, type='system_alert', title='New', message='m')

        self.assertEqual(purge_old_notifications(self.now), 1)
        self.assertEqual(list(Notification.objects.values_list('title', flat=True)), ['New'])
