from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from accounts.models import CustomUser
from operations.models import Notification, Task


class NotifyDueItemsCommandTests(TestCase):

    def setUp(self):
        self.user = CustomUser.objects.create_user(
            username='tech', email='tech@fenntechltd.com', password='testpass123'
        )

    def test_creates_and_purges(self):
        Task.objects.create(
            title='Call supplier', assigned_to=self.user, due_date=timezone.now() - timedelta(hours=1)
        )
        stale = Notification.objects.create(user=self.user, type='system_alert', title='Old', message='m')
        Notification.objects.filter(pk=stale.pk).update(created_at=timezone.now() - timedelta(days=10))

        out = StringIO()
        call_command('notify_due_items', retention_days=7, stdout=out)

        self.assertFalse(Notification.objects.filter(pk=stale.pk).exists())
        self.assertEqual(Notification.objects.get().type, 'overdue')
        self.assertIn('1', out.getvalue())
