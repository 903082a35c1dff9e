from django.core.management.base import BaseCommand

from operations.services import (
    NOTIFICATION_RETENTION_DAYS,
    create_due_date_notifications,
    purge_old_notifications,
)


class Command(BaseCommand):
    help = (
        "Notify assignees of tasks, tickets and work orders due before the end "
        "of tomorrow, and purge old notifications. Run it from cron."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--retention-days",
            type=int,
            default=NOTIFICATION_RETENTION_DAYS,
            help="Delete notifications older than this many days.",
        )

    def handle(self, *args, **options):
        created = create_due_date_notifications()
        purged = purge_old_notifications(days=options["retention_days"])
        self.stdout.write(self.style.SUCCESS(
            f"Created {created} due date notifications, purged {purged} old notifications"
        ))
