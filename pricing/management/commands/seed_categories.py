from django.core.management.base import BaseCommand

from pricing.services import seed_default_categories


class Command(BaseCommand):
    help = "Create the default product categories when none exist."

    def handle(self, *args, **options):
        created = seed_default_categories()
        if created:
            self.stdout.write(self.style.SUCCESS(f"Created {created} categories"))
        else:
            self.stdout.write("Categories already exist")
