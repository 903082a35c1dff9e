from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from accounts.models import CustomUser


class Command(BaseCommand):
    help = "Create the bootstrap administrator account if it does not exist."

    def add_arguments(self, parser):
        parser.add_argument("--email", default=settings.ADMIN_EMAIL)
        parser.add_argument("--username", default="admin")
        parser.add_argument("--password", default=settings.ADMIN_PASSWORD)

    def handle(self, *args, **options):
        email = options["email"]
        if CustomUser.objects.filter(email__iexact=email).exists():
            self.stdout.write("Admin user already exists")
            return
        if not options["password"]:
            raise CommandError("Set ADMIN_PASSWORD or pass --password.")

        user = CustomUser.objects.create_user(
            username=options["username"],
            email=email,
            password=options["password"],
            first_name="Administrator",
            role=CustomUser.ADMINISTRATOR,
        )
        self.stdout.write(self.style.SUCCESS(f"Admin user created: {user.email}"))
