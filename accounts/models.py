from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    """
    Console user with a business role.

    Administrators manage categories, exchange rates, users and session
    approval; regular users work the pricing calculators and records.
    """

    ADMINISTRATOR = "administrator"
    USER = "user"
    ROLE_CHOICES = [
        (ADMINISTRATOR, "Administrator"),
        (USER, "User"),
    ]

    email = models.EmailField("email address", unique=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=USER)
    requires_admin_approval = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_administrator(self):
        return self.role == self.ADMINISTRATOR

    @property
    def display_name(self):
        return self.get_full_name() or self.username

    def to_dict(self):
        """Public representation, never includes the password hash."""
        return {
            "id": self.pk,
            "username": self.username,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "is_active": self.is_active,
            "requires_admin_approval": self.requires_admin_approval,
            "date_joined": self.date_joined.isoformat() if self.date_joined else None,
        }
