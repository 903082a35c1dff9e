"""
Forms for account registration and user administration.
"""
from django import forms
from django.conf import settings
from django.contrib.auth.forms import UserCreationForm

from .models import CustomUser

MIN_PASSWORD_LENGTH = 8


class CustomUserCreationForm(UserCreationForm):
    """Self-service registration, restricted to company email domains."""

    email = forms.EmailField(required=True)
    first_name = forms.CharField(max_length=150, required=False)
    last_name = forms.CharField(max_length=150, required=False)

    class Meta(UserCreationForm.Meta):
        model = CustomUser
        fields = ("username", "email", "first_name", "last_name")

    def clean_email(self):
        email = self.cleaned_data["email"].lower()
        domains = settings.ALLOWED_REGISTRATION_DOMAINS
        if not any(email.endswith(domain) for domain in domains):
            raise forms.ValidationError(
                f"Email must be from {' or '.join(domains)} domain."
            )
        if CustomUser.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError("User already exists with this email.")
        return email

    def save(self, commit=True):
        user = super().save(commit=False)
        user.role = CustomUser.USER
        if commit:
            user.save()
        return user


class AdminUserCreateForm(forms.ModelForm):
    """User creation by an administrator: any domain, explicit role."""

    password = forms.CharField(min_length=MIN_PASSWORD_LENGTH, strip=False)

    class Meta:
        model = CustomUser
        fields = ("username", "email", "first_name", "last_name", "role", "requires_admin_approval")

    def clean_email(self):
        email = self.cleaned_data["email"].lower()
        if CustomUser.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError("User already exists with this email.")
        return email

    def save(self, commit=True):
        user = super().save(commit=False)
        user.set_password(self.cleaned_data["password"])
        if commit:
            user.save()
        return user


class AdminUserUpdateForm(forms.ModelForm):
    """Partial updates of role, status and names."""

    class Meta:
        model = CustomUser
        fields = ("first_name", "last_name", "role", "is_active", "requires_admin_approval")
