"""
HTML email delivery shared by the pricing reports and work order updates.
"""
import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when a message could not be handed to the mail server."""


def send_html_mail(subject: str, template_name: str, context: dict, recipient: str):
    """
    Render ``template_name`` and send it with a plain-text alternative.

    Raises:
        EmailDeliveryError: If the mail backend fails
    """
    html = render_to_string(template_name, context)
    try:
        send_mail(
            subject=subject,
            message=strip_tags(html),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient],
            html_message=html,
        )
    except (SMTPException, OSError) as e:
        logger.error("Failed to send '%s' to %s: %s", subject, recipient, e)
        raise EmailDeliveryError(str(e)) from e
    logger.info("Sent '%s' to %s", subject, recipient)
