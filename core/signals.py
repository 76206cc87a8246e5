"""
Email notifications for new purchase requests and help requests.

Mail goes out only after the surrounding database transaction commits, so
a rolled-back request never produces an email. Delivery failures are logged
and do not affect the request itself.
"""

import logging

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import HelpRequest, Transaction

logger = logging.getLogger(__name__)


def _send(subject, message, recipients):
    try:
        send_mail(
            subject,
            message,
            settings.DEFAULT_FROM_EMAIL,
            recipients,
            fail_silently=False,
        )
    except Exception as e:
        logger.error(
            f"Failed to send notification email. Subject: {subject}, "
            f"Recipients: {recipients}, Error: {str(e)}",
            exc_info=True
        )
        return False

    logger.info(f"Notification email sent. Subject: {subject}, Recipients: {recipients}")
    return True


@receiver(post_save, sender=Transaction)
def notify_seller_of_purchase_request(sender, instance, created, **kwargs):
    """
    Tell the seller that someone wants their book.

    Only fires for newly created transactions; status changes are not
    announced.
    """
    if not created:
        return

    book = instance.book
    buyer = instance.buyer
    seller = instance.seller

    subject = f'New request for "{book.name}"'
    message = (
        f"Hello {seller.display_name},\n\n"
        f"{buyer.display_name} ({buyer.email}) would like to get your book "
        f'"{book.name}".\n'
    )
    if buyer.mobile:
        message += f"You can reach them at {buyer.mobile}.\n"
    message += "\nThe request stays pending until it is completed or rejected.\n"

    transaction.on_commit(lambda: _send(subject, message, [seller.email]))


@receiver(post_save, sender=HelpRequest)
def notify_support_of_help_request(sender, instance, created, **kwargs):
    """Forward a new help request to the support inbox."""
    if not created:
        return

    user = instance.user
    subject = f'[Help][{instance.get_issue_type_display()}] {instance.subject}'
    message = (
        f"From: {user.display_name} ({user.email})\n"
        f"Issue type: {instance.get_issue_type_display()}\n"
        f"User agent: {instance.user_agent or 'unknown'}\n\n"
        f"{instance.description}\n"
    )

    transaction.on_commit(lambda: _send(subject, message, [settings.SUPPORT_EMAIL]))
