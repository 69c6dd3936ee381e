import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.db import transaction
from django.template import Context, Template
from django.utils import timezone

from .models import DeliveryAttempt, NotificationTemplate, OutboundNotification

logger = logging.getLogger(__name__)


def send_mail(subject, message, from_email, recipient_list, *, html_message=None):
    """
    Single wrapper used across the project (tests patch this).
    """
    email = EmailMultiAlternatives(
        subject=subject,
        body=message,
        from_email=from_email,
        to=recipient_list,
    )

    if html_message:
        email.attach_alternative(html_message, "text/html")

    return email.send()


def queue_email(*, user, template_key: str, context: dict | None = None):
    """
    Queues an email in the notifications pipeline (does NOT send immediately).
    Only queues if an active email template exists for the key.
    """
    template = NotificationTemplate.objects.filter(
        key=template_key,
        channel=NotificationTemplate.CHANNEL_EMAIL,
        is_active=True,
    ).first()
    if not template:
        logger.info("no active template %s; email not queued", template_key)
        return None

    return OutboundNotification.objects.create(
        user=user,
        channel=NotificationTemplate.CHANNEL_EMAIL,
        template_key=template_key,
        context=context or {},
    )


def _email_allowed(user, template: NotificationTemplate) -> bool:
    if template.transactional:
        return True
    profile = getattr(user, "profile", None)
    return profile is None or profile.notifications_enabled


class NotificationService:
    @staticmethod
    def render(template_obj: NotificationTemplate, context_dict: dict):
        ctx = Context(context_dict or {})
        return Template(template_obj.subject or "").render(ctx), Template(template_obj.body or "").render(ctx)

    @staticmethod
    @transaction.atomic
    def deliver(notification: OutboundNotification) -> str:
        user = notification.user
        tpl = NotificationTemplate.objects.filter(
            key=notification.template_key,
            channel=notification.channel,
            is_active=True,
        ).first()

        if not tpl:
            notification.status = OutboundNotification.STATUS_FAILED
            notification.error = f"Template not found: {notification.template_key}"
            notification.save(update_fields=["status", "error"])
            return notification.status

        if not user.email or not _email_allowed(user, tpl):
            notification.status = OutboundNotification.STATUS_SKIPPED
            notification.error = "Email disabled or missing address"
            notification.save(update_fields=["status", "error"])
            DeliveryAttempt.objects.create(
                notification=notification, provider="email", success=False, response="skipped: prefs/email"
            )
            return notification.status

        subject, body = NotificationService.render(tpl, notification.context)
        from_email = getattr(settings, "DEFAULT_FROM_EMAIL", None) or "noreply@campusnest.in"

        try:
            sent = send_mail(subject, body, from_email, [user.email])
        except Exception as exc:
            logger.warning("email %s to user %s failed: %s", notification.template_key, user.pk, exc)
            DeliveryAttempt.objects.create(
                notification=notification, provider="email", success=False, response=str(exc)
            )
            notification.status = OutboundNotification.STATUS_FAILED
            notification.error = str(exc)
            notification.save(update_fields=["status", "error"])
            return notification.status

        DeliveryAttempt.objects.create(
            notification=notification, provider="email", success=bool(sent), response=f"sent={sent}"
        )
        if sent:
            notification.status = OutboundNotification.STATUS_SENT
            notification.sent_at = timezone.now()
            notification.error = ""
            notification.save(update_fields=["status", "sent_at", "error"])
        else:
            notification.status = OutboundNotification.STATUS_FAILED
            notification.error = "Provider reported failure"
            notification.save(update_fields=["status", "error"])
        return notification.status
