from celery import shared_task
from django.utils import timezone

from notifications.models import OutboundNotification
from notifications.services import NotificationService


@shared_task
def send_due_notifications() -> dict:
    """
    Deliver all queued email notifications scheduled up to now.

    Returns a small summary dict for tests/monitoring.
    """
    now = timezone.now()
    qs = (
        OutboundNotification.objects.select_related("user", "user__profile")
        .filter(scheduled_for__lte=now, channel="email")
        .exclude(status__in=[OutboundNotification.STATUS_SENT, OutboundNotification.STATUS_SKIPPED])
        .order_by("scheduled_for", "pk")
    )

    summary = {"sent": 0, "failed": 0, "skipped": 0}
    for notif in qs:
        status = NotificationService.deliver(notif)
        summary[status] = summary.get(status, 0) + 1
    return summary
