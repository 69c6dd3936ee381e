from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import call_command

from notifications.models import DeliveryAttempt, NotificationTemplate, OutboundNotification
from notifications.services import queue_email
from notifications.tasks import send_due_notifications

pytestmark = pytest.mark.django_db


def test_templates_are_seeded_by_migration():
    keys = set(NotificationTemplate.objects.values_list("key", flat=True))
    assert {"auth.confirm_signup", "auth.password_reset", "booking.submitted"} <= keys


def test_queue_email_needs_an_active_template(user):
    assert queue_email(user=user, template_key="no.such.template") is None

    NotificationTemplate.objects.filter(key="booking.submitted").update(is_active=False)
    assert queue_email(user=user, template_key="booking.submitted") is None
    assert not OutboundNotification.objects.exists()


def test_queue_email_does_not_send(user):
    with patch("notifications.services.send_mail") as sm:
        n = queue_email(user=user, template_key="auth.password_reset", context={"reset_url": "http://x.test"})
    assert n.status == OutboundNotification.STATUS_QUEUED
    sm.assert_not_called()


@patch("notifications.services.send_mail", return_value=1)
def test_due_notifications_are_rendered_and_sent(sm, user):
    queue_email(
        user=user,
        template_key="auth.password_reset",
        context={"user": {"full_name": "Alice Student"}, "reset_url": "http://frontend.test/r?t=1"},
    )

    summary = send_due_notifications()

    assert summary["sent"] == 1
    subject, body, _, recipients = sm.call_args.args
    assert subject == "Reset your CampusNest password"
    assert "Hi Alice Student" in body
    assert "http://frontend.test/r?t=1" in body
    assert recipients == [user.email]

    n = OutboundNotification.objects.get()
    assert n.status == OutboundNotification.STATUS_SENT
    assert n.sent_at is not None
    assert DeliveryAttempt.objects.get(notification=n).success


@patch("notifications.services.send_mail", return_value=1)
def test_opted_out_user_is_skipped_for_non_transactional(sm, user):
    user.profile.notifications_enabled = False
    user.profile.save()
    queue_email(user=user, template_key="booking.submitted", context={"property": {"name": "X"}})
    queue_email(user=user, template_key="auth.password_reset", context={})

    summary = send_due_notifications()

    assert summary["skipped"] == 1
    assert summary["sent"] == 1
    assert sm.call_count == 1
    skipped = OutboundNotification.objects.get(template_key="booking.submitted")
    assert skipped.status == OutboundNotification.STATUS_SKIPPED


def test_provider_error_marks_failed(user):
    queue_email(user=user, template_key="auth.password_reset", context={})
    with patch("notifications.services.send_mail", side_effect=OSError("smtp down")):
        summary = send_due_notifications()

    assert summary["failed"] == 1
    n = OutboundNotification.objects.get()
    assert n.status == OutboundNotification.STATUS_FAILED
    assert n.error == "smtp down"


@patch("notifications.services.send_mail", return_value=1)
def test_sent_notifications_are_not_resent(sm, user):
    queue_email(user=user, template_key="auth.password_reset", context={})
    send_due_notifications()
    send_due_notifications()
    assert sm.call_count == 1


def test_seed_command_is_idempotent():
    out = StringIO()
    call_command("seed_notification_templates", stdout=out)
    assert "New created: 0" in out.getvalue()

    NotificationTemplate.objects.filter(key="booking.submitted").update(subject="edited")
    call_command("seed_notification_templates", "--overwrite", stdout=StringIO())
    assert NotificationTemplate.objects.get(key="booking.submitted").subject.startswith("Booking request placed")
