import logging

from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from housing_app.models import Booking
from housing_app.services import tables
from housing_app.services.realtime import hub
from notifications.services import queue_email

logger = logging.getLogger(__name__)


def _table_changed(sender, instance, created=None, **kwargs):
    table = tables.table_for_model(sender)
    if table is None:
        return
    row = tables.serialize_row(instance)
    if kwargs.get("signal") is post_delete:
        hub.broadcast(table, "DELETE", old=row)
    elif created:
        hub.broadcast(table, "INSERT", new=row)
    else:
        hub.broadcast(table, "UPDATE", new=row, old={"id": instance.pk})


def connect_table_signals():
    for table in tables.TABLES:
        model = tables.get_model(table)
        post_save.connect(_table_changed, sender=model, dispatch_uid=f"realtime-save-{table}")
        post_delete.connect(_table_changed, sender=model, dispatch_uid=f"realtime-delete-{table}")


connect_table_signals()


@receiver(post_save, sender=Booking)
def booking_created_queue_email(sender, instance: Booking, created, **kwargs):
    """
    When a new booking is created, queue the booking.submitted email
    to the student who made it.
    """
    if not created:
        return

    booker = instance.user
    queue_email(
        user=booker,
        template_key="booking.submitted",
        context={
            "user": {"first_name": booker.first_name or booker.email},
            "property": {"name": instance.property.name},
            "booking_id": instance.pk,
            "check_in_date": str(instance.check_in_date),
            "total_amount": str(instance.total_amount),
        },
    )
