from django.core.management.base import BaseCommand

from notifications.models import NotificationTemplate
from notifications.templates_data import TEMPLATES


class Command(BaseCommand):
    help = "Seed default notification templates"

    def add_arguments(self, parser):
        parser.add_argument(
            "--overwrite",
            action="store_true",
            help="Replace subject/body of templates that already exist.",
        )

    def handle(self, *args, **options):
        created = 0
        updated = 0
        for t in TEMPLATES:
            defaults = {
                "subject": t["subject"],
                "body": t["body"],
                "channel": "email",
                "transactional": t["transactional"],
                "is_active": True,
            }
            if options["overwrite"]:
                _, was_created = NotificationTemplate.objects.update_or_create(key=t["key"], defaults=defaults)
                updated += 0 if was_created else 1
            else:
                _, was_created = NotificationTemplate.objects.get_or_create(key=t["key"], defaults=defaults)
            if was_created:
                created += 1
        self.stdout.write(self.style.SUCCESS(f"Seeded templates. New created: {created}, updated: {updated}"))
