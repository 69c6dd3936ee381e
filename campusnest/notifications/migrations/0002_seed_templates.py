from django.db import migrations


def seed_templates(apps, schema_editor):
    from notifications.templates_data import TEMPLATES

    NotificationTemplate = apps.get_model("notifications", "NotificationTemplate")
    for t in TEMPLATES:
        NotificationTemplate.objects.get_or_create(
            key=t["key"],
            defaults={
                "subject": t["subject"],
                "body": t["body"],
                "channel": "email",
                "transactional": t["transactional"],
                "is_active": True,
            },
        )


class Migration(migrations.Migration):
    dependencies = [
        ("notifications", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_templates, migrations.RunPython.noop),
    ]
