import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from housing_app.models import Profile, ROLE_ADMIN


class Command(BaseCommand):
    help = "Create or reset the platform admin (superuser with a confirmed admin profile)"

    def add_arguments(self, parser):
        parser.add_argument("--force", action="store_true", help="Run even when CREATE_ADMIN is not set")

    def handle(self, *args, **options):
        if os.environ.get("CREATE_ADMIN") != "1" and not options["force"]:
            self.stdout.write("CREATE_ADMIN not enabled; skipping.")
            return

        email = os.environ.get("ADMIN_EMAIL", "admin@campusnest.in").lower()
        password = os.environ.get("ADMIN_PASSWORD", "campusnest_admin_123")
        full_name = os.environ.get("ADMIN_FULL_NAME", "CampusNest Admin")

        User = get_user_model()
        user = User.objects.filter(username=email).first()
        created = user is None
        if created:
            user = User.objects.create_superuser(username=email, email=email, password=password)
        else:
            user.email = email
            user.is_staff = True
            user.is_superuser = True
            user.set_password(password)
            user.save()

        Profile.objects.update_or_create(
            user=user,
            defaults={"email": email, "full_name": full_name, "role": ROLE_ADMIN, "email_confirmed": True},
        )
        self.stdout.write(f"Admin {'created' if created else 'password reset'}: {email}")
