# campusnest/campusnest/celery_app.py
import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "campusnest.settings")

app = Celery("campusnest")

# Read CELERY_* settings from Django settings.py (namespace)
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks.py in installed apps
app.autodiscover_tasks()
