from django.apps import AppConfig


class HousingAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "housing_app"

    def ready(self):
        # import signals so receivers are registered
        from . import signals  # noqa: F401
