from django.apps import AppConfig


class BloodbankConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'bloodbank'

    def ready(self):  # pragma: no cover - import side-effects
        from . import signals  # noqa: F401
