from django.apps import AppConfig


class CampConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'camp'
