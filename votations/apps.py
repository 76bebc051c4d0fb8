from django.apps import AppConfig


class VotationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'votations'
    verbose_name = 'Votations'
