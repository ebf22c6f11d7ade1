"""Django app configuration for stock opname."""

from django.apps import AppConfig


class OpnameConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "opname"
    verbose_name = "Stock opname"
