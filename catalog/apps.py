"""Django app configuration for catalog."""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Products, colors, sizes and the variants stock is keyed on."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog"
