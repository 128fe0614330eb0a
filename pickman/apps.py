"""Django app configuration for Pickman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class PickmanConfig(AppConfig):
    """Configuration for Pickman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "pickman"
    verbose_name = _("Fulfillment")
