"""
AppConfig for the `initcheck` app.

Scope
-----
Deployment diagnostics mounted under `/api/_init/`: writer/reader hostnames,
write-then-read round trips through the two database aliases, and replica lag.
"""

from django.apps import AppConfig


class InitCheckConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "initcheck"
    verbose_name = "Init checks"
