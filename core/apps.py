"""AppConfig for the `core` app.

Scope
-----
Shared infrastructure used across the project:
- request admission gate (`core.admission`) and its middleware adapter,
- observability middleware and logging helpers (request-id),
- health probes, API fallbacks and JSON error handlers (`core.views`).
"""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Standard Django AppConfig; keep defaults lightweight."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
