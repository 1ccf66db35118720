"""WSGI entrypoint (gunicorn/uwsgi: `api_scaffold.wsgi:application`)."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "api_scaffold.settings.dev")

application = get_wsgi_application()
