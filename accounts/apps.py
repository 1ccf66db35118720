"""Django AppConfig for the accounts app.

Houses the custom user model (`accounts.User`) and the authenticated user
endpoint of the v1 API.
"""

from django.apps import AppConfig


class AccountsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "accounts"
