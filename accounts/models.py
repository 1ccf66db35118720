"""Custom user model for the API.

- Defined up front so profile fields can be added later without swapping
  `AUTH_USER_MODEL` on a live database.
- Behaves exactly like Django's built-in user (`AbstractUser`); API tokens
  (`rest_framework.authtoken`) reference it through `AUTH_USER_MODEL`.
"""

from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Project user; Django defaults for now."""
    pass
