"""
Test settings (extends dev).

- Dummy cache: DRF throttles never accumulate history across tests.
- Init-check reads use the writer alias: `replica` mirrors `default` in tests,
  but a second connection cannot see rows written inside a test transaction.
- Fast password hashing.
"""

from .dev import *  # noqa

CACHES = {"default": {"BACKEND": "django.core.cache.backends.dummy.DummyCache"}}

INIT_CHECK_READ_DATABASE = "default"

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
