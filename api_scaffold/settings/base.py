"""
Base Django settings for the API scaffold.

Layout
------
- Split settings: `base.py` (shared), `dev.py` (developer overrides), `prod.py`
  (hardened), `test.py` (test runner).
- `environ` is used to source configuration; a local `.env` is optional.

API stack
---------
- Django 5.x + DRF + drf-spectacular.
- Token (personal access token) and session authentication; unauthenticated
  requests get 401 with `WWW-Authenticate: Token`.
- Throttling: global (`anon`, `user`) plus the `init-check` scope.

Request admission
-----------------
- `core.middleware.EnsureJsonRequestMiddleware` rejects POST/PUT/PATCH requests of
  the API group that are not JSON (415) or carry malformed JSON (400).
  Scope: `JSON_REQUEST_PATHS`; exemptions: `JSON_REQUEST_EXCEPT_PATHS`.

Databases
---------
- `default` is the writer (`DATABASE_URL`); `replica` is the reader
  (`DATABASE_READ_URL`, falling back to the writer). The init-check endpoints
  address each alias explicitly; nothing else is routed to the replica.
- MySQL TLS client material is attached per alias from `DB_WRITE_TLS_*` /
  `DB_READ_TLS_*`.

Observability
-------------
- `core.middleware.RequestIDLogMiddleware` logs one structured line per request.
"""

from pathlib import Path

import environ

# ---------------------------------------------------------------------
# Paths & Env
# ---------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env = environ.Env(DEBUG=(bool, False))
env_file = BASE_DIR / ".env"
if env_file.exists():
    environ.Env.read_env(str(env_file))

# ---------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------
APP_NAME = env("APP_NAME", default="api-scaffold")
SECRET_KEY = env("SECRET_KEY", default="dev-insecure-change-me")
DEBUG = env.bool("DEBUG", False)

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["127.0.0.1", "localhost"])
CSRF_TRUSTED_ORIGINS = env.list(
    "CSRF_TRUSTED_ORIGINS",
    default=["http://127.0.0.1:8000", "http://localhost:8000"],
)

# ---------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------
INSTALLED_APPS = [
    # Django apps
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Third-party
    "rest_framework",
    "rest_framework.authtoken",
    "drf_spectacular",

    # Local apps
    "accounts",
    "core",
    "initcheck",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    # Observability: request-id + structured request log (one line per request).
    # Outermost custom middleware so gate rejections are logged and tagged too.
    "core.middleware.RequestIDLogMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    # Reject non-JSON writes to the API group before any parsing
    "core.middleware.EnsureJsonRequestMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "api_scaffold.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "api_scaffold.wsgi.application"

# ---------------------------------------------------------------------
# Database (writer + reader)
# ---------------------------------------------------------------------
DATABASE_URL = env("DATABASE_URL", default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}")


def mysql_tls_options(prefix: str) -> dict:
    """mysqlclient `OPTIONS` for one alias; empty when no TLS material is configured."""
    ssl = {
        key: env(f"{prefix}_TLS_{key.upper()}", default=None)
        for key in ("ca", "cert", "key")
    }
    ssl = {k: v for k, v in ssl.items() if v}
    options = {}
    if ssl:
        options["ssl"] = ssl
        if env.bool("DB_TLS_VERIFY_SERVER_CERT", default=False):
            options["ssl_mode"] = "VERIFY_IDENTITY"
    return options


def database_config(url: str, tls_prefix: str) -> dict:
    config = env.db_url_config(url)
    if config["ENGINE"].endswith("mysql"):
        options = config.setdefault("OPTIONS", {})
        options.setdefault("charset", env("DB_CHARSET", default="utf8mb4"))
        options.update(mysql_tls_options(tls_prefix))
    return config


DATABASES = {
    "default": database_config(DATABASE_URL, "DB_WRITE"),
    "replica": database_config(env("DATABASE_READ_URL", default=DATABASE_URL), "DB_READ"),
}
# Tests read through the writer's test database instead of creating a second one.
DATABASES["replica"]["TEST"] = {"MIRROR": "default"}

INIT_CHECK_WRITE_DATABASE = env("INIT_CHECK_WRITE_DATABASE", default="default")
INIT_CHECK_READ_DATABASE = env("INIT_CHECK_READ_DATABASE", default="replica")

# ---------------------------------------------------------------------
# Cache (locmem by default; e.g. CACHE_URL=rediscache://host:6379/0)
# ---------------------------------------------------------------------
CACHES = {
    "default": env.cache("CACHE_URL", default="locmemcache://"),
}
CACHES["default"]["KEY_PREFIX"] = env(
    "CACHE_PREFIX", default=APP_NAME.replace("-", "_") + "_cache_"
)

# ---------------------------------------------------------------------
# Password validation
# ---------------------------------------------------------------------
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# ---------------------------------------------------------------------
# Internationalization
# ---------------------------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------------------------------------------------------------------
# Request admission (JSON bodies on POST/PUT/PATCH)
# ---------------------------------------------------------------------
# Glob patterns over the path without leading/trailing slashes; `*` spans segments.
JSON_REQUEST_PATHS = env.list("JSON_REQUEST_PATHS", default=["api", "api/*"])
JSON_REQUEST_EXCEPT_PATHS = env.list(
    "JSON_REQUEST_EXCEPT_PATHS",
    default=[
        "api/v1/files/*",  # multipart/form-data uploads
        "api/v1/webhooks/*",
    ],
)

# ---------------------------------------------------------------------
# DRF & API Schema
# ---------------------------------------------------------------------
REST_FRAMEWORK = {
    # Token first: its `WWW-Authenticate` header turns anonymous access into 401.
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.TokenAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
        "rest_framework.throttling.ScopedRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "user": env("DRF_THROTTLE_RATE_USER", default="120/min"),
        "anon": env("DRF_THROTTLE_RATE_ANON", default="60/min"),
        "init-check": env("DRF_THROTTLE_RATE_INIT_CHECK", default="30/min"),
    },
}

SPECTACULAR_SETTINGS = {
    "TITLE": "API Scaffold",
    "DESCRIPTION": "Versioned JSON API skeleton with deployment init-checks.",
    "VERSION": "0.1.0",
    "SERVERS": [
        {"url": "http://127.0.0.1:8000", "description": "Local Dev"},
    ],
    "LICENSE": {"name": "MIT"},
    "SWAGGER_UI_SETTINGS": {"persistAuthorization": True},
}

# ---------------------------------------------------------------------
# Security defaults (safe baseline; prod hardening in prod.py)
# ---------------------------------------------------------------------
SESSION_COOKIE_SAMESITE = "Lax"
CSRF_COOKIE_SAMESITE = "Lax"
X_FRAME_OPTIONS = "DENY"

# ---------------------------------------------------------------------
# Auth model
# ---------------------------------------------------------------------
AUTH_USER_MODEL = "accounts.User"

# ---------------------------------------------------------------------
# Logging (observability)
# ---------------------------------------------------------------------
# RequestIDFilter injects `request_id` even for logs outside HTTP contexts;
# KeyValueFormatter renders request-line attributes only when present.
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "request_id": {"()": "core.logging.RequestIDFilter"},
    },
    "formatters": {
        "structured": {"()": "core.logging.KeyValueFormatter"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "filters": ["request_id"],
            "formatter": "structured",
        },
    },
    "loggers": {
        # One line per request (core.middleware.RequestIDLogMiddleware)
        "api_scaffold": {
            "handlers": ["console"],
            "level": env("LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
        "initcheck": {
            "handlers": ["console"],
            "level": env("LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
    },
}
