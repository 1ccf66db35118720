"""
Project URL configuration.

Surfaces
--------
- `/up` — application health (DB connectivity), outside the API group.
- `/admin/` — Django admin (back-office only; issue API tokens here).
- `/api/v1/` — versioned API: `health`, `user`, OpenAPI `schema` and `docs`.
- `/api/_init/` — deployment init-checks (MySQL writer/reader probes).
- `/api`, `/api/` — 404 asking for a version segment.

Fallbacks
---------
- Unknown paths under `/api/v1/`, `/api/_init/` and `/api/` each answer their
  own JSON 404 envelope, so they are registered after the concrete routes.
- `handler400/403/404/500` render JSON for errors outside DRF views.
"""

from __future__ import annotations

from django.contrib import admin
from django.urls import include, path, re_path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from accounts.views import UserView
from core import views as core_views

v1_patterns = [
    path("health", core_views.HealthView.as_view(), name="health"),
    path("user", UserView.as_view(), name="user"),
    # OpenAPI / Docs
    path("schema", SpectacularAPIView.as_view(), name="schema"),
    path("docs", SpectacularSwaggerView.as_view(url_name="v1:schema"), name="swagger-ui"),
    # v1-scoped fallback (typos under /api/v1/*)
    re_path(r"^(?P<rest>.*)$", core_views.v1_fallback, name="fallback"),
]

urlpatterns = [
    path("up", core_views.health, name="health"),
    path("admin/", admin.site.urls),

    path("api/v1/", include((v1_patterns, "v1"), namespace="v1")),
    path("api/_init/", include("initcheck.urls", namespace="init")),

    # Explicitly handle /api and /api/
    path("api", core_views.api_root, name="api-root"),
    path("api/", core_views.api_root),
    # Catch-all for anything else under /api/*
    re_path(r"^api/(?P<rest>.*)$", core_views.api_fallback, name="api-fallback"),
]

handler400 = "core.views.bad_request"
handler403 = "core.views.permission_denied"
handler404 = "core.views.page_not_found"
handler500 = "core.views.server_error"
