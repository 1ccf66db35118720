"""Core utility views: health probes, API fallbacks and JSON error handlers.

Exposes:
- `health`: `/up` readiness endpoint; checks DB connectivity of the default
  alias and returns a minimal JSON payload (load balancers, k8s probes).
- `HealthView`: `/api/v1/health`, a static liveness answer for API clients.
- `api_root` / `api_fallback` / `v1_fallback` / `init_fallback`: scoped 404
  envelopes for unknown paths under `/api`, `/api/v1` and `/api/_init`.
- `bad_request` / `permission_denied` / `page_not_found` / `server_error`:
  JSON replacements for Django's HTML `handler400/403/404/500`.

Every response here is JSON, including errors raised outside DRF views.
"""

from __future__ import annotations

from django.conf import settings
from django.db import connection
from django.http import JsonResponse
from django.utils.timezone import now
from django.views.decorators.csrf import csrf_exempt
from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import permissions, serializers
from rest_framework.response import Response
from rest_framework.views import APIView


def health(request):
    """
    Lightweight health endpoint (no auth).

    Returns:
        200 JSON when the DB is reachable; 503 JSON when a DB error is raised.
    """
    status = 200
    payload = {
        "app": settings.APP_NAME,
        "time": now().isoformat(),
        "db": "ok",
    }
    try:
        connection.ensure_connection()
    except Exception as exc:
        payload["db"] = "down"
        payload["error"] = str(exc)
        status = 503
    return JsonResponse(payload, status=status)


class HealthView(APIView):
    """Unauthenticated liveness check for the v1 surface."""
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    @extend_schema(
        operation_id="v1_health",
        summary="API liveness",
        responses={200: inline_serializer(name="Health", fields={"ok": serializers.BooleanField()})},
    )
    def get(self, request, *args, **kwargs):
        return Response({"ok": True})


def _not_found(error: str, message: str | None = None) -> JsonResponse:
    payload = {"error": error}
    if message is not None:
        payload["message"] = message
    return JsonResponse(payload, status=404)


@csrf_exempt
def api_root(request):
    """`/api` and `/api/`: a version segment is mandatory."""
    return _not_found("API version required", "Please use /api/v1/...")


@csrf_exempt
def api_fallback(request, rest=""):
    return _not_found("Not Found")


@csrf_exempt
def v1_fallback(request, rest=""):
    return _not_found("Not Found", "Unknown v1 endpoint.")


@csrf_exempt
def init_fallback(request, rest=""):
    return _not_found("Not Found", "Unknown _init endpoint.")


# ---------------------------------------------------------------------
# JSON error handlers (wired in api_scaffold.urls)
# ---------------------------------------------------------------------
def bad_request(request, exception=None):
    return JsonResponse({"error": "Bad Request"}, status=400)


def permission_denied(request, exception=None):
    return JsonResponse({"error": "Forbidden"}, status=403)


def page_not_found(request, exception=None):
    return _not_found("Not Found")


def server_error(request):
    return JsonResponse({"error": "Server Error"}, status=500)

