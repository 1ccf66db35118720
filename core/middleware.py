"""
Core middleware: request admission and observability.

Components
----------
- `EnsureJsonRequestMiddleware`:
    * Transport adapter for `core.admission.evaluate`.
    * Applies to paths matching `JSON_REQUEST_PATHS` (the API group, by default).
    * Exempt paths come from `JSON_REQUEST_EXCEPT_PATHS` (uploads, webhooks).
    * Rejections are returned as pre-rendered DRF JSON responses
      (`{"error": ..., "message": ...}`) with status 415 or 400.

- `RequestIDLogMiddleware`:
    * Reads `X-Request-ID` (or generates one) and reflects it in the response.
    * Stores the id in a contextvar for use by `core.logging.RequestIDFilter`.
    * Logs one structured line per request including latency (ms) and user id.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Callable, Mapping

from django.conf import settings
from django.http import HttpRequest, HttpResponse
from rest_framework.renderers import JSONRenderer
from rest_framework.response import Response

from .admission import PathPatterns, Reject, evaluate, normalize_path
from .logging import request_id_var

logger = logging.getLogger("api_scaffold.request")
admission_logger = logging.getLogger("api_scaffold.admission")

DEFAULT_JSON_REQUEST_PATHS = ("api", "api/*")
DEFAULT_JSON_REQUEST_EXCEPT_PATHS = ("api/v1/files/*", "api/v1/webhooks/*")

# Allow simple, safe request-id tokens coming from clients
_ALLOWED_CHARS = re.compile(r"^[A-Za-z0-9._\-]{1,200}$")


def _coerce_request_id(raw: str | None) -> str:
    """
    Coerce a client-provided request id to a safe token, or generate a new one.
    """
    if raw and _ALLOWED_CHARS.match(raw):
        return raw
    # uuid4 hex (no hyphens) to keep it compact and URL/header safe
    return uuid.uuid4().hex


def render_json(payload: dict, status: int) -> Response:
    """Build a DRF Response outside a view and render it so `.content` is populated."""
    resp = Response(payload, status=status)
    resp.accepted_renderer = JSONRenderer()
    resp.accepted_media_type = "application/json"
    resp.renderer_context = {}
    resp.render()
    return resp


class _DjangoRequestView:
    """`IncomingRequest` view over a Django request; the body is read on first access."""

    __slots__ = ("_request", "method", "path")

    def __init__(self, request: HttpRequest, path: str) -> None:
        self._request = request
        self.method = request.method.upper()
        self.path = path

    @property
    def headers(self) -> Mapping[str, str]:
        return self._request.headers

    @property
    def body(self) -> bytes:
        return self._request.body


class EnsureJsonRequestMiddleware:
    """
    Enforce JSON bodies on POST/PUT/PATCH requests of the API group.

    - Scope: `settings.JSON_REQUEST_PATHS` (default: `api`, `api/*`).
    - Exemptions: `settings.JSON_REQUEST_EXCEPT_PATHS`
      (default: `api/v1/files/*`, `api/v1/webhooks/*`).
    - Patterns are compiled once, when the handler loads its middleware.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response
        self.scope = PathPatterns(getattr(settings, "JSON_REQUEST_PATHS", DEFAULT_JSON_REQUEST_PATHS))
        self.except_paths = PathPatterns(
            getattr(settings, "JSON_REQUEST_EXCEPT_PATHS", DEFAULT_JSON_REQUEST_EXCEPT_PATHS)
        )

    def __call__(self, request: HttpRequest) -> HttpResponse:
        path = normalize_path(request.path_info)
        if not self.scope.matches(path):
            return self.get_response(request)

        decision = evaluate(_DjangoRequestView(request, path), self.except_paths)
        if not isinstance(decision, Reject):
            return self.get_response(request)

        admission_logger.info(
            "request rejected: %s %s -> %s (%s)",
            request.method,
            request.path,
            decision.status_code,
            decision.kind.name,
        )
        return render_json(decision.as_payload(), decision.status_code)


class RequestIDLogMiddleware:
    """
    - Reads `X-Request-ID` (if provided) or generates one.
    - Adds `request.request_id` and response header `X-Request-ID`.
    - Logs one structured line per request with latency (ms) and key attributes.
    - Stores request_id in a `contextvar` so other logs can include it.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        rid = _coerce_request_id(request.headers.get("X-Request-ID"))
        setattr(request, "request_id", rid)
        token = request_id_var.set(rid)

        start = time.perf_counter()
        try:
            response = self.get_response(request)
            duration_ms = int((time.perf_counter() - start) * 1000)

            response.headers["X-Request-ID"] = rid

            # Only when authenticated; avoids a DB hit for anonymous requests
            user = getattr(request, "user", None)
            user_id = getattr(user, "id", None) if getattr(user, "is_authenticated", False) else None

            logger.info(
                "request",
                extra={
                    "request_id": rid,
                    "method": request.method,
                    "path": request.path,
                    "status": getattr(response, "status_code", 0),
                    "user_id": user_id,
                    "duration_ms": duration_ms,
                },
            )
            return response
        finally:
            request_id_var.reset(token)
