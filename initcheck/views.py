"""
MySQL init-check endpoints (`/api/_init/mysql/...`).

Overview
--------
- Auth: anonymous (`AllowAny`, no authenticators); these are deployment probes.
- Throttle: `init-check` scope.
- Aliases: writes go to `settings.INIT_CHECK_WRITE_DATABASE` (default `default`),
  reads to `settings.INIT_CHECK_READ_DATABASE` (default `replica`). Pointing the
  reader at a lagging replica makes `found=false` right after a write expected.
- Errors: hosts/write/read propagate database errors (500). Lag is best-effort
  and degrades to a null value plus a note.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import DatabaseError
from drf_spectacular.utils import OpenApiResponse, extend_schema, inline_serializer
from rest_framework import permissions, serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from initcheck.models import DEFAULT_NOTE, InitCheckItem
from initcheck.probes import replica_lag, server_hostname

logger = logging.getLogger(__name__)

LAG_UNAVAILABLE_NOTE = "Could not read replica lag with current grants."


def write_alias() -> str:
    return getattr(settings, "INIT_CHECK_WRITE_DATABASE", "default")


def read_alias() -> str:
    return getattr(settings, "INIT_CHECK_READ_DATABASE", "replica")


def _item_payload(item: Optional[InitCheckItem]) -> Optional[Dict[str, Any]]:
    if item is None:
        return None
    return {"id": str(item.id), "note": item.note, "created_at": item.created_at.isoformat()}


class _WriteSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, default=DEFAULT_NOTE, max_length=255, allow_blank=True)


class BaseInitCheckView(APIView):
    """Anonymous, throttled probe endpoint."""
    permission_classes = [permissions.AllowAny]
    authentication_classes = []
    throttle_scope = "init-check"


class HostsView(BaseInitCheckView):
    """Hostnames of the writer and reader servers."""

    @extend_schema(
        operation_id="init_mysql_hosts",
        summary="Writer/reader hostnames",
        responses={
            200: inline_serializer(
                name="InitCheckHosts",
                fields={
                    "write_hostname": serializers.CharField(allow_null=True),
                    "read_hostname": serializers.CharField(allow_null=True),
                },
            )
        },
    )
    def get(self, request, *args, **kwargs):
        return Response(
            {
                "write_hostname": server_hostname(write_alias()),
                "read_hostname": server_hostname(read_alias()),
            }
        )


class WriteView(BaseInitCheckView):
    """Insert a probe row through the writer alias."""

    @extend_schema(
        operation_id="init_mysql_write",
        summary="Write a probe row",
        request=_WriteSerializer,
        responses={201: OpenApiResponse(description="Row written"), 400: OpenApiResponse(description="Validation error")},
    )
    def post(self, request, *args, **kwargs):
        ser = _WriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        alias = write_alias()
        item = InitCheckItem.objects.using(alias).create(note=ser.validated_data["note"])
        logger.info("init-check row written id=%s alias=%s", item.id, alias)

        return Response(
            {
                "id": str(item.id),
                "wrote_from_hostname": server_hostname(alias),
                "payload": {"id": str(item.id), "note": item.note},
            },
            status=status.HTTP_201_CREATED,
        )


class ReadView(BaseInitCheckView):
    """Read a probe row back through the reader alias."""

    @extend_schema(
        operation_id="init_mysql_read",
        summary="Read a probe row",
        responses={200: OpenApiResponse(description="Lookup result (found may be false)")},
    )
    def get(self, request, item_id: str, *args, **kwargs):
        alias = read_alias()
        try:
            pk = uuid.UUID(item_id)
        except ValueError:
            item = None
        else:
            item = InitCheckItem.objects.using(alias).filter(pk=pk).first()

        return Response(
            {
                "id": item_id,
                "found": item is not None,
                "read_from_hostname": server_hostname(alias),
                "data": _item_payload(item),
            }
        )


class LagView(BaseInitCheckView):
    """Best-effort replica lag; requires replication-status grants on the reader."""

    @extend_schema(
        operation_id="init_mysql_lag",
        summary="Replica lag in seconds",
        responses={
            200: inline_serializer(
                name="InitCheckLag",
                fields={
                    "replica_seconds_behind": serializers.IntegerField(allow_null=True),
                    "note": serializers.CharField(required=False),
                },
            )
        },
    )
    def get(self, request, *args, **kwargs):
        try:
            lag = replica_lag(read_alias())
        except DatabaseError as exc:
            logger.warning("replica lag unavailable: %s", exc)
            return Response({"replica_seconds_behind": None, "note": LAG_UNAVAILABLE_NOTE})
        return Response({"replica_seconds_behind": lag})
