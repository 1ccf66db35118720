"""
Account endpoints under `/api/v1/`.

- `GET /api/v1/user`: the authenticated user (token or session auth).
"""

from __future__ import annotations

from django.utils.translation import gettext_lazy as _
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import permissions, serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView


class UserSerializer(serializers.Serializer):
    """Public shape of the authenticated user."""
    id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True, allow_blank=True)
    first_name = serializers.CharField(read_only=True, allow_blank=True)
    last_name = serializers.CharField(read_only=True, allow_blank=True)
    date_joined = serializers.DateTimeField(read_only=True)


class UserView(APIView):
    """
    Return the user the request is authenticated as.

    Accepts `Authorization: Token <key>` (issued with `manage.py drf_create_token`)
    or a session cookie. Anonymous requests get 401 with `WWW-Authenticate: Token`.
    """
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(
        operation_id="v1_user",
        summary="Current user",
        responses={200: UserSerializer, 401: OpenApiResponse(description="Not authenticated")},
    )
    def get(self, request, *args, **kwargs):
        # Explicit 401 if something bypasses DRF permission handling.
        if not request.user.is_authenticated:
            return Response({"detail": _("Not authenticated.")}, status=status.HTTP_401_UNAUTHORIZED)
        return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)
