"""
Rows written by the `/api/_init/mysql/write` probe.

The table name is fixed (`init_check_items`) so operators can inspect or purge
probe rows directly on the primary and its replicas.
"""

from __future__ import annotations

import uuid

from django.db import models

DEFAULT_NOTE = "init-check"


class InitCheckItem(models.Model):
    """A single probe row; `id` is generated by the app so it can be read back anywhere."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    note = models.CharField(max_length=255, default=DEFAULT_NOTE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "init_check_items"
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return f"InitCheckItem({self.id}, note={self.note!r})"
