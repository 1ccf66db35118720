"""
Routes mounted under `/api/_init/`.

- `mysql/hosts`, `mysql/write`, `mysql/read/<id>`, `mysql/lag`
- Anything else under `/api/_init/` answers the scoped 404 envelope.
"""

from django.urls import path, re_path

from core.views import init_fallback
from initcheck.views import HostsView, LagView, ReadView, WriteView

app_name = "init"

urlpatterns = [
    path("mysql/hosts", HostsView.as_view(), name="mysql-hosts"),
    path("mysql/write", WriteView.as_view(), name="mysql-write"),
    path("mysql/read/<str:item_id>", ReadView.as_view(), name="mysql-read"),
    path("mysql/lag", LagView.as_view(), name="mysql-lag"),
    # init-scoped fallback (typos under /api/_init/*)
    re_path(r"^(?P<rest>.*)$", init_fallback, name="fallback"),
]
