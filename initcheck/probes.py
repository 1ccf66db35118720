"""
Database probes used by the init-check endpoints.

All functions take a database alias (see `settings.DATABASES`) and run a single
read-only statement on that connection. They do not catch database errors;
callers decide whether a failure is fatal (hosts/read/write) or best-effort (lag).

Vendor support
--------------
- MySQL/MariaDB: `@@hostname`, `SHOW REPLICA STATUS`.
- PostgreSQL: `inet_server_addr()`, replay timestamp of the standby.
- SQLite (dev/tests): no server hostname; lag raises `NotSupportedError`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.db import NotSupportedError, connections

HOSTNAME_QUERIES = {
    "mysql": "SELECT @@hostname",
    "postgresql": "SELECT inet_server_addr()::text",
}

# MySQL 8.0.22+ renamed the column; older servers and MariaDB still use *_Master.
LAG_COLUMNS = ("Seconds_Behind_Source", "Seconds_Behind_Master")

_PG_LAG_QUERY = (
    "SELECT CASE WHEN pg_is_in_recovery() "
    "THEN EXTRACT(EPOCH FROM now() - pg_last_xact_replay_timestamp())::integer END"
)


def server_hostname(alias: str) -> Optional[str]:
    """Hostname reported by the server behind `alias`, or None when the vendor has none."""
    connection = connections[alias]
    sql = HOSTNAME_QUERIES.get(connection.vendor)
    if sql is None:
        return None
    with connection.cursor() as cursor:
        cursor.execute(sql)
        row = cursor.fetchone()
    return row[0] if row else None


def _fetch_one_dict(cursor) -> Optional[Dict[str, Any]]:
    row = cursor.fetchone()
    if row is None:
        return None
    columns = [col[0] for col in cursor.description]
    return dict(zip(columns, row))


def replica_lag(alias: str) -> Optional[int]:
    """
    Seconds the replica behind `alias` trails its source.

    Returns None when the server is not replicating (no status row, or a NULL
    lag while the SQL thread is stopped).

    Raises:
        NotSupportedError: for vendors without a replication status query.
        DatabaseError: when the connected user lacks the required grants.
    """
    connection = connections[alias]
    if connection.vendor == "mysql":
        with connection.cursor() as cursor:
            cursor.execute("SHOW REPLICA STATUS")
            status = _fetch_one_dict(cursor)
        if not status:
            return None
        for column in LAG_COLUMNS:
            if status.get(column) is not None:
                return int(status[column])
        return None

    if connection.vendor == "postgresql":
        with connection.cursor() as cursor:
            cursor.execute(_PG_LAG_QUERY)
            row = cursor.fetchone()
        return row[0] if row else None

    raise NotSupportedError(f"Replica lag is not available for {connection.vendor!r} databases.")
