from __future__ import annotations

import json

from ..common.responses import to_jsonable
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, to_db_datetime
from .model import AuditEvent
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(self, event: AuditEvent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(company_id, actor_id, action, entity, entity_id, meta, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event.company_id,
                    event.actor_id,
                    event.action,
                    event.entity,
                    event.entity_id,
                    json.dumps(to_jsonable(event.meta)),
                    to_db_datetime(event.created_at),
                ),
            )
            return int(cur.lastrowid)
