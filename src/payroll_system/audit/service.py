from __future__ import annotations

import logging
from typing import Any, Optional

from ..common.datetime_utils import now_utc
from ..common.tasks import TaskRunner
from .model import AuditEvent
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Best-effort audit trail.

    Writes are handed to the task runner so a failing audit insert never
    fails the business operation that produced it.
    """

    def __init__(self, audit: AuditRepository, tasks: TaskRunner):
        self._audit = audit
        self._tasks = tasks

    def record(
        self,
        *,
        company_id: int,
        actor_id: Optional[int],
        action: str,
        entity: str,
        entity_id: Optional[int],
        meta: Optional[dict[str, Any]] = None,
    ) -> None:
        event = AuditEvent(
            company_id=company_id,
            actor_id=actor_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            created_at=now_utc(),
            meta=dict(meta or {}),
        )
        self._tasks.submit(f"audit:{action}", self._audit.add, event)
