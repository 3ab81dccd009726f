from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class AuditEvent:
    company_id: int
    actor_id: Optional[int]
    action: str
    entity: str
    entity_id: Optional[int]
    created_at: datetime
    meta: dict[str, Any] = field(default_factory=dict)
