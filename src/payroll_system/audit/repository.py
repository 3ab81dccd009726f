from __future__ import annotations

from typing import Protocol

from .model import AuditEvent


class AuditRepository(Protocol):
    def add(self, event: AuditEvent) -> int:
        raise NotImplementedError
