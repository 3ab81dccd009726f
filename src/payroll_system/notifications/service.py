from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol

from ..common.tasks import TaskRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    event: str
    company_id: int
    user_id: int
    payload: dict[str, Any] = field(default_factory=dict)


class NotificationSender(Protocol):
    """Delivery channel (push, email, ...) owned by another service."""

    def send(self, notification: Notification) -> None:
        raise NotImplementedError


class LoggingNotificationSender(NotificationSender):
    def send(self, notification: Notification) -> None:
        logger.info(
            "notify user=%s company=%s event=%s payload=%s",
            notification.user_id,
            notification.company_id,
            notification.event,
            notification.payload,
        )


class Notifier:
    """Fire-and-forget notification fan-out."""

    def __init__(self, sender: NotificationSender, tasks: TaskRunner):
        self._sender = sender
        self._tasks = tasks

    def notify(self, event: str, *, company_id: int, user_ids: Iterable[int], payload: dict[str, Any] | None = None) -> None:
        for user_id in dict.fromkeys(user_ids):
            notification = Notification(event=event, company_id=company_id, user_id=int(user_id), payload=dict(payload or {}))
            self._tasks.submit(f"notify:{event}", self._sender.send, notification)
