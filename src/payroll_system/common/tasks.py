from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class TaskRunner(Protocol):
    """Runs work after the current operation has returned its result."""

    def submit(self, name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        raise NotImplementedError


def _guarded(name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    try:
        fn(*args, **kwargs)
    except Exception:
        logger.exception("Background task %s failed", name)


class ThreadPoolTaskRunner(TaskRunner):
    def __init__(self, *, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="payroll-task")

    def submit(self, name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._executor.submit(_guarded, name, fn, *args, **kwargs)

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class InlineTaskRunner(TaskRunner):
    """Runs tasks immediately on the caller's thread (tests, CLI scripts)."""

    def submit(self, name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        _guarded(name, fn, *args, **kwargs)
