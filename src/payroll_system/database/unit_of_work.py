from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import ContextManager, Iterator, Protocol

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


class UnitOfWork(Protocol):
    """Groups repository writes so they commit or roll back together."""

    def transaction(self) -> ContextManager[None]:
        raise NotImplementedError


class MySQLUnitOfWork(UnitOfWork):
    """One connection per transaction, pinned for every repository on this thread."""

    def __init__(self, conn_factory: DatabaseConnection, *, isolation_level: str = "READ COMMITTED"):
        self._conn_factory = conn_factory
        self._isolation_level = isolation_level

    @contextmanager
    def transaction(self) -> Iterator[None]:
        conn = self._conn_factory.connect()
        try:
            conn.start_transaction(isolation_level=self._isolation_level)
            with self._conn_factory.bind(conn):
                yield
            conn.commit()
        except Exception:
            conn.rollback()
            logger.debug("Transaction rolled back", exc_info=True)
            raise
        finally:
            conn.close()
