"""
PostgreSQL Repository Base

Pool ownership and error translation shared by the asyncpg repositories.
Schema management is external; see each repository for the columns it uses.
"""
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import asyncpg
from asyncpg import Connection, Pool

from ...core.errors import PersistenceError

logger = logging.getLogger(__name__)


class PostgresRepository:
    """Base class holding an asyncpg pool"""

    def __init__(self, pool: Pool):
        """
        Initialize PostgreSQL repository.

        Args:
            pool: asyncpg connection pool
        """
        self._pool = pool

    @classmethod
    async def connect(
        cls,
        dsn: str,
        *,
        min_size: int = 2,
        max_size: int = 10,
        **kwargs
    ):
        """
        Factory method to create repository with connection pool.

        Args:
            dsn: PostgreSQL connection string
            min_size: Minimum pool connections
            max_size: Maximum pool connections
            **kwargs: Additional asyncpg pool options
        """
        pool = await asyncpg.create_pool(dsn, min_size=min_size, max_size=max_size, **kwargs)
        return cls(pool)

    async def close(self) -> None:
        """Close the connection pool."""
        await self._pool.close()

    @asynccontextmanager
    async def _connection(self, operation: str) -> AsyncIterator[Connection]:
        """Acquire a connection; driver and network errors become PersistenceError"""
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error(f"[postgres] {operation} failed: {e}")
            raise PersistenceError(f"{operation} failed: {e}", operation=operation, cause=e) from e

    @staticmethod
    def _dump(value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, default=str)

    @staticmethod
    def _load(value: Optional[str], default: Any) -> Any:
        if value is None:
            return default
        if isinstance(value, (dict, list)):
            return value
        return json.loads(value)
