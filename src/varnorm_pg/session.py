"""Database session handle shared by the importers.

One session wraps one asyncpg connection. Importers borrow it for the
recreate, populate and index phases; a session must not be used from more than
one task at a time.
"""

import logging

import asyncpg

logger = logging.getLogger(__name__)


class DatabaseSession:
    """Explicit handle around a single PostgreSQL connection."""

    def __init__(self, db_url: str, command_timeout: float = 300):
        self.db_url = db_url
        self.command_timeout = command_timeout
        self.conn: asyncpg.Connection | None = None

    @classmethod
    def from_connection(cls, conn: asyncpg.Connection) -> "DatabaseSession":
        """Wrap an already open connection; the caller keeps ownership."""
        session = cls(db_url="")
        session.conn = conn
        return session

    async def connect(self) -> None:
        """Establish the database connection."""
        self.conn = await asyncpg.connect(self.db_url, command_timeout=self.command_timeout)
        logger.debug("Connected to database")

    async def close(self) -> None:
        """Close the database connection."""
        if self.conn is not None:
            await self.conn.close()
            self.conn = None

    async def __aenter__(self) -> "DatabaseSession":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def connection(self) -> asyncpg.Connection:
        if self.conn is None:
            raise RuntimeError("Database session is not connected")
        return self.conn
