"""Turso/libSQL database client wrapper."""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from libsql_client import Client, ResultSet, create_client

from decision_engine.config import settings
from decision_engine.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class TursoClient:
    """Wrapper for Turso/libSQL async client.

    Supports both cloud Turso (with auth token) and local SQLite files.
    Every call is bounded by ``timeout`` seconds; client failures and
    timeouts surface as StoreUnavailableError.
    """

    def __init__(
        self,
        url: str | None = None,
        auth_token: str | None = None,
        timeout: float | None = None,
    ):
        """Initialize client with connection parameters.

        Args:
            url: Database URL. Defaults to settings or local file.
            auth_token: Auth token for Turso cloud. Defaults to settings.
            timeout: Per-call timeout in seconds. Defaults to settings.
        """
        self.url = url or settings.database_url or "file:decisions.db"
        self.auth_token = auth_token or settings.database_auth_token
        self.timeout = timeout or settings.store_timeout_seconds
        self._client: Client | None = None

    async def connect(self) -> None:
        """Establish database connection."""
        if self._client is not None:
            return

        if self.auth_token and self.url.startswith("libsql://"):
            self._client = create_client(
                url=self.url,
                auth_token=self.auth_token,
            )
        else:
            self._client = create_client(url=self.url)

        logger.info(f"Connected to database: {self.url}")

    def _require_client(self) -> Client:
        if not self._client:
            msg = "Not connected. Call connect() first."
            raise StoreUnavailableError(msg)
        return self._client

    async def execute(
        self,
        sql: str,
        params: list[Any] | None = None,
    ) -> ResultSet:
        """Execute a SQL statement.

        Args:
            sql: SQL query with ? placeholders
            params: Query parameters

        Returns:
            ResultSet with rows and metadata

        Raises:
            StoreUnavailableError: If the store fails or the call times out
        """
        client = self._require_client()
        try:
            return await asyncio.wait_for(
                client.execute(sql, params or []),
                timeout=self.timeout,
            )
        except TimeoutError as e:
            logger.error(f"Store call timed out after {self.timeout}s")
            msg = f"Store call timed out after {self.timeout}s"
            raise StoreUnavailableError(msg) from e
        except Exception as e:
            logger.error(f"Store call failed: {e}")
            raise StoreUnavailableError(str(e)) from e

    async def execute_batch(self, statements: list[str]) -> None:
        """Execute multiple SQL statements in a batch.

        Args:
            statements: List of SQL statements
        """
        client = self._require_client()
        try:
            await asyncio.wait_for(client.batch(statements), timeout=self.timeout)
        except TimeoutError as e:
            msg = f"Store batch timed out after {self.timeout}s"
            raise StoreUnavailableError(msg) from e
        except Exception as e:
            logger.error(f"Store batch failed: {e}")
            raise StoreUnavailableError(str(e)) from e

    async def close(self) -> None:
        """Close the database connection."""
        if self._client:
            await self._client.close()
            self._client = None
            logger.info("Database connection closed")

    async def is_healthy(self) -> bool:
        """Check if database connection is healthy."""
        try:
            if not self._client:
                return False
            result = await self._client.execute("SELECT 1")
            return len(result.rows) == 1
        except Exception:
            return False


def row_to_dict(result: ResultSet, row: Any) -> dict[str, Any]:
    """Map a result row to a column-name dict."""
    return {column: row[index] for index, column in enumerate(result.columns)}


def format_timestamp(value: datetime) -> str:
    """Fixed-width ISO timestamp so stored values sort chronologically."""
    return value.astimezone(UTC).isoformat(timespec="microseconds")

