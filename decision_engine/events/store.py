"""Append-only decision audit log using Turso/libSQL.

Every decision event is kept so a recommendation's history (creation,
rule trigger, finalization) can be replayed after the fact.
"""

import json
import logging
from typing import Any
from uuid import UUID

from decision_engine.db.turso import TursoClient, format_timestamp
from decision_engine.events.base import Event

logger = logging.getLogger(__name__)


class EventStore:
    """Append-only audit log (never update/delete)."""

    def __init__(self, client: TursoClient):
        """Initialize event store.

        Args:
            client: Database client for persistence
        """
        self.client = client

    async def init_schema(self) -> None:
        """Create the decision_events table if it doesn't exist."""
        await self.client.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS decision_events (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                event_id TEXT UNIQUE NOT NULL,
                event_type TEXT NOT NULL,
                record_type TEXT NOT NULL,
                record_id TEXT NOT NULL,
                workspace_id TEXT NOT NULL,
                payload TEXT NOT NULL,
                occurred_at TEXT NOT NULL
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_decision_events_record
            ON decision_events(record_id, seq)
            """,
            ]
        )
        logger.info("Decision audit log schema initialized")

    async def append(self, event: Event) -> None:
        """Append an event to the log.

        Args:
            event: The event to store
        """
        await self.client.execute(
            """INSERT INTO decision_events
               (event_id, event_type, record_type, record_id,
                workspace_id, payload, occurred_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            [
                str(event.event_id),
                event.event_type,
                event.record_type,
                str(event.record_id),
                event.workspace_id,
                json.dumps(event.payload()),
                format_timestamp(event.occurred_at),
            ],
        )
        logger.debug(f"Stored {event.event_type} for {event.record_type} {event.record_id}")

    async def get_events_for_record(self, record_id: UUID) -> list[dict[str, Any]]:
        """Events of one recommendation or rule, oldest first.

        Args:
            record_id: The recommendation or rule id

        Returns:
            Dicts with event_id, event_type, payload and occurred_at
        """
        result = await self.client.execute(
            """SELECT event_id, event_type, payload, occurred_at
               FROM decision_events
               WHERE record_id = ?
               ORDER BY seq ASC""",
            [str(record_id)],
        )
        return [
            {
                "event_id": row[0],
                "event_type": row[1],
                "payload": json.loads(row[2]),
                "occurred_at": row[3],
            }
            for row in result.rows
        ]

    async def count_events(self, event_type: str | None = None) -> int:
        """Count events, optionally by type."""
        if event_type:
            result = await self.client.execute(
                "SELECT COUNT(*) FROM decision_events WHERE event_type = ?",
                [event_type],
            )
        else:
            result = await self.client.execute(
                "SELECT COUNT(*) FROM decision_events"
            )
        return result.rows[0][0]
