"""Repository for decision recommendations.

Stores recommendations in the ``decision_recommendations`` table. The
evaluated context snapshot and the factors are JSON columns.
"""

import json
import logging
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from decision_engine.db.turso import TursoClient, format_timestamp, row_to_dict
from decision_engine.engine.schemas import HistoryFilters
from decision_engine.models.base import utc_now
from decision_engine.models.recommendation import (
    DecisionRecommendation,
    RecommendationStatus,
)

logger = logging.getLogger(__name__)

_COLUMNS = [
    "id",
    "workspace_id",
    "decision_type",
    "reference_id",
    "reference_type",
    "reference_number",
    "reference_data",
    "rule_id",
    "rule_name",
    "recommended_action",
    "confidence",
    "confidence_score",
    "reasoning",
    "factors_considered",
    "status",
    "auto_executed",
    "was_overridden",
    "override_reason",
    "requested_by_id",
    "requested_by_name",
    "applied_by_id",
    "applied_by_name",
    "applied_at",
    "created_at",
    "updated_at",
]

_JSON_COLUMNS = {"reference_data", "factors_considered"}
_BOOL_COLUMNS = {"auto_executed", "was_overridden"}
_TIMESTAMP_COLUMNS = {"applied_at", "created_at", "updated_at"}

# Set only by finalize; approved and rejected are terminal
_FINALIZE_COLUMNS = {
    "status",
    "auto_executed",
    "applied_at",
    "applied_by_id",
    "applied_by_name",
    "was_overridden",
    "override_reason",
}
_IMMUTABLE_COLUMNS = {"id", "created_at"}


def _to_params(data: dict[str, Any]) -> dict[str, Any]:
    params = {}
    for column, value in data.items():
        if column in _JSON_COLUMNS:
            value = json.dumps(value, default=str)
        elif column in _BOOL_COLUMNS:
            value = int(bool(value))
        elif column in _TIMESTAMP_COLUMNS and isinstance(value, datetime):
            value = format_timestamp(value)
        elif isinstance(value, UUID):
            value = str(value)
        elif isinstance(value, Enum):
            value = value.value
        params[column] = value
    return params


def _to_recommendation(data: dict[str, Any]) -> DecisionRecommendation:
    data["reference_data"] = json.loads(data["reference_data"] or "{}")
    data["factors_considered"] = json.loads(data["factors_considered"] or "[]")
    return DecisionRecommendation.model_validate(data)


class RecommendationRepository:
    """Repository for decision recommendations.

    Finalization is a conditional UPDATE guarded on ``status = 'pending'``
    so two concurrent callers can never both finalize the same
    recommendation.
    """

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create recommendations table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS decision_recommendations (
                id TEXT PRIMARY KEY,
                workspace_id TEXT NOT NULL,
                decision_type TEXT NOT NULL,
                reference_id TEXT NOT NULL,
                reference_type TEXT NOT NULL,
                reference_number TEXT,
                reference_data TEXT NOT NULL DEFAULT '{}',
                rule_id TEXT,
                rule_name TEXT,
                recommended_action TEXT NOT NULL,
                confidence TEXT NOT NULL,
                confidence_score INTEGER NOT NULL,
                reasoning TEXT NOT NULL,
                factors_considered TEXT NOT NULL DEFAULT '[]',
                status TEXT NOT NULL DEFAULT 'pending',
                auto_executed INTEGER NOT NULL DEFAULT 0,
                was_overridden INTEGER NOT NULL DEFAULT 0,
                override_reason TEXT,
                requested_by_id TEXT,
                requested_by_name TEXT,
                applied_by_id TEXT,
                applied_by_name TEXT,
                applied_at TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_recommendations_workspace
            ON decision_recommendations(workspace_id, status, created_at)
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_recommendations_reference
            ON decision_recommendations(reference_type, reference_id)
            """,
            ]
        )

    async def create(
        self, recommendation: DecisionRecommendation
    ) -> DecisionRecommendation:
        """Insert a new recommendation.

        Args:
            recommendation: Recommendation to persist

        Returns:
            The persisted recommendation
        """
        data = recommendation.model_dump(mode="json")
        data.update(
            applied_at=recommendation.applied_at,
            created_at=recommendation.created_at,
            updated_at=recommendation.updated_at,
        )
        params = _to_params(data)
        placeholders = ", ".join("?" for _ in _COLUMNS)
        await self._db.execute(
            f"INSERT INTO decision_recommendations ({', '.join(_COLUMNS)}) "
            f"VALUES ({placeholders})",
            [params[column] for column in _COLUMNS],
        )
        logger.debug(f"Created recommendation {recommendation.id}")
        return recommendation

    async def get_by_id(
        self, recommendation_id: UUID
    ) -> DecisionRecommendation | None:
        """Get recommendation by ID.

        Args:
            recommendation_id: Recommendation identifier

        Returns:
            DecisionRecommendation or None if not found
        """
        result = await self._db.execute(
            f"SELECT {', '.join(_COLUMNS)} FROM decision_recommendations "
            "WHERE id = ?",
            [str(recommendation_id)],
        )
        if not result.rows:
            return None
        return _to_recommendation(row_to_dict(result, result.rows[0]))

    async def update(
        self,
        recommendation_id: UUID,
        patch: dict[str, Any],
    ) -> DecisionRecommendation | None:
        """Apply a field patch to a recommendation.

        Lifecycle columns (status and the applied_* fields) are rejected;
        they only change through ``finalize``.

        Args:
            recommendation_id: Recommendation identifier
            patch: Column values to set

        Returns:
            Updated recommendation, or None if not found

        Raises:
            ValueError: If the patch names an unknown or protected column
        """
        disallowed = (set(patch) - set(_COLUMNS)) | (
            set(patch) & (_FINALIZE_COLUMNS | _IMMUTABLE_COLUMNS)
        )
        if disallowed:
            msg = f"Not patchable: {', '.join(sorted(disallowed))}"
            raise ValueError(msg)

        params = _to_params({**patch, "updated_at": utc_now()})
        assignments = ", ".join(f"{column} = ?" for column in params)
        result = await self._db.execute(
            f"UPDATE decision_recommendations SET {assignments} WHERE id = ?",
            [*params.values(), str(recommendation_id)],
        )
        if result.rows_affected == 0:
            return None
        return await self.get_by_id(recommendation_id)

    async def finalize(
        self,
        recommendation_id: UUID,
        *,
        status: RecommendationStatus,
        applied_at: datetime,
        applied_by_id: str | None,
        applied_by_name: str | None,
        was_overridden: bool = False,
        override_reason: str | None = None,
    ) -> DecisionRecommendation | None:
        """Move a pending recommendation to a terminal status.

        Args:
            recommendation_id: Recommendation identifier
            status: Terminal status (approved or rejected)
            applied_at: When the decision was applied
            applied_by_id: Who applied it
            applied_by_name: Display name of who applied it
            was_overridden: Whether an explicit override was supplied
            override_reason: Free-text reason for the override

        Returns:
            Finalized recommendation, or None if it was not pending
        """
        result = await self._db.execute(
            """
            UPDATE decision_recommendations SET
                status = ?,
                applied_at = ?,
                applied_by_id = ?,
                applied_by_name = ?,
                was_overridden = ?,
                override_reason = ?,
                updated_at = ?
            WHERE id = ? AND status = ?
            """,
            [
                RecommendationStatus(status).value,
                format_timestamp(applied_at),
                applied_by_id,
                applied_by_name,
                int(was_overridden),
                override_reason,
                format_timestamp(utc_now()),
                str(recommendation_id),
                RecommendationStatus.PENDING.value,
            ],
        )
        if result.rows_affected == 0:
            return None
        return await self.get_by_id(recommendation_id)

    async def list_by_workspace(
        self,
        workspace_id: str,
        filters: HistoryFilters | None = None,
    ) -> list[DecisionRecommendation]:
        """Get recommendations for a workspace, newest first.

        Args:
            workspace_id: Owning workspace
            filters: Optional equality filters

        Returns:
            Matching recommendations
        """
        filters = filters or HistoryFilters()

        where_clauses = ["workspace_id = ?"]
        params: list[Any] = [workspace_id]

        if filters.decision_type is not None:
            where_clauses.append("decision_type = ?")
            params.append(filters.decision_type.value)

        if filters.status is not None:
            where_clauses.append("status = ?")
            params.append(filters.status.value)

        if filters.rule_id is not None:
            where_clauses.append("rule_id = ?")
            params.append(str(filters.rule_id))

        result = await self._db.execute(
            f"""
            SELECT {', '.join(_COLUMNS)}
            FROM decision_recommendations
            WHERE {' AND '.join(where_clauses)}
            ORDER BY created_at DESC, rowid DESC
            """,
            params,
        )
        return [_to_recommendation(row_to_dict(result, row)) for row in result.rows]
