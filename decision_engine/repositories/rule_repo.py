"""Repository for decision rules.

Stores rules in the ``decision_rules`` table. Conditions and tags are
JSON columns; booleans are stored as integers.
"""

import json
import logging
from typing import Any
from uuid import UUID

from decision_engine.db.turso import TursoClient, format_timestamp, row_to_dict
from decision_engine.engine.schemas import RuleCounterDelta
from decision_engine.models.base import utc_now
from decision_engine.models.rule import DecisionRule, DecisionType

logger = logging.getLogger(__name__)

_COLUMNS = [
    "id",
    "rule_code",
    "name",
    "description",
    "workspace_id",
    "decision_type",
    "priority",
    "conditions",
    "recommended_action",
    "auto_execute",
    "requires_approval",
    "is_active",
    "notify_on_trigger",
    "notify_users",
    "tags",
    "notes",
    "created_by_id",
    "created_by_name",
    "total_triggered",
    "total_auto_executed",
    "total_approved",
    "total_rejected",
    "total_overridden",
    "success_rate",
    "created_at",
    "updated_at",
]

_JSON_COLUMNS = {"conditions", "notify_users", "tags"}
_BOOL_COLUMNS = {"auto_execute", "requires_approval", "is_active", "notify_on_trigger"}

# Operator-editable columns; counters are only changed by increment_counters
EDITABLE_COLUMNS = {
    "name",
    "description",
    "decision_type",
    "priority",
    "conditions",
    "recommended_action",
    "auto_execute",
    "requires_approval",
    "is_active",
    "notify_on_trigger",
    "notify_users",
    "tags",
    "notes",
}


def _to_params(data: dict[str, Any]) -> dict[str, Any]:
    params = {}
    for column, value in data.items():
        if column in _JSON_COLUMNS:
            value = json.dumps(value, default=str)
        elif column in _BOOL_COLUMNS:
            value = int(bool(value))
        params[column] = value
    return params


def _to_rule(data: dict[str, Any]) -> DecisionRule:
    for column in _JSON_COLUMNS:
        if data.get(column) is not None:
            data[column] = json.loads(data[column])
        else:
            data[column] = []
    return DecisionRule.model_validate(data)


class RuleRepository:
    """Repository for decision rules.

    Counter maintenance goes through ``increment_counters``, a single
    UPDATE that adds the delta in the store, so concurrent decisions on
    the same rule never lose increments.
    """

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create rules table if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS decision_rules (
                id TEXT PRIMARY KEY,
                rule_code TEXT,
                name TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                workspace_id TEXT NOT NULL,
                decision_type TEXT NOT NULL,
                priority INTEGER NOT NULL DEFAULT 100,
                conditions TEXT NOT NULL DEFAULT '[]',
                recommended_action TEXT NOT NULL,
                auto_execute INTEGER NOT NULL DEFAULT 0,
                requires_approval INTEGER NOT NULL DEFAULT 0,
                is_active INTEGER NOT NULL DEFAULT 1,
                notify_on_trigger INTEGER NOT NULL DEFAULT 0,
                notify_users TEXT NOT NULL DEFAULT '[]',
                tags TEXT NOT NULL DEFAULT '[]',
                notes TEXT,
                created_by_id TEXT,
                created_by_name TEXT,
                total_triggered INTEGER NOT NULL DEFAULT 0,
                total_auto_executed INTEGER NOT NULL DEFAULT 0,
                total_approved INTEGER NOT NULL DEFAULT 0,
                total_rejected INTEGER NOT NULL DEFAULT 0,
                total_overridden INTEGER NOT NULL DEFAULT 0,
                success_rate REAL NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_rules_lookup
            ON decision_rules(workspace_id, decision_type, is_active, priority)
            """,
            ]
        )

    async def create(self, rule: DecisionRule) -> DecisionRule:
        """Insert a new rule.

        Args:
            rule: Rule to persist

        Returns:
            The persisted rule
        """
        params = _to_params(rule.model_dump(mode="json"))
        params["created_at"] = format_timestamp(rule.created_at)
        params["updated_at"] = format_timestamp(rule.updated_at)
        placeholders = ", ".join("?" for _ in _COLUMNS)
        await self._db.execute(
            f"INSERT INTO decision_rules ({', '.join(_COLUMNS)}) "
            f"VALUES ({placeholders})",
            [params[column] for column in _COLUMNS],
        )
        logger.debug(f"Created rule {rule.id} ({rule.name})")
        return rule

    async def get_rule(self, rule_id: UUID) -> DecisionRule | None:
        """Get rule by ID.

        Args:
            rule_id: Rule identifier

        Returns:
            DecisionRule or None if not found
        """
        result = await self._db.execute(
            f"SELECT {', '.join(_COLUMNS)} FROM decision_rules WHERE id = ?",
            [str(rule_id)],
        )
        if not result.rows:
            return None
        return _to_rule(row_to_dict(result, result.rows[0]))

    async def list_active_rules(
        self,
        workspace_id: str,
        decision_type: DecisionType,
    ) -> list[DecisionRule]:
        """Get active rules eligible for a decision.

        Ordered by priority descending; equal priorities keep creation
        order (oldest first).

        Args:
            workspace_id: Owning workspace
            decision_type: Decision type of the event

        Returns:
            Rules in evaluation order
        """
        result = await self._db.execute(
            f"""
            SELECT {', '.join(_COLUMNS)}
            FROM decision_rules
            WHERE workspace_id = ? AND decision_type = ? AND is_active = 1
            ORDER BY priority DESC, created_at ASC, id ASC
            """,
            [workspace_id, DecisionType(decision_type).value],
        )
        return [_to_rule(row_to_dict(result, row)) for row in result.rows]

    async def list_rules(
        self,
        workspace_id: str,
        decision_type: DecisionType | None = None,
        is_active: bool | None = None,
    ) -> list[DecisionRule]:
        """Get rules for a workspace with optional filters.

        Args:
            workspace_id: Owning workspace
            decision_type: Only rules of this type
            is_active: Only active (True) or inactive (False) rules

        Returns:
            Rules ordered by priority descending
        """
        where_clauses = ["workspace_id = ?"]
        params: list[Any] = [workspace_id]

        if decision_type is not None:
            where_clauses.append("decision_type = ?")
            params.append(DecisionType(decision_type).value)

        if is_active is not None:
            where_clauses.append("is_active = ?")
            params.append(int(is_active))

        result = await self._db.execute(
            f"""
            SELECT {', '.join(_COLUMNS)}
            FROM decision_rules
            WHERE {' AND '.join(where_clauses)}
            ORDER BY priority DESC, created_at ASC, id ASC
            """,
            params,
        )
        return [_to_rule(row_to_dict(result, row)) for row in result.rows]

    async def update(
        self,
        rule_id: UUID,
        fields: dict[str, Any],
    ) -> DecisionRule | None:
        """Update operator-editable fields of a rule.

        Args:
            rule_id: Rule identifier
            fields: Column values to set (JSON-compatible)

        Returns:
            Updated rule, or None if not found
        """
        unknown = set(fields) - EDITABLE_COLUMNS
        if unknown:
            msg = f"Not editable: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        if fields:
            params = _to_params(fields)
            assignments = ", ".join(f"{column} = ?" for column in params)
            result = await self._db.execute(
                f"UPDATE decision_rules SET {assignments}, updated_at = ? "
                "WHERE id = ?",
                [*params.values(), format_timestamp(utc_now()), str(rule_id)],
            )
            if result.rows_affected == 0:
                return None
        return await self.get_rule(rule_id)

    async def delete(self, rule_id: UUID) -> bool:
        """Delete a rule.

        Returns:
            True if a rule was deleted, False if not found
        """
        result = await self._db.execute(
            "DELETE FROM decision_rules WHERE id = ?",
            [str(rule_id)],
        )
        return result.rows_affected > 0

    async def increment_counters(
        self,
        rule_id: UUID,
        delta: RuleCounterDelta,
    ) -> bool:
        """Atomically add a delta to a rule's counters.

        The success rate is recomputed in the same statement from the
        post-increment approved/rejected totals (SQLite evaluates the
        right-hand side against the pre-update row).

        Args:
            rule_id: Rule identifier
            delta: Counter increments

        Returns:
            True if the rule exists and was updated
        """
        if delta.is_empty:
            return await self.get_rule(rule_id) is not None

        approved, rejected = delta.approved, delta.rejected
        result = await self._db.execute(
            """
            UPDATE decision_rules SET
                total_triggered = total_triggered + ?,
                total_auto_executed = total_auto_executed + ?,
                total_approved = total_approved + ?,
                total_rejected = total_rejected + ?,
                total_overridden = total_overridden + ?,
                success_rate = CASE
                    WHEN (total_approved + ?) + (total_rejected + ?) > 0
                    THEN (total_approved + ?) * 100.0
                        / ((total_approved + ?) + (total_rejected + ?))
                    ELSE 0
                END,
                updated_at = ?
            WHERE id = ?
            """,
            [
                delta.triggered,
                delta.auto_executed,
                approved,
                rejected,
                delta.overridden,
                approved,
                rejected,
                approved,
                approved,
                rejected,
                format_timestamp(utc_now()),
                str(rule_id),
            ],
        )
        updated = result.rows_affected > 0
        if not updated:
            logger.warning(f"Counter update skipped, rule {rule_id} not found")
        return updated

    async def max_code_sequence(self, workspace_id: str, prefix: str) -> int:
        """Highest numeric suffix among rule codes ``{prefix}-NNNN``.

        Args:
            workspace_id: Owning workspace
            prefix: Code prefix such as ``RULE-202610``

        Returns:
            The largest sequence in use, 0 when there is none
        """
        result = await self._db.execute(
            """
            SELECT MAX(CAST(SUBSTR(rule_code, ?) AS INTEGER))
            FROM decision_rules
            WHERE workspace_id = ? AND rule_code LIKE ?
            """,
            [len(prefix) + 2, workspace_id, f"{prefix}-%"],
        )
        return result.rows[0][0] or 0
