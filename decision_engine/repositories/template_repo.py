"""Repository for rule templates (``rule_templates`` table)."""

import json
import logging
from typing import Any
from uuid import UUID

from decision_engine.db.turso import TursoClient, format_timestamp, row_to_dict
from decision_engine.models.base import utc_now
from decision_engine.models.template import RuleTemplate, TemplateCategory

logger = logging.getLogger(__name__)

_COLUMNS = [
    "id",
    "name",
    "description",
    "category",
    "decision_type",
    "condition_template",
    "action",
    "is_active",
    "usage_count",
    "created_at",
    "updated_at",
]


def _to_template(data: dict[str, Any]) -> RuleTemplate:
    data["condition_template"] = json.loads(data["condition_template"] or "[]")
    return RuleTemplate.model_validate(data)


class TemplateRepository:
    """Repository for rule templates."""

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create templates table if not exists."""
        await self._db.execute(
            """
            CREATE TABLE IF NOT EXISTS rule_templates (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                category TEXT NOT NULL,
                decision_type TEXT NOT NULL,
                condition_template TEXT NOT NULL,
                action TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                usage_count INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )

    async def create(self, template: RuleTemplate) -> RuleTemplate:
        """Insert a new template."""
        data = template.model_dump(mode="json")
        data["condition_template"] = json.dumps(data["condition_template"])
        data["is_active"] = int(template.is_active)
        data["created_at"] = format_timestamp(template.created_at)
        data["updated_at"] = format_timestamp(template.updated_at)
        placeholders = ", ".join("?" for _ in _COLUMNS)
        await self._db.execute(
            f"INSERT INTO rule_templates ({', '.join(_COLUMNS)}) "
            f"VALUES ({placeholders})",
            [data[column] for column in _COLUMNS],
        )
        logger.debug(f"Created rule template {template.id} ({template.name})")
        return template

    async def get_template(self, template_id: UUID) -> RuleTemplate | None:
        """Get template by ID, active or not."""
        result = await self._db.execute(
            f"SELECT {', '.join(_COLUMNS)} FROM rule_templates WHERE id = ?",
            [str(template_id)],
        )
        if not result.rows:
            return None
        return _to_template(row_to_dict(result, result.rows[0]))

    async def list_templates(
        self,
        category: TemplateCategory | None = None,
    ) -> list[RuleTemplate]:
        """Active templates, most used first.

        Args:
            category: Only templates of this category

        Returns:
            Matching templates
        """
        where_clauses = ["is_active = 1"]
        params: list[Any] = []
        if category is not None:
            where_clauses.append("category = ?")
            params.append(TemplateCategory(category).value)

        result = await self._db.execute(
            f"""
            SELECT {', '.join(_COLUMNS)}
            FROM rule_templates
            WHERE {' AND '.join(where_clauses)}
            ORDER BY usage_count DESC, name ASC
            """,
            params,
        )
        return [_to_template(row_to_dict(result, row)) for row in result.rows]

    async def increment_usage(self, template_id: UUID) -> bool:
        """Atomically bump a template's usage count.

        Returns:
            True if the template exists
        """
        result = await self._db.execute(
            """
            UPDATE rule_templates
            SET usage_count = usage_count + 1, updated_at = ?
            WHERE id = ?
            """,
            [format_timestamp(utc_now()), str(template_id)],
        )
        return result.rows_affected > 0
