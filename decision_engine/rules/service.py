"""Rule management: create, edit, toggle, duplicate and report on rules.

Rules are operator-owned. This service never touches the running
counters; those are only changed by the decision engine.
"""

from typing import Any
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from decision_engine.config import settings
from decision_engine.engine.scoring import success_rate
from decision_engine.errors import NotFoundError, ValidationError
from decision_engine.models.base import utc_now
from decision_engine.models.rule import DecisionRule, DecisionType
from decision_engine.models.template import RuleTemplate, TemplateCategory
from decision_engine.repositories.rule_repo import RuleRepository
from decision_engine.repositories.template_repo import TemplateRepository
from decision_engine.rules.schemas import (
    ConditionInput,
    RuleCreate,
    RuleFromTemplate,
    RulePerformance,
    RulesDashboard,
    RuleUpdate,
    TemplateCreate,
    TopRule,
)

logger = structlog.get_logger()

TOP_RULES_LIMIT = 5


class RuleService:
    """Operator-facing rule management."""

    def __init__(self, rule_repo: RuleRepository, template_repo: TemplateRepository):
        self._repo = rule_repo
        self._templates = template_repo

    async def create_rule(self, rule_in: RuleCreate) -> DecisionRule:
        """Create an active rule with zeroed counters and a fresh rule code.

        Args:
            rule_in: Validated rule definition

        Returns:
            The persisted rule
        """
        rule = DecisionRule(
            rule_code=await self._next_rule_code(rule_in.workspace_id),
            name=rule_in.name,
            description=rule_in.description,
            workspace_id=rule_in.workspace_id,
            decision_type=rule_in.decision_type,
            priority=(
                rule_in.priority
                if rule_in.priority is not None
                else settings.default_rule_priority
            ),
            conditions=[condition.to_condition() for condition in rule_in.conditions],
            recommended_action=rule_in.recommended_action,
            auto_execute=rule_in.auto_execute,
            requires_approval=rule_in.requires_approval,
            notify_on_trigger=rule_in.notify_on_trigger,
            notify_users=rule_in.notify_users,
            is_active=True,
            tags=rule_in.tags,
            notes=rule_in.notes,
            created_by_id=rule_in.created_by_id,
            created_by_name=rule_in.created_by_name,
        )
        if rule.executes_unattended:
            logger.warning(
                "rule executes without approval",
                rule_name=rule.name,
                decision_type=rule.decision_type.value,
            )

        created = await self._repo.create(rule)
        logger.info("rule created", rule_id=str(created.id), rule_code=created.rule_code)
        return created

    async def get_rule(self, rule_id: UUID) -> DecisionRule:
        """Get a rule or raise NotFoundError."""
        rule = await self._repo.get_rule(rule_id)
        if rule is None:
            raise NotFoundError("Rule", rule_id)
        return rule

    async def list_rules(
        self,
        workspace_id: str,
        decision_type: DecisionType | None = None,
        is_active: bool | None = None,
        tags: list[str] | None = None,
    ) -> list[DecisionRule]:
        """List rules by priority descending.

        Args:
            workspace_id: Owning workspace
            decision_type: Only rules of this type
            is_active: Only active or only inactive rules
            tags: Only rules carrying at least one of these tags

        Returns:
            Matching rules
        """
        rules = await self._repo.list_rules(
            workspace_id, decision_type=decision_type, is_active=is_active
        )
        if tags:
            wanted = set(tags)
            rules = [rule for rule in rules if wanted.intersection(rule.tags)]
        return rules

    async def update_rule(self, rule_id: UUID, rule_in: RuleUpdate) -> DecisionRule:
        """Update the fields set on ``rule_in``."""
        fields = rule_in.model_dump(mode="json", exclude_unset=True)
        if "conditions" in fields and rule_in.conditions is not None:
            fields["conditions"] = [
                condition.to_condition().model_dump(mode="json")
                for condition in rule_in.conditions
            ]
        if any(value is None for key, value in fields.items() if key != "notes"):
            msg = "Only notes may be cleared"
            raise ValidationError(msg)

        updated = await self._repo.update(rule_id, fields)
        if updated is None:
            raise NotFoundError("Rule", rule_id)
        logger.info("rule updated", rule_id=str(rule_id), fields=sorted(fields))
        return updated

    async def toggle_rule(self, rule_id: UUID, is_active: bool) -> DecisionRule:
        """Activate or soft-disable a rule."""
        return await self.update_rule(rule_id, RuleUpdate(is_active=is_active))

    async def delete_rule(self, rule_id: UUID) -> None:
        """Delete a rule; its recommendations are kept."""
        if not await self._repo.delete(rule_id):
            raise NotFoundError("Rule", rule_id)
        logger.info("rule deleted", rule_id=str(rule_id))

    async def duplicate_rule(
        self,
        rule_id: UUID,
        new_name: str,
        user_id: str,
        user_name: str,
    ) -> DecisionRule:
        """Copy a rule under a new name.

        The copy has auto-execution disabled and sits one priority step
        below the original.
        """
        if not new_name.strip():
            msg = "New rule name is required"
            raise ValidationError(msg)

        original = await self.get_rule(rule_id)
        copy = original.model_copy(
            update={
                "name": new_name.strip(),
                "description": f"{original.description} (copy)".strip(),
                "auto_execute": False,
                "priority": original.priority - 1,
                "created_by_id": user_id,
                "created_by_name": user_name,
            }
        )
        rule = DecisionRule(
            **copy.model_dump(
                exclude={
                    "id",
                    "rule_code",
                    "created_at",
                    "updated_at",
                    "total_triggered",
                    "total_auto_executed",
                    "total_approved",
                    "total_rejected",
                    "total_overridden",
                    "success_rate",
                }
            ),
            rule_code=await self._next_rule_code(original.workspace_id),
        )
        created = await self._repo.create(rule)
        logger.info(
            "rule duplicated",
            source_rule_id=str(rule_id),
            rule_id=str(created.id),
        )
        return created

    async def get_rule_performance(self, rule_id: UUID) -> RulePerformance:
        """Outcome statistics for a rule."""
        rule = await self.get_rule(rule_id)
        override_rate = (
            rule.total_overridden / rule.total_triggered * 100
            if rule.total_triggered > 0
            else 0.0
        )
        return RulePerformance(
            rule_id=rule.id,
            rule_name=rule.name,
            total_triggered=rule.total_triggered,
            total_auto_executed=rule.total_auto_executed,
            total_approved=rule.total_approved,
            total_rejected=rule.total_rejected,
            total_overridden=rule.total_overridden,
            success_rate=success_rate(rule.total_approved, rule.total_rejected),
            override_rate=override_rate,
        )

    async def get_rules_dashboard(self, workspace_id: str) -> RulesDashboard:
        """Summarize the rules of a workspace."""
        rules = await self._repo.list_rules(workspace_id)
        active = [rule for rule in rules if rule.is_active]

        ranked = sorted(
            (rule for rule in rules if rule.success_rate > 0),
            key=lambda rule: rule.success_rate,
            reverse=True,
        )
        return RulesDashboard(
            total_rules=len(rules),
            active_rules=len(active),
            inactive_rules=len(rules) - len(active),
            total_triggered=sum(rule.total_triggered for rule in rules),
            total_auto_executed=sum(rule.total_auto_executed for rule in rules),
            top_performing_rules=[
                TopRule(
                    rule_id=rule.id,
                    rule_name=rule.name,
                    success_rate=rule.success_rate,
                )
                for rule in ranked[:TOP_RULES_LIMIT]
            ],
        )

    async def create_rule_template(self, template_in: TemplateCreate) -> RuleTemplate:
        """Create an active template with a zero usage count."""
        template = await self._templates.create(
            RuleTemplate(**template_in.model_dump())
        )
        logger.info(
            "rule template created",
            template_id=str(template.id),
            category=template.category.value,
        )
        return template

    async def list_rule_templates(
        self, category: TemplateCategory | None = None
    ) -> list[RuleTemplate]:
        """Active templates, optionally of one category."""
        return await self._templates.list_templates(category)

    async def create_rule_from_template(
        self, template_id: UUID, rule_in: RuleFromTemplate
    ) -> DecisionRule:
        """Instantiate a rule from a template.

        Conditions are AND-ed in template order. The rule requires
        approval, does not auto-execute, and is tagged with the template
        category.

        Args:
            template_id: Source template
            rule_in: Rule name, workspace, author and condition values

        Returns:
            The persisted rule

        Raises:
            NotFoundError: If the template does not exist or is inactive
            ValidationError: If a condition value does not fit its operator
        """
        template = await self._templates.get_template(template_id)
        if template is None or not template.is_active:
            raise NotFoundError("RuleTemplate", template_id)

        try:
            conditions = [
                ConditionInput(
                    field=slot.field,
                    operator=slot.operator,
                    value=_slot_value(
                        rule_in.condition_values, slot.field, slot.default_value
                    ),
                )
                for slot in template.condition_template
            ]
            rule_create = RuleCreate(
                name=rule_in.name,
                description=template.description,
                decision_type=template.decision_type,
                conditions=conditions,
                recommended_action=template.action,
                auto_execute=False,
                requires_approval=True,
                tags=[template.category.value],
                workspace_id=rule_in.workspace_id,
                created_by_id=rule_in.user_id,
                created_by_name=rule_in.user_name,
            )
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e

        rule = await self.create_rule(rule_create)
        await self._templates.increment_usage(template.id)
        logger.info(
            "rule created from template",
            template_id=str(template.id),
            rule_id=str(rule.id),
        )
        return rule

    async def _next_rule_code(self, workspace_id: str) -> str:
        """Generate ``RULE-YYYYMM-NNNN``, sequenced per workspace and month.

        The sequence continues from the highest code in use, so deleting
        a rule never frees its code for reuse.
        """
        prefix = f"RULE-{utc_now():%Y%m}"
        highest = await self._repo.max_code_sequence(workspace_id, prefix)
        return f"{prefix}-{highest + 1:04d}"


def _slot_value(values: dict[str, Any], field: str, default: Any) -> Any:
    value = values.get(field)
    return default if value is None else value
