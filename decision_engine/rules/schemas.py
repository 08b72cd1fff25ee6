"""Rule management schemas."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from decision_engine.models.rule import (
    ConditionOperator,
    DecisionType,
    LogicalOperator,
    RecommendedAction,
    RuleCondition,
)
from decision_engine.models.template import (
    ConditionTemplate,
    TemplateCategory,
)


class ConditionInput(BaseModel):
    """A condition as submitted by an operator; the operator must be known."""

    field: str = Field(min_length=1, description="Dotted path into the context")
    operator: ConditionOperator
    value: Any = None
    logical_operator: LogicalOperator = LogicalOperator.AND

    @model_validator(mode="after")
    def check_value_shape(self) -> "ConditionInput":
        """``between`` needs [low, high]; ``in``/``not_in`` need a list."""
        if self.operator == ConditionOperator.BETWEEN and (
            not isinstance(self.value, list) or len(self.value) != 2
        ):
            msg = "between requires a [low, high] list"
            raise ValueError(msg)
        if self.operator in (
            ConditionOperator.IN,
            ConditionOperator.NOT_IN,
        ) and not isinstance(self.value, list):
            msg = f"{self.operator.value} requires a list"
            raise ValueError(msg)
        return self

    def to_condition(self) -> RuleCondition:
        """Convert to the stored condition model."""
        return RuleCondition(
            field=self.field,
            operator=self.operator.value,
            value=self.value,
            logical_operator=self.logical_operator,
        )


class RuleCreate(BaseModel):
    """Schema for creating a rule."""

    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="")
    decision_type: DecisionType
    conditions: list[ConditionInput] = Field(
        min_length=1, description="At least one condition is required"
    )
    recommended_action: RecommendedAction
    auto_execute: bool = False
    requires_approval: bool = False
    notify_on_trigger: bool = False
    notify_users: list[str] = Field(default_factory=list)
    priority: int | None = Field(default=None, description="Defaults from settings")
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None
    workspace_id: str = Field(min_length=1)
    created_by_id: str | None = None
    created_by_name: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        """Reject whitespace-only names."""
        if not value.strip():
            msg = "Rule name is required"
            raise ValueError(msg)
        return value.strip()


class RuleUpdate(BaseModel):
    """Schema for updating a rule; only set fields are written."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    decision_type: DecisionType | None = None
    conditions: list[ConditionInput] | None = Field(default=None, min_length=1)
    recommended_action: RecommendedAction | None = None
    auto_execute: bool | None = None
    requires_approval: bool | None = None
    notify_on_trigger: bool | None = None
    notify_users: list[str] | None = None
    is_active: bool | None = None
    priority: int | None = None
    tags: list[str] | None = None
    notes: str | None = None


class RulePerformance(BaseModel):
    """Outcome statistics for one rule."""

    rule_id: UUID
    rule_name: str
    total_triggered: int
    total_auto_executed: int
    total_approved: int
    total_rejected: int
    total_overridden: int
    success_rate: float = Field(description="approved / (approved + rejected) %")
    override_rate: float = Field(description="overridden / triggered %")


class TopRule(BaseModel):
    """Entry in the best-performing rules list."""

    rule_id: UUID
    rule_name: str
    success_rate: float


class RulesDashboard(BaseModel):
    """Workspace-level rule summary."""

    total_rules: int
    active_rules: int
    inactive_rules: int
    total_triggered: int
    total_auto_executed: int
    top_performing_rules: list[TopRule] = Field(default_factory=list)


class TemplateCreate(BaseModel):
    """Schema for creating a rule template."""

    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="")
    category: TemplateCategory
    decision_type: DecisionType
    condition_template: list[ConditionTemplate] = Field(min_length=1)
    action: RecommendedAction


class RuleFromTemplate(BaseModel):
    """Values for instantiating a rule from a template.

    ``condition_values`` maps a templated field to its value; fields left
    out (or None) use the template's default value.
    """

    name: str = Field(min_length=1, max_length=200)
    condition_values: dict[str, Any] = Field(default_factory=dict)
    workspace_id: str = Field(min_length=1)
    user_id: str | None = None
    user_name: str | None = None
