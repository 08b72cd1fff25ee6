"""Decision rule model: a configured policy for one decision type."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from decision_engine.models.base import BaseEntity


class DecisionType(str, Enum):
    """Family of business events a rule applies to."""

    EXPENSE_APPROVAL = "expense_approval"
    PURCHASE_ORDER = "purchase_order"
    PRODUCTION_ORDER = "production_order"
    STOCK_REPLENISHMENT = "stock_replenishment"
    PRICE_ADJUSTMENT = "price_adjustment"
    CREDIT_APPROVAL = "credit_approval"
    SUPPLIER_SELECTION = "supplier_selection"
    INVESTMENT = "investment"
    HIRING = "hiring"
    CUSTOM = "custom"


class RecommendedAction(str, Enum):
    """Action a rule recommends when it matches."""

    APPROVE = "approve"
    REJECT = "reject"
    ESCALATE = "escalate"


class ConditionOperator(str, Enum):
    """Operators understood by the condition evaluator."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"


class LogicalOperator(str, Enum):
    """How a condition's successor combines with the running result."""

    AND = "AND"
    OR = "OR"


class RuleCondition(BaseModel):
    """A single ``field operator value`` test against the event context.

    ``operator`` is kept as a plain string: stored rules may carry an
    operator the evaluator does not know, and such a condition must
    evaluate to False instead of failing to load.
    """

    field: str = Field(default="", description="Dotted path into the context")
    operator: str = Field(default="", description="Comparison operator name")
    value: Any = Field(default=None, description="Value to compare against")
    logical_operator: LogicalOperator = Field(
        default=LogicalOperator.AND,
        description="Combinator applied when advancing to the next condition",
    )

    @field_validator("logical_operator", mode="before")
    @classmethod
    def normalize_logical_operator(cls, value: Any) -> Any:
        """Uppercase the combinator; anything but OR folds as AND."""
        if isinstance(value, LogicalOperator):
            return value
        if isinstance(value, str) and value.strip().upper() == "OR":
            return LogicalOperator.OR
        return LogicalOperator.AND


class DecisionRule(BaseEntity):
    """A configured condition set, recommended action and execution policy.

    Rules are created and edited by operators. The engine only reads them
    and increments the running counters.
    """

    rule_code: str | None = Field(default=None, description="e.g. RULE-202610-0001")
    name: str = Field(min_length=1, max_length=200, description="Human name")
    description: str = Field(default="", description="Free-text description")
    workspace_id: str = Field(description="Owning workspace")
    decision_type: DecisionType = Field(description="Events this rule applies to")
    priority: int = Field(default=100, description="Higher is evaluated first")
    conditions: list[RuleCondition] = Field(default_factory=list)
    recommended_action: RecommendedAction = Field(description="Action on match")
    auto_execute: bool = Field(default=False)
    requires_approval: bool = Field(default=False)
    is_active: bool = Field(default=True)
    notify_on_trigger: bool = Field(default=False)
    notify_users: list[str] = Field(
        default_factory=list,
        description="Recipients told when the rule matches",
    )
    tags: list[str] = Field(default_factory=list)
    notes: str | None = Field(default=None)
    created_by_id: str | None = Field(default=None)
    created_by_name: str | None = Field(default=None)

    # Running counters, mutated only by the engine
    total_triggered: int = Field(default=0, ge=0)
    total_auto_executed: int = Field(default=0, ge=0)
    total_approved: int = Field(default=0, ge=0)
    total_rejected: int = Field(default=0, ge=0)
    total_overridden: int = Field(default=0, ge=0)
    success_rate: float = Field(default=0.0, ge=0.0, le=100.0)

    @property
    def executes_unattended(self) -> bool:
        """True when a match is finalized without a human decision."""
        return self.auto_execute and not self.requires_approval
