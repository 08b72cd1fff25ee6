"""Rule template model: a reusable condition skeleton for new rules."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from decision_engine.models.base import BaseEntity
from decision_engine.models.rule import (
    ConditionOperator,
    DecisionType,
    RecommendedAction,
)


class TemplateCategory(str, Enum):
    """Business area a template belongs to; also tags rules built from it."""

    EXPENSE = "expense"
    PURCHASE = "purchase"
    PRODUCTION = "production"
    STOCK = "stock"
    PRICING = "pricing"
    CREDIT = "credit"
    CUSTOM = "custom"


class TemplateFieldType(str, Enum):
    """Input widget hint for a templated condition value."""

    NUMBER = "number"
    TEXT = "text"
    DATE = "date"
    BOOLEAN = "boolean"
    SELECT = "select"


class TemplateOption(BaseModel):
    """A selectable value for a ``select`` field."""

    value: Any
    label: str


class ConditionTemplate(BaseModel):
    """One condition of a template; the value is filled in per rule."""

    field: str = Field(min_length=1, description="Dotted path into the context")
    field_label: str = Field(default="")
    field_type: TemplateFieldType = TemplateFieldType.TEXT
    operator: ConditionOperator
    operator_label: str = Field(default="")
    default_value: Any = Field(default=None, description="Used when no value is given")
    options: list[TemplateOption] = Field(default_factory=list)


class RuleTemplate(BaseEntity):
    """Template that rules are instantiated from.

    Templates are shared across workspaces. ``usage_count`` is bumped
    each time a rule is created from the template.
    """

    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="")
    category: TemplateCategory
    decision_type: DecisionType
    condition_template: list[ConditionTemplate] = Field(min_length=1)
    action: RecommendedAction
    is_active: bool = True
    usage_count: int = Field(default=0, ge=0)
