"""Base entity class for persisted decision records."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class BaseEntity(BaseModel):
    """Base class for rules and recommendations.

    Provides:
    - Unique ID (UUID)
    - Created/updated timestamps
    - Standard serialization config
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_default=True,
        from_attributes=True,
    )

    id: UUID = Field(default_factory=uuid4, description="Unique record identifier")
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the record was created",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        description="When the record was last updated",
    )
