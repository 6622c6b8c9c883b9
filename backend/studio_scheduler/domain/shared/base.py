"""Base classes for domain entities, value objects and events."""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValueObject(BaseModel):
    """Base class for value objects (immutable, defined by their values)."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Entity(BaseModel):
    """
    Base class for scheduling records that carry an identity.

    Snapshots handed to the engine are shared by several derived views within
    one recompute pass, so entities are frozen; changes go through
    ``model_copy(update=...)`` and produce a new snapshot.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str

    def __hash__(self) -> int:
        """Hash based on entity ID."""
        return hash((self.__class__.__name__, self.id))


class DomainEvent(BaseModel):
    """Base class for domain events."""

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    occurred_at: datetime = Field(default_factory=utcnow)
    studio_id: str
    job_id: str
    event_version: int = 1
