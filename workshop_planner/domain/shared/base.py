"""Base classes for domain entities and value objects."""

from abc import ABC
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class ValueObject(BaseModel):
    """Base class for value objects (immutable, defined by their values)."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Entity(BaseModel, ABC):
    """Base class for entities (have identity, can change over time)."""

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime | None = None

    def __eq__(self, other: Any) -> bool:
        """Entities are equal if they have the same ID and type."""
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash based on entity ID."""
        return hash(self.id)

    def with_changes(self, changes: dict[str, Any]) -> "Entity":
        """Return a validated copy with ``changes`` applied.

        Entities handed out in a day snapshot are never mutated; repositories
        apply patches through this method so validators run on the result.
        """
        data = self.model_dump()
        data.update(changes)
        data["updated_at"] = datetime.now()
        return self.__class__.model_validate(data)
