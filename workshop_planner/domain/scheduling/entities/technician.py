"""Technician entity: one lane of the day view."""

from pydantic import Field, field_validator

from ....core.config import settings
from ...shared.base import Entity


class Technician(Entity):
    name: str = Field(min_length=1, max_length=100)
    active: bool = True
    aw_capacity_per_day: int = Field(
        default_factory=lambda: settings.DEFAULT_AW_CAPACITY, ge=0
    )
    skills: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("skills", mode="before")
    @classmethod
    def _normalize_skills(cls, v):
        if v is None:
            return frozenset()
        return frozenset(str(skill).strip() for skill in v if str(skill).strip())

    def lacks_skills(self, required: frozenset[str] | set[str]) -> list[str]:
        """Required skills not covered by this technician (case-insensitive substring match)."""
        known = [skill.lower() for skill in self.skills]
        return sorted(
            skill
            for skill in required
            if not any(skill.lower() in own for own in known)
        )

    def __str__(self) -> str:
        return f"Technician({self.name}, {self.aw_capacity_per_day} AW/day)"
