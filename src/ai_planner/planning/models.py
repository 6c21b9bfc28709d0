from __future__ import annotations

import math
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

WEEKS_PER_MONTH = 4

Proficiency = Literal["Beginner", "Intermediate", "Advanced", "Expert"]


class PlanParseContext(BaseModel):
    """Numeric budget a plan is parsed against.

    `expected_module_count` is one module per week of the plan, `hours_per_week` caps
    any single module, and `total_hours` feeds the average used when a module states
    no usable time estimate.
    """

    expected_module_count: int = Field(ge=1)
    hours_per_week: float = Field(gt=0)
    total_hours: float = Field(0.0, ge=0)

    model_config = {"frozen": True}

    @classmethod
    def from_duration(cls, months: float, hours_per_week: float) -> "PlanParseContext":
        """Derive the context from the duration and weekly budget a learner submitted."""
        weeks = months * WEEKS_PER_MONTH
        return cls(
            expected_module_count=max(1, math.ceil(weeks)),
            hours_per_week=hours_per_week,
            total_hours=weeks * hours_per_week,
        )


class ModuleDescriptor(BaseModel):
    """One normalized module of a plan, ready for the module store."""

    module_number: int = Field(ge=0)
    title: str = Field(min_length=4)
    objectives: str = Field(min_length=1)
    estimated_time_hours: float = Field(gt=0)
    prerequisites: str = ""
    order_index: int = Field(ge=1)
    is_placeholder: bool = False


class TechStackSkill(BaseModel):
    """A technology the plan should cover, with the learner's current level."""

    name: str
    proficiency: Proficiency = "Beginner"
    years_of_experience: float = Field(0.0, ge=0)


class PlanRequest(BaseModel):
    """Learner-submitted goals and budget that a plan is generated for."""

    goals: str = Field(min_length=1)
    months: float = Field(gt=0)
    hours_per_week: float = Field(gt=0)
    project_name: Optional[str] = None
    tech_stacks: List[TechStackSkill] = Field(default_factory=list)
    role: str = "Software Engineer"
    total_experience: Optional[float] = None
    strengths: str = ""
    improvement_areas: str = ""

    @property
    def is_project_related(self) -> bool:
        return bool(self.project_name)

    def parse_context(self) -> PlanParseContext:
        return PlanParseContext.from_duration(self.months, self.hours_per_week)
