from .fields import BlockFields, FieldCursor, extract_fields, step
from .models import ModuleDescriptor, PlanParseContext, PlanRequest, TechStackSkill
from .parser import parse_plan
from .prompts import build_learning_plan_prompt, build_revision_prompt

__all__ = [
    "BlockFields",
    "FieldCursor",
    "ModuleDescriptor",
    "PlanParseContext",
    "PlanRequest",
    "TechStackSkill",
    "build_learning_plan_prompt",
    "build_revision_prompt",
    "extract_fields",
    "parse_plan",
    "step",
]
