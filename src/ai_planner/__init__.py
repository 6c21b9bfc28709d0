"""
AI learning planner.

Generates personalised learning plans with an LLM, parses the plan text into
ordered modules, and tracks learner progress through them.
"""

from .config.loader import load_settings
from .planning import PlanParseContext, parse_plan

__all__ = ["PlanParseContext", "load_settings", "parse_plan"]
