"""Prompt contract for the plan generator.

The parser only understands the module-block layout spelled out at the end of
`build_learning_plan_prompt`; keep the two in step.
"""

from __future__ import annotations

from typing import List

from ai_planner.planning.models import PlanRequest, TechStackSkill
from ai_planner.planning.parser import average_module_hours

MODULE_FORMAT = """\
**Module 1: [Clear, Descriptive Title]**

[Optional: Brief description or additional context for this module]

Objectives: [Specific learning objectives - what the learner will achieve]

Estimated Time: [X] hours

Prerequisites: [List any prerequisites or "None" if none]

**Module 2: [Clear, Descriptive Title]**

Objectives: [Specific learning objectives]

Estimated Time: [X] hours

Prerequisites: [Prerequisites or "None"]

...continue for all modules..."""


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _tech_stack_lines(tech_stacks: List[TechStackSkill]) -> str:
    if not tech_stacks:
        return "No tech stacks specified"
    return "\n".join(
        f"- {stack.name}: {stack.proficiency} level "
        f"({_format_number(stack.years_of_experience)} years of experience)"
        for stack in tech_stacks
    )


def _proficiency_rules(tech_stacks: List[TechStackSkill]) -> str:
    if not tech_stacks:
        return "- Assume beginner level for all tech stacks if proficiency is not specified."
    return (
        '- For tech stacks where the learner is "Advanced" or "Expert": DO NOT include beginner-level '
        "content. Focus on advanced topics, best practices, optimization, architecture, and complex "
        "real-world scenarios.\n"
        '- For tech stacks where the learner is "Intermediate": include intermediate to advanced topics, '
        "skip basic fundamentals.\n"
        '- For tech stacks where the learner is "Beginner": start from basics and build up progressively.\n'
        "- Match the difficulty of each module to the learner's proficiency in the relevant tech stack(s)."
    )


def build_learning_plan_prompt(request: PlanRequest) -> str:
    """Render the prompt asking the LLM for a plan in the parseable module-block format."""
    context = request.parse_context()
    months = _format_number(request.months)
    hours_per_week = _format_number(request.hours_per_week)
    total_hours = _format_number(context.total_hours)
    average_hours = _format_number(average_module_hours(context))
    module_count = context.expected_module_count
    project = f"Yes - {request.project_name}" if request.is_project_related else "No"
    experience = (
        _format_number(request.total_experience)
        if request.total_experience is not None
        else "Not specified"
    )

    return f"""You are an expert learning and development consultant for software engineering teams.
Generate a comprehensive, structured learning plan based on the following requirements:

Learning Goals/Objectives: {request.goals}
Hours per week: {hours_per_week}
Duration: {months} months
Related to existing project: {project}

Tech Stacks and Learner Proficiency:
{_tech_stack_lines(request.tech_stacks)}

User Profile Context:
- Role: {request.role}
- Total Experience: {experience} years
- Strengths: {request.strengths or "Not specified"}
- Improvement Areas: {request.improvement_areas or "Not specified"}

IMPORTANT TIME CONSTRAINTS:
- Total available hours: {total_hours} hours ({months} months x 4 weeks x {hours_per_week} hours/week)
- Average hours per module: {average_hours} hours
- Each module's estimated time must NOT exceed {hours_per_week} hours

Create a learning plan with approximately {module_count} modules (one per week). Each module needs a
clear title, specific and measurable objectives, an estimated time in whole hours, and prerequisites.

Respect the learner's proficiency levels:
{_proficiency_rules(request.tech_stacks)}

Format each module EXACTLY as follows (this format is CRITICAL for parsing):

{MODULE_FORMAT}

CRITICAL FORMATTING RULES:
- Start each module with "**Module X:**" (with asterisks) followed by the title on the same line
- Give estimated time as a single whole number of hours, never a range or decimal
- Use "None" when a module has no prerequisites
- Put any description directly under the module title, never after Prerequisites
- Use clear, descriptive titles (NOT generic like "Learning Objectives" or just numbers)
- DO NOT create more than {module_count} modules

Return ONLY the modules in the exact format above. Do not add extra text before or after the modules."""


def build_revision_prompt(current_plan: str, revision_request: str) -> str:
    """Render the prompt asking the LLM to rework an existing plan per reviewer feedback."""
    return f"""You are helping improve a learning plan. Here is the current plan:

{current_plan.strip()}

The reviewer wants the following improvements or adjustments:

{revision_request.strip()}

Provide an improved version of the learning plan that incorporates these changes while keeping the
same module format ("**Module X: Title**" followed by Objectives, Estimated Time, and Prerequisites)."""
