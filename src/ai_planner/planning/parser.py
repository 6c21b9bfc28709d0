"""Turn free-form LLM plan text into an ordered list of module descriptors.

The LLM is asked for blocks shaped like::

    **Module 1: Title**
    Objectives: ...
    Estimated Time: 3 hours
    Prerequisites: None

but nothing about that shape is trusted. `parse_plan` never raises on text: missing
fields fall back to defaults, surplus modules are dropped, and text with no usable
module at all is replaced by placeholder modules so callers always get a sequence
they can store and lock progress against.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Optional

from ai_planner.planning.fields import BlockFields, extract_fields
from ai_planner.planning.models import ModuleDescriptor, PlanParseContext

logger = logging.getLogger(__name__)

MIN_TITLE_CHARS = 4
DEFAULT_MODULE_HOURS = 2
OVERGENERATION_FACTOR = 1.5
PLACEHOLDER_TITLE = "Learning Objectives"

_BLOCK_BOUNDARY_RE = re.compile(
    r"^(?=[ \t]*(?:#{1,6}[ \t]*)?\*{0,2}[ \t]*module[ \t]+\d+)",
    re.IGNORECASE | re.MULTILINE,
)
_HEADER_RE = re.compile(
    r"^\s*(?:#{1,6}\s*)?\*{0,2}\s*module\s+(?P<number>\d+)\s*[:\-–—]?(?P<title>.*)$",
    re.IGNORECASE,
)
_LEADING_MODULE_RE = re.compile(r"^module\s+\d+\s*[:\-–—]?\s*", re.IGNORECASE)


@dataclass
class _ParsedBlock:
    module_number: int
    title: str
    fields: BlockFields


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def average_module_hours(context: PlanParseContext) -> float:
    """Hours given to a module that states no usable estimate, before clamping."""
    average = _round_half_up(context.total_hours / context.expected_module_count)
    return float(average if average > 0 else DEFAULT_MODULE_HOURS)


def _clamp_hours(hours: float, context: PlanParseContext) -> float:
    return float(min(hours, context.hours_per_week))


def clean_title(raw: str) -> str:
    """Keep the bold span of a header title, dropping any repeated 'Module N:' prefix.

    Text after the closing `**` (such as "(Week 1)") is not part of the title.
    """
    title = raw.strip().lstrip("*").strip()
    title = title.split("**", 1)[0].strip().strip("*").strip()
    match = _LEADING_MODULE_RE.match(title)
    while match:
        title = title[match.end():].strip().strip("*").strip()
        match = _LEADING_MODULE_RE.match(title)
    return title


def split_blocks(plan_text: str) -> List[str]:
    """Split plan text in front of every line that opens a 'Module N' header."""
    return [block for block in _BLOCK_BOUNDARY_RE.split(plan_text) if block.strip()]


def _parse_block(block: str) -> Optional[_ParsedBlock]:
    lines = [line.strip() for line in block.splitlines() if line.strip()]
    if not lines:
        return None
    header = _HEADER_RE.match(lines[0])
    if not header:
        return None
    title = clean_title(header.group("title"))
    if len(title) < MIN_TITLE_CHARS:
        logger.debug("Dropping module %s with unusable title %r", header.group("number"), title)
        return None
    return _ParsedBlock(
        module_number=int(header.group("number")),
        title=title,
        fields=extract_fields(lines[1:]),
    )


def _resolve_objectives(block: _ParsedBlock) -> str:
    objectives = block.fields.objectives.strip()
    if block.fields.objectives_labelled:
        usable = bool(objectives)
    else:
        usable = len(objectives) > 10
    return objectives if usable else f"Learn and master the concepts covered in {block.title}"


def _to_descriptor(block: _ParsedBlock, order_index: int, context: PlanParseContext) -> ModuleDescriptor:
    hours = block.fields.hours
    estimated = hours if hours is not None and hours > 0 else average_module_hours(context)
    return ModuleDescriptor(
        module_number=block.module_number,
        title=f"Module {order_index}: {block.title}",
        objectives=_resolve_objectives(block),
        estimated_time_hours=_clamp_hours(estimated, context),
        prerequisites=block.fields.prerequisites.strip(),
        order_index=order_index,
    )


def placeholder_module(order_index: int, context: PlanParseContext, module_number: Optional[int] = None) -> ModuleDescriptor:
    """Synthesized module used when the text yields too few usable modules."""
    return ModuleDescriptor(
        module_number=order_index if module_number is None else module_number,
        title=f"Module {order_index}: {PLACEHOLDER_TITLE}",
        objectives=f"Complete the learning objectives for module {order_index}",
        estimated_time_hours=_clamp_hours(average_module_hours(context), context),
        prerequisites=f"Completion of Module {order_index - 1}" if order_index > 1 else "",
        order_index=order_index,
        is_placeholder=True,
    )


def placeholder_plan(context: PlanParseContext) -> List[ModuleDescriptor]:
    return [placeholder_module(i, context) for i in range(1, context.expected_module_count + 1)]


def backfill(modules: List[ModuleDescriptor], context: PlanParseContext) -> List[ModuleDescriptor]:
    """Append placeholders at the missing order indexes up to the expected count."""
    filled = list(modules)
    next_number = max((module.module_number for module in filled), default=0) + 1
    for order_index in range(len(filled) + 1, context.expected_module_count + 1):
        filled.append(placeholder_module(order_index, context, module_number=next_number))
        next_number += 1
    return filled


def parse_plan(
    plan_text: str,
    context: PlanParseContext,
    *,
    backfill_missing: bool = False,
) -> List[ModuleDescriptor]:
    """
    Parse LLM plan text into at most `context.expected_module_count` modules.

    Parameters
    ----------
    plan_text : str
        Raw text returned by the plan generator.
    context : PlanParseContext
        Module count, weekly hours, and total hours the plan was requested with.
    backfill_missing : bool, default=False
        When True, a plan that parses to fewer modules than expected is padded with
        placeholder modules so the result length equals the expected count. Each
        caller chooses this explicitly.

    Returns
    -------
    list[ModuleDescriptor]
        Modules ordered by `order_index` (1..N). Empty only when `plan_text` is empty
        or whitespace; text without any usable module yields
        `expected_module_count` placeholders.
    """
    if not plan_text or not plan_text.strip():
        return []

    accepted: List[_ParsedBlock] = []
    seen_numbers = set()
    for block_text in split_blocks(plan_text):
        block = _parse_block(block_text)
        if block is None:
            continue
        if block.module_number in seen_numbers:
            logger.debug("Ignoring repeated module number %s", block.module_number)
            continue
        seen_numbers.add(block.module_number)
        accepted.append(block)

    accepted.sort(key=lambda block: block.module_number)
    working_limit = math.floor(context.expected_module_count * OVERGENERATION_FACTOR)
    selected = accepted[:working_limit][: context.expected_module_count]

    modules = [
        _to_descriptor(block, order_index, context)
        for order_index, block in enumerate(selected, start=1)
    ]

    if not modules:
        logger.info(
            "No usable modules in plan text; using %d placeholder modules",
            context.expected_module_count,
        )
        return placeholder_plan(context)

    if backfill_missing and len(modules) < context.expected_module_count:
        logger.info(
            "Plan text produced %d of %d modules; backfilling placeholders",
            len(modules),
            context.expected_module_count,
        )
        modules = backfill(modules, context)

    logger.debug("Parsed %d modules (found %d blocks)", len(modules), len(accepted))
    return modules
