"""Tests for the plan lifecycle call sites in PlanService."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import List

import pytest

from ai_planner.config.schema import PlanningConfig
from ai_planner.planning import PlanRequest
from ai_planner.services.plan_service import PlanGenerationError, PlanService, PlanStateError
from ai_planner.storage import ModuleJsonlStore, PlanStatus, PlanStore

TWO_MODULE_PLAN = """**Module 1: Async Foundations**
Objectives: Understand the event loop
Estimated Time: 4 hours
Prerequisites: None

**Module 2: Structured Concurrency**
Objectives: Use task groups safely
Estimated Time: 5 hours
Prerequisites: Module 1
"""

ONE_MODULE_PLAN = """**Module 1: Async Testing**
Objectives: Test coroutines with pytest
Estimated Time: 3 hours
"""


class FakeGenerator:
    """Returns canned responses in order and records every prompt."""

    def __init__(self, responses: List[str]):
        self.responses = list(responses)
        self.prompts: List[str] = []

    def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.responses.pop(0)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for plan and module storage."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def plan_request():
    """One month at five hours a week: four modules, five hours each on average."""
    return PlanRequest(goals="Write reliable asyncio services", months=1, hours_per_week=5)


def _service(temp_dir: Path, responses: List[str], config: PlanningConfig | None = None) -> PlanService:
    return PlanService(
        FakeGenerator(responses),
        PlanStore(temp_dir / "plans"),
        ModuleJsonlStore(temp_dir / "modules.jsonl"),
        config,
    )


def test_create_plan_backfills_and_stores(temp_dir, plan_request):
    """Plan creation pads a short plan to the expected module count."""
    service = _service(temp_dir, [TWO_MODULE_PLAN])

    record = service.create_plan("learner-1", plan_request)
    modules = service.modules(record.plan_id)

    assert record.status is PlanStatus.PENDING
    assert service.plan_store.load(record.plan_id).generated_plan == TWO_MODULE_PLAN
    assert len(modules) == 4
    assert [module.is_placeholder for module in modules] == [False, False, True, True]
    assert modules[1].prerequisites == "Module 1"
    assert modules[3].estimated_time_hours == 5
    assert "Write reliable asyncio services" in service.generator.prompts[0]


def test_create_plan_respects_backfill_setting(temp_dir, plan_request):
    """Turning backfill off at creation keeps only the parsed modules."""
    service = _service(temp_dir, [TWO_MODULE_PLAN], PlanningConfig(backfill_on_create=False))

    record = service.create_plan("learner-1", plan_request)

    assert len(service.modules(record.plan_id)) == 2


def test_empty_generation_raises(temp_dir, plan_request):
    """A blank generator response is an error and nothing is stored."""
    service = _service(temp_dir, ["   "])

    with pytest.raises(PlanGenerationError):
        service.create_plan("learner-1", plan_request)

    assert list((temp_dir / "plans").glob("*.json")) == []


def test_revise_plan_does_not_backfill(temp_dir, plan_request):
    """An edited plan replaces the module set without placeholders."""
    service = _service(temp_dir, [TWO_MODULE_PLAN])
    record = service.create_plan("learner-1", plan_request)

    modules = service.revise_plan(record.plan_id, ONE_MODULE_PLAN)

    assert [module.title for module in modules] == ["Module 1: Async Testing"]
    assert service.modules(record.plan_id) == modules
    assert service.plan_store.load(record.plan_id).adjusted_plan == ONE_MODULE_PLAN


def test_revise_plan_with_blank_text_keeps_modules(temp_dir, plan_request):
    """Blank edited text leaves the stored module set alone."""
    service = _service(temp_dir, [TWO_MODULE_PLAN])
    record = service.create_plan("learner-1", plan_request)

    assert service.revise_plan(record.plan_id, "  \n") == []
    assert len(service.modules(record.plan_id)) == 4


def test_revise_plan_truncates_long_text(temp_dir, plan_request):
    """Only the first max_plan_chars characters are parsed."""
    service = _service(temp_dir, [TWO_MODULE_PLAN], PlanningConfig(max_plan_chars=1000))
    record = service.create_plan("learner-1", plan_request)
    text = (
        "**Module 1: Async Foundations**\n"
        "Objectives: Understand the event loop\n"
        "Estimated Time: 4 hours\n" + "filler " * 200 + "\n"
        "**Module 2: Structured Concurrency**\n"
        "Objectives: Use task groups safely\n"
    )

    modules = service.revise_plan(record.plan_id, text)

    assert [module.title for module in modules] == ["Module 1: Async Foundations"]


def test_improve_plan_uses_revision_prompt(temp_dir, plan_request):
    """The reviewer's request and the current text go to the generator."""
    service = _service(temp_dir, [TWO_MODULE_PLAN, ONE_MODULE_PLAN])
    record = service.create_plan("learner-1", plan_request)

    modules = service.improve_plan(record.plan_id, "Focus on testing")

    revision_prompt = service.generator.prompts[1]
    assert "Focus on testing" in revision_prompt
    assert "Structured Concurrency" in revision_prompt
    assert len(modules) == 1


def test_approve_with_adjusted_text(temp_dir, plan_request):
    """Approving with edited text re-derives the modules from it."""
    service = _service(temp_dir, [TWO_MODULE_PLAN])
    record = service.create_plan("learner-1", plan_request)

    approved = service.approve_plan(record.plan_id, "admin-1", adjusted_text=ONE_MODULE_PLAN)

    assert approved.status is PlanStatus.APPROVED
    assert approved.approved_by == "admin-1"
    assert approved.approved_at is not None
    assert [module.title for module in service.modules(record.plan_id)] == ["Module 1: Async Testing"]


def test_approve_without_changes_keeps_modules(temp_dir, plan_request):
    service = _service(temp_dir, [TWO_MODULE_PLAN])
    record = service.create_plan("learner-1", plan_request)

    service.approve_plan(record.plan_id, "admin-1", adjusted_text=TWO_MODULE_PLAN)

    assert len(service.modules(record.plan_id)) == 4
    assert service.plan_store.load(record.plan_id).adjusted_plan is None


def test_status_transitions(temp_dir, plan_request):
    """Plans start only after approval and cannot be approved twice."""
    service = _service(temp_dir, [TWO_MODULE_PLAN])
    record = service.create_plan("learner-1", plan_request)

    with pytest.raises(PlanStateError):
        service.start_plan(record.plan_id)

    service.approve_plan(record.plan_id, "admin-1")
    with pytest.raises(PlanStateError):
        service.approve_plan(record.plan_id, "admin-1")

    assert service.start_plan(record.plan_id).status is PlanStatus.IN_PROGRESS
    assert service.complete_plan(record.plan_id).status is PlanStatus.COMPLETED


def test_reject_plan(temp_dir, plan_request):
    service = _service(temp_dir, [TWO_MODULE_PLAN])
    record = service.create_plan("learner-1", plan_request)

    rejected = service.reject_plan(record.plan_id, "Too broad")

    assert rejected.status is PlanStatus.REJECTED
    assert service.plan_store.load(record.plan_id).admin_notes == "Too broad"
    with pytest.raises(PlanStateError):
        service.reject_plan(record.plan_id, "Again")


@pytest.mark.parametrize("advance", ["approve", "start", "complete"])
def test_revision_refused_once_plan_is_approved(temp_dir, plan_request, advance):
    """Approved, started, or finished plans keep their module set."""
    service = _service(temp_dir, [TWO_MODULE_PLAN, ONE_MODULE_PLAN])
    record = service.create_plan("learner-1", plan_request)
    service.approve_plan(record.plan_id, "admin-1")
    if advance in ("start", "complete"):
        service.start_plan(record.plan_id)
    if advance == "complete":
        service.complete_plan(record.plan_id)

    with pytest.raises(PlanStateError):
        service.revise_plan(record.plan_id, ONE_MODULE_PLAN)
    with pytest.raises(PlanStateError):
        service.improve_plan(record.plan_id, "Focus on testing")

    assert len(service.modules(record.plan_id)) == 4
    assert len(service.generator.prompts) == 1, "no model call for a refused revision"


def test_rejected_plan_can_be_revised(temp_dir, plan_request):
    service = _service(temp_dir, [TWO_MODULE_PLAN])
    record = service.create_plan("learner-1", plan_request)
    service.reject_plan(record.plan_id, "Too broad")

    modules = service.revise_plan(record.plan_id, ONE_MODULE_PLAN)

    assert len(modules) == 1


def test_unknown_plan_raises_key_error(temp_dir):
    service = _service(temp_dir, [])

    with pytest.raises(KeyError):
        service.revise_plan("missing", ONE_MODULE_PLAN)
