"""Service layer for the plan lifecycle: generate, revise, review, and start.

Each public method is one call site of the parser. The call site decides
whether a short plan is padded with placeholder modules; the defaults come
from `PlanningConfig`.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from ai_planner.agents.llm_client import TextGenerator
from ai_planner.config.schema import PlanningConfig
from ai_planner.planning.models import ModuleDescriptor, PlanRequest
from ai_planner.planning.parser import parse_plan
from ai_planner.planning.prompts import build_learning_plan_prompt, build_revision_prompt
from ai_planner.storage.module_store import ModuleJsonlStore
from ai_planner.storage.plan_store import PlanRecord, PlanStatus, PlanStore
from ai_planner.utils.logging import get_logger

logger = get_logger(__name__)


class PlanGenerationError(RuntimeError):
    """Raised when the text generator returns nothing usable."""


class PlanStateError(RuntimeError):
    """Raised when a plan is asked to move to a status it cannot reach."""


class PlanService:
    """Coordinates the generator, the plan records, and the stored module sets."""

    def __init__(
        self,
        generator: TextGenerator,
        plan_store: PlanStore,
        module_store: ModuleJsonlStore,
        planning_config: Optional[PlanningConfig] = None,
    ):
        self.generator = generator
        self.plan_store = plan_store
        self.module_store = module_store
        self.config = planning_config or PlanningConfig()

    def _truncate(self, text: str) -> str:
        if len(text) > self.config.max_plan_chars:
            logger.warning("plan_text_truncated", length=len(text), limit=self.config.max_plan_chars)
            return text[: self.config.max_plan_chars]
        return text

    def _generate(self, prompt: str) -> str:
        text = self.generator.generate_text(prompt)
        if not text or not text.strip():
            raise PlanGenerationError("The text generator returned an empty plan.")
        return text

    def _parse(self, record: PlanRecord, text: str, backfill_missing: bool) -> List[ModuleDescriptor]:
        return parse_plan(
            self._truncate(text),
            record.request.parse_context(),
            backfill_missing=backfill_missing,
        )

    def _load_revisable(self, plan_id: str) -> PlanRecord:
        # Progress is keyed by order_index, so started plans keep their modules.
        record = self.plan_store.load(plan_id)
        if record.status not in (PlanStatus.PENDING, PlanStatus.REJECTED):
            raise PlanStateError(f"Plan {plan_id} is {record.status.value} and cannot be revised.")
        return record

    def create_plan(self, learner_id: str, request: PlanRequest) -> PlanRecord:
        """Generate a plan for a learner, store it as pending, and save its modules."""
        log = logger.bind(learner_id=learner_id)
        plan_text = self._generate(build_learning_plan_prompt(request))
        record = self.plan_store.save(
            PlanRecord(learner_id=learner_id, request=request, generated_plan=plan_text)
        )
        modules = self._parse(record, plan_text, self.config.backfill_on_create)
        self.module_store.replace(record.plan_id, modules)
        log.info(
            "plan_created",
            plan_id=record.plan_id,
            modules=len(modules),
            placeholders=sum(1 for module in modules if module.is_placeholder),
        )
        return record

    def revise_plan(self, plan_id: str, plan_text: str) -> List[ModuleDescriptor]:
        """Store an edited plan text and replace the module set when it parses."""
        record = self._load_revisable(plan_id)
        record.adjusted_plan = plan_text
        self.plan_store.save(record)

        modules = self._parse(record, plan_text, self.config.backfill_on_revision)
        if modules:
            self.module_store.replace(plan_id, modules)
        else:
            logger.warning("plan_revision_empty", plan_id=plan_id)
        logger.info("plan_revised", plan_id=plan_id, modules=len(modules))
        return modules

    def improve_plan(self, plan_id: str, request_text: str) -> List[ModuleDescriptor]:
        """Ask the generator to rework the current plan text, then store the result."""
        record = self._load_revisable(plan_id)
        revised = self._generate(build_revision_prompt(record.current_text, request_text))
        return self.revise_plan(plan_id, revised)

    def approve_plan(self, plan_id: str, reviewer_id: str, adjusted_text: Optional[str] = None) -> PlanRecord:
        record = self.plan_store.load(plan_id)
        if record.status not in (PlanStatus.PENDING, PlanStatus.REJECTED):
            raise PlanStateError(f"Plan {plan_id} is {record.status.value} and cannot be approved.")

        if adjusted_text is not None and adjusted_text != record.current_text:
            modules = self._parse(record, adjusted_text, self.config.backfill_on_revision)
            record.adjusted_plan = adjusted_text
            if modules:
                self.module_store.replace(plan_id, modules)

        record.status = PlanStatus.APPROVED
        record.approved_by = reviewer_id
        record.approved_at = datetime.utcnow()
        self.plan_store.save(record)
        logger.info("plan_approved", plan_id=plan_id, reviewer_id=reviewer_id)
        return record

    def reject_plan(self, plan_id: str, notes: str) -> PlanRecord:
        record = self.plan_store.load(plan_id)
        if record.status != PlanStatus.PENDING:
            raise PlanStateError(f"Plan {plan_id} is {record.status.value} and cannot be rejected.")
        record.status = PlanStatus.REJECTED
        record.admin_notes = notes
        self.plan_store.save(record)
        logger.info("plan_rejected", plan_id=plan_id)
        return record

    def start_plan(self, plan_id: str) -> PlanRecord:
        record = self.plan_store.load(plan_id)
        if record.status != PlanStatus.APPROVED:
            raise PlanStateError(f"Plan {plan_id} must be approved before it starts (is {record.status.value}).")
        record.status = PlanStatus.IN_PROGRESS
        self.plan_store.save(record)
        logger.info("plan_started", plan_id=plan_id)
        return record

    def complete_plan(self, plan_id: str) -> PlanRecord:
        record = self.plan_store.load(plan_id)
        if record.status != PlanStatus.IN_PROGRESS:
            raise PlanStateError(f"Plan {plan_id} is {record.status.value} and cannot be completed.")
        record.status = PlanStatus.COMPLETED
        self.plan_store.save(record)
        logger.info("plan_completed", plan_id=plan_id)
        return record

    def modules(self, plan_id: str) -> List[ModuleDescriptor]:
        return self.module_store.load(plan_id)
