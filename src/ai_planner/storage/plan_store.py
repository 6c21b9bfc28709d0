from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from ai_planner.planning.models import PlanRequest


class PlanStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PlanRecord(BaseModel):
    """A learner's plan request together with its generated and reviewed text."""

    plan_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    learner_id: str
    request: PlanRequest
    generated_plan: str = ""
    adjusted_plan: Optional[str] = None
    status: PlanStatus = PlanStatus.PENDING
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    admin_notes: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def current_text(self) -> str:
        """The text modules are derived from: the reviewed version when there is one."""
        return self.adjusted_plan if self.adjusted_plan else self.generated_plan


class PlanStore:
    """One JSON file per plan under `base_dir`, named `{plan_id}.json`."""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def plan_path(self, plan_id: str) -> Path:
        return self.base_dir / f"{plan_id}.json"

    def exists(self, plan_id: str) -> bool:
        return self.plan_path(plan_id).exists()

    def load(self, plan_id: str) -> PlanRecord:
        """Load a plan record, raising KeyError when the plan is unknown."""
        path = self.plan_path(plan_id)
        if not path.exists():
            raise KeyError(f"Unknown plan: {plan_id}")
        return PlanRecord.model_validate_json(path.read_text(encoding="utf-8"))

    def save(self, record: PlanRecord) -> PlanRecord:
        record.updated_at = datetime.utcnow()
        self.plan_path(record.plan_id).write_text(record.model_dump_json(indent=2), encoding="utf-8")
        return record

    def list_for_learner(self, learner_id: str) -> List[PlanRecord]:
        records = [
            PlanRecord.model_validate_json(path.read_text(encoding="utf-8"))
            for path in sorted(self.base_dir.glob("*.json"))
        ]
        return sorted(
            (record for record in records if record.learner_id == learner_id),
            key=lambda record: record.created_at,
        )
