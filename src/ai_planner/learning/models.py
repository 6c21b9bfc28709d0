from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class ModuleStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class AssessmentResult:
    """One graded attempt at a module assessment or the final quiz."""

    correct: int
    total: int
    score: int  # 0-100
    passed: bool
    timestamp: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ModuleProgress:
    """Learner state for a single module, keyed by its order index."""

    order_index: int
    status: ModuleStatus = ModuleStatus.NOT_STARTED
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    attempts: List[AssessmentResult] = field(default_factory=list)

    @property
    def best_score(self) -> Optional[int]:
        return max((attempt.score for attempt in self.attempts), default=None)


@dataclass
class PlanProgress:
    """A learner's progress through every module of one approved plan."""

    learner_id: str
    plan_id: str
    modules: Dict[int, ModuleProgress] = field(default_factory=dict)
    final_quiz: Optional[AssessmentResult] = None
