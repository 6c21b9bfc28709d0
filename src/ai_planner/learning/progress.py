from __future__ import annotations

import json
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from ai_planner.config.schema import ProgressConfig
from ai_planner.learning.models import AssessmentResult, ModuleProgress, ModuleStatus, PlanProgress


class ModuleLockedError(RuntimeError):
    """Raised when a learner touches a module whose predecessor is not completed."""


def _score(correct: int, total: int) -> int:
    if total <= 0:
        raise ValueError("An assessment needs at least one question.")
    if correct < 0 or correct > total:
        raise ValueError(f"Correct answers must be between 0 and {total}, got {correct}.")
    return math.floor(correct / total * 100 + 0.5)


def _dump_result(result: Optional[AssessmentResult]) -> Optional[Dict[str, Any]]:
    if result is None:
        return None
    return {
        "correct": result.correct,
        "total": result.total,
        "score": result.score,
        "passed": result.passed,
        "timestamp": result.timestamp.isoformat(),
    }


def _load_result(data: Optional[Dict[str, Any]]) -> Optional[AssessmentResult]:
    if data is None:
        return None
    return AssessmentResult(
        correct=data["correct"],
        total=data["total"],
        score=data["score"],
        passed=data["passed"],
        timestamp=datetime.fromisoformat(data["timestamp"]),
    )


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class ProgressTracker:
    """
    Persist and update a learner's progress through the modules of a plan.

    Modules unlock strictly in `order_index` order: module 1 is always open and
    every later module opens once the one before it is completed. A module is
    completed by passing its assessment; the final quiz is only available after
    every module is completed.

    Progress Storage Format
    -----------------------
    One JSON file per learner and plan: `{learner_id}__{plan_id}.json`

    ```json
    {
      "learner_id": "learner-1",
      "plan_id": "4f1c...",
      "modules": {
        "1": {"status": "completed", "started_at": "...", "completed_at": "...", "attempts": [...]},
        "2": {"status": "in_progress", "started_at": "...", "completed_at": null, "attempts": []}
      },
      "final_quiz": null
    }
    ```

    Attributes
    ----------
    base_dir : Path
        Directory holding the progress files. Created if missing.
    config : ProgressConfig
        Pass marks for module assessments and the final quiz.

    Examples
    --------
    >>> tracker = ProgressTracker(Path("data/progress"))
    >>> progress = tracker.load_progress("learner-1", "plan-1", module_count=3)
    >>> tracker.can_access(progress, 2)
    False
    >>> _ = tracker.start_module(progress, 1)
    >>> tracker.record_assessment(progress, 1, correct=4, total=10).passed
    True
    >>> tracker.can_access(progress, 2)
    True
    """

    def __init__(self, base_dir: Path, config: Optional[ProgressConfig] = None):
        self.base_dir = base_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.config = config or ProgressConfig()

    def progress_path(self, learner_id: str, plan_id: str) -> Path:
        """Return the JSON file path for a learner's progress on one plan."""
        return self.base_dir / f"{learner_id}__{plan_id}.json"

    def load_progress(self, learner_id: str, plan_id: str, module_count: int = 0) -> PlanProgress:
        """
        Load progress from disk, or start fresh when none is stored.

        Parameters
        ----------
        learner_id : str
            Learner the progress belongs to.
        plan_id : str
            Plan whose modules are being tracked.
        module_count : int, default=0
            Number of modules in the plan. Any order index from 1 to `module_count`
            without a stored entry is added as not started, so a plan whose module
            set grew after a revision is tracked completely.

        Returns
        -------
        PlanProgress
            Progress with an entry for every known module.
        """
        path = self.progress_path(learner_id, plan_id)
        progress = PlanProgress(learner_id=learner_id, plan_id=plan_id)

        if path.exists():
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
            for key, entry in data.get("modules", {}).items():
                order_index = int(key)
                progress.modules[order_index] = ModuleProgress(
                    order_index=order_index,
                    status=ModuleStatus(entry.get("status", ModuleStatus.NOT_STARTED.value)),
                    started_at=_parse_time(entry.get("started_at")),
                    completed_at=_parse_time(entry.get("completed_at")),
                    attempts=[_load_result(attempt) for attempt in entry.get("attempts", [])],
                )
            progress.final_quiz = _load_result(data.get("final_quiz"))

        for order_index in range(1, module_count + 1):
            progress.modules.setdefault(order_index, ModuleProgress(order_index=order_index))
        return progress

    def save_progress(self, progress: PlanProgress) -> None:
        """Serialize progress back to disk."""
        serialized = {
            "learner_id": progress.learner_id,
            "plan_id": progress.plan_id,
            "modules": {
                str(order_index): {
                    "status": module.status.value,
                    "started_at": module.started_at.isoformat() if module.started_at else None,
                    "completed_at": module.completed_at.isoformat() if module.completed_at else None,
                    "attempts": [_dump_result(attempt) for attempt in module.attempts],
                }
                for order_index, module in sorted(progress.modules.items())
            },
            "final_quiz": _dump_result(progress.final_quiz),
        }
        with self.progress_path(progress.learner_id, progress.plan_id).open("w", encoding="utf-8") as handle:
            json.dump(serialized, handle, indent=2)

    def _module(self, progress: PlanProgress, order_index: int) -> ModuleProgress:
        try:
            return progress.modules[order_index]
        except KeyError:
            raise KeyError(f"Plan {progress.plan_id} has no module {order_index}") from None

    def can_access(self, progress: PlanProgress, order_index: int) -> bool:
        """Module 1 is always open; later modules need their predecessor completed."""
        if order_index == 1:
            return True
        previous = progress.modules.get(order_index - 1)
        return previous is not None and previous.status == ModuleStatus.COMPLETED

    def start_module(self, progress: PlanProgress, order_index: int) -> ModuleProgress:
        module = self._module(progress, order_index)
        if not self.can_access(progress, order_index):
            raise ModuleLockedError(f"Complete module {order_index - 1} before starting module {order_index}.")
        if module.status == ModuleStatus.NOT_STARTED:
            module.status = ModuleStatus.IN_PROGRESS
            module.started_at = datetime.utcnow()
        return module

    def record_assessment(self, progress: PlanProgress, order_index: int, correct: int, total: int) -> AssessmentResult:
        """
        Grade a module assessment and complete the module when it passes.

        Parameters
        ----------
        progress : PlanProgress
            Progress to update (modified in place).
        order_index : int
            Module the assessment belongs to.
        correct, total : int
            Number of correct answers and number of questions.

        Returns
        -------
        AssessmentResult
            The graded attempt. Passing requires `config.module_pass_score` percent.

        Raises
        ------
        ModuleLockedError
            If the module is not yet accessible.
        ValueError
            If `total` is not positive or `correct` is out of range.
        """
        module = self.start_module(progress, order_index)
        score = _score(correct, total)
        result = AssessmentResult(
            correct=correct,
            total=total,
            score=score,
            passed=score >= self.config.module_pass_score,
        )
        module.attempts.append(result)
        if result.passed and module.status != ModuleStatus.COMPLETED:
            module.status = ModuleStatus.COMPLETED
            module.completed_at = result.timestamp
        return result

    def record_final_quiz(self, progress: PlanProgress, correct: int, total: int) -> AssessmentResult:
        if not self.all_completed(progress):
            raise ModuleLockedError("Every module must be completed before the final quiz.")
        score = _score(correct, total)
        result = AssessmentResult(
            correct=correct,
            total=total,
            score=score,
            passed=score >= self.config.final_quiz_pass_score,
        )
        progress.final_quiz = result
        return result

    def all_completed(self, progress: PlanProgress) -> bool:
        return bool(progress.modules) and all(
            module.status == ModuleStatus.COMPLETED for module in progress.modules.values()
        )

    def progress_percent(self, progress: PlanProgress) -> int:
        """Share of completed modules, as a whole percentage."""
        if not progress.modules:
            return 0
        completed = sum(1 for module in progress.modules.values() if module.status == ModuleStatus.COMPLETED)
        return math.floor(completed / len(progress.modules) * 100 + 0.5)
