from .models import AssessmentResult, ModuleProgress, ModuleStatus, PlanProgress
from .progress import ModuleLockedError, ProgressTracker

__all__ = [
    "AssessmentResult",
    "ModuleLockedError",
    "ModuleProgress",
    "ModuleStatus",
    "PlanProgress",
    "ProgressTracker",
]
