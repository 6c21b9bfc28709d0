from .module_store import ModuleJsonlStore
from .plan_store import PlanRecord, PlanStatus, PlanStore

__all__ = ["ModuleJsonlStore", "PlanRecord", "PlanStatus", "PlanStore"]
