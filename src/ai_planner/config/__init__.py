from .loader import load_settings
from .schema import LoggingConfig, ModelConfig, PathsConfig, PlanningConfig, ProgressConfig, Settings

__all__ = [
    "LoggingConfig",
    "ModelConfig",
    "PathsConfig",
    "PlanningConfig",
    "ProgressConfig",
    "Settings",
    "load_settings",
]
