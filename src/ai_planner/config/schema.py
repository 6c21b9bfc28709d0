from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, validator


class ModelConfig(BaseModel):
    """Model-level settings for the chat LLM that drafts learning plans."""

    name: str = Field("gpt-4o-mini", description="LLM identifier.")
    base_url: Optional[str] = Field(None, description="Override for OpenAI-compatible endpoints.")
    temperature: float = Field(0.7, ge=0, le=2)
    max_output_tokens: int = Field(2000, ge=64)
    system_prompt: str = Field(
        "You are an expert learning and development consultant. Generate structured, "
        "actionable learning plans in a clear, organized format."
    )


class PlanningConfig(BaseModel):
    """Controls for how generated plan text is turned into modules."""

    max_plan_chars: int = Field(20000, ge=1000, description="Plan text is cut to this length before parsing.")
    backfill_on_create: bool = Field(
        True, description="Pad freshly generated plans with placeholders up to the expected count."
    )
    backfill_on_revision: bool = Field(
        False, description="Pad admin-revised plans with placeholders up to the expected count."
    )


class ProgressConfig(BaseModel):
    """Pass marks (in percent) for module assessments and the final quiz."""

    module_pass_score: int = Field(30, ge=0, le=100)
    final_quiz_pass_score: int = Field(10, ge=0, le=100)


class PathsConfig(BaseModel):
    """Filesystem layout for plan records, module sets, and learner progress."""

    data_dir: Path = Field(Path("data"))
    plans_dir: Path = Field(Path("data/plans"))
    modules_index: Path = Field(Path("data/modules.jsonl"))
    progress_dir: Path = Field(Path("data/progress"))


class LoggingConfig(BaseModel):
    """Controls for planner logging output and format."""

    level: str = Field("INFO")
    use_json: bool = False

    @validator("level")
    def normalize_level(cls, value: str) -> str:
        return value.upper()


class Settings(BaseModel):
    """Top-level project configuration aggregating all sub-settings."""

    project_name: str = Field("AI Learning Planner")
    model: ModelConfig = Field(default_factory=ModelConfig)
    planning: PlanningConfig = Field(default_factory=PlanningConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
