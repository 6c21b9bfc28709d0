from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from ai_planner.agents.llm_client import LLMClient, TextGenerator
from ai_planner.config import Settings, load_settings
from ai_planner.learning import PlanProgress, ProgressTracker
from ai_planner.planning.models import ModuleDescriptor, PlanRequest
from ai_planner.services.plan_service import PlanService
from ai_planner.storage import ModuleJsonlStore, PlanRecord, PlanStore
from ai_planner.utils.logging import configure_logging

logger = logging.getLogger(__name__)


class PlannerSystem:
    """
    Facade wiring the plan generator, stores, plan service, and progress tracker.

    The text generator is only built when a call actually needs it, so commands
    that read stored plans or progress work without an API key.

    Attributes
    ----------
    settings : Settings
        Configuration loaded from YAML.
    plan_store : PlanStore
        Plan records, one JSON file per plan.
    module_store : ModuleJsonlStore
        Module sets, one JSONL line per module.
    progress : ProgressTracker
        Learner progress, one JSON file per learner and plan.
    """

    def __init__(
        self,
        settings: Settings,
        generator: Optional[TextGenerator] = None,
        api_key: Optional[str] = None,
    ):
        self.settings = settings
        configure_logging(settings.logging.level, settings.logging.use_json)

        self.plan_store = PlanStore(settings.paths.plans_dir)
        self.module_store = ModuleJsonlStore(settings.paths.modules_index)
        self.progress = ProgressTracker(settings.paths.progress_dir, settings.progress)
        self._generator = generator
        self._api_key = api_key
        self._service: Optional[PlanService] = None

    @classmethod
    def from_config(
        cls,
        config_path: str | Path | None = None,
        generator: Optional[TextGenerator] = None,
        api_key: Optional[str] = None,
    ) -> "PlannerSystem":
        """
        Build a system from a YAML configuration file.

        Parameters
        ----------
        config_path : str | Path | None, default=None
            YAML file to load. When None, `config/default.yaml` is used if present.
        generator : Optional[TextGenerator], default=None
            Plan text generator. When None, an `LLMClient` is created on first use.
        api_key : Optional[str], default=None
            OpenAI API key for the default generator. Falls back to OPENAI_API_KEY.

        Raises
        ------
        FileNotFoundError
            If `config_path` is given but does not exist.
        ValueError
            If the configuration does not validate.
        """
        settings = load_settings(config_path)
        settings.paths.data_dir.mkdir(parents=True, exist_ok=True)
        return cls(settings, generator=generator, api_key=api_key)

    @property
    def generator(self) -> TextGenerator:
        if self._generator is None:
            logger.debug("Creating LLM client for model %s", self.settings.model.name)
            self._generator = LLMClient(self.settings.model, api_key=self._api_key)
        return self._generator

    def generate_text(self, prompt: str) -> str:
        """Forward to the generator, building it on first call."""
        return self.generator.generate_text(prompt)

    @property
    def plan_service(self) -> PlanService:
        if self._service is None:
            # The system stands in as generator so the LLM client is only
            # built by call sites that reach the model.
            self._service = PlanService(
                self,
                self.plan_store,
                self.module_store,
                self.settings.planning,
            )
        return self._service

    def create_plan(self, learner_id: str, request: PlanRequest) -> PlanRecord:
        return self.plan_service.create_plan(learner_id, request)

    def modules(self, plan_id: str) -> List[ModuleDescriptor]:
        return self.module_store.load(plan_id)

    def load_progress(self, learner_id: str, plan_id: str) -> PlanProgress:
        """Load a learner's progress, sized to the plan's current module set."""
        return self.progress.load_progress(learner_id, plan_id, module_count=len(self.modules(plan_id)))
