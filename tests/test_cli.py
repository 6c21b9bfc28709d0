"""Tests for the ai-planner command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from ai_planner import cli
from ai_planner.config.loader import OVERRIDES_ENV_VAR
from ai_planner.planning import ModuleDescriptor, PlanRequest
from ai_planner.storage import PlanRecord, PlanStatus
from ai_planner.system import PlannerSystem

PLAN_TEXT = """**Module 1: Shell Scripting**
Objectives: Automate routine tasks
Estimated Time: 3 hours
Prerequisites: None

**Module 2: Containers**
Objectives: Package a service with Docker
Estimated Time: 4 hours
Prerequisites: Module 1
"""

runner = CliRunner()


class StaticGenerator:
    def generate_text(self, prompt: str) -> str:
        return PLAN_TEXT


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Config pointing every data path into the temporary directory."""
    monkeypatch.delenv(OVERRIDES_ENV_VAR, raising=False)
    data = tmp_path / "data"
    path = tmp_path / "planner.yaml"
    path.write_text(
        "paths:\n"
        f"  data_dir: {data}\n"
        f"  plans_dir: {data / 'plans'}\n"
        f"  modules_index: {data / 'modules.jsonl'}\n"
        f"  progress_dir: {data / 'progress'}\n"
        "logging:\n  level: WARNING\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def plan_file(tmp_path):
    path = tmp_path / "plan.txt"
    path.write_text(PLAN_TEXT, encoding="utf-8")
    return path


def test_parse_json_output(plan_file):
    result = runner.invoke(
        cli.app,
        ["parse", str(plan_file), "--months", "1", "--hours-per-week", "5", "--json"],
    )

    assert result.exit_code == 0, result.output
    modules = json.loads(result.output)
    assert [module["title"] for module in modules] == ["Module 1: Shell Scripting", "Module 2: Containers"]
    assert modules[1]["prerequisites"] == "Module 1"


def test_parse_backfill_flag(plan_file):
    result = runner.invoke(
        cli.app,
        ["parse", str(plan_file), "--months", "1", "--hours-per-week", "5", "--backfill", "--json"],
    )

    assert result.exit_code == 0, result.output
    assert len(json.loads(result.output)) == 4


def test_parse_table_output(plan_file):
    result = runner.invoke(cli.app, ["parse", str(plan_file), "--months", "1", "--hours-per-week", "5"])

    assert result.exit_code == 0, result.output
    assert "2 of 4 modules" in result.output


def test_generate_uses_system(config_file, monkeypatch):
    """The generate command stores a pending plan from the generator output."""
    system = PlannerSystem.from_config(config_file, generator=StaticGenerator())
    monkeypatch.setattr(cli, "_load_system", lambda config, api_key=None: system)

    result = runner.invoke(
        cli.app,
        ["generate", "learner-1", "--goals", "Learn DevOps", "--months", "1", "--hours-per-week", "5"],
    )

    assert result.exit_code == 0, result.output
    assert "status: pending" in result.output
    records = system.plan_store.list_for_learner("learner-1")
    assert len(records) == 1
    assert len(system.modules(records[0].plan_id)) == 4


def test_progress_shows_locked_modules(config_file):
    system = PlannerSystem.from_config(config_file)
    system.module_store.replace(
        "plan-1",
        [
            ModuleDescriptor(
                module_number=number,
                title=f"Module {number}: Topic {number}",
                objectives="Learn",
                estimated_time_hours=2,
                order_index=number,
            )
            for number in (1, 2)
        ],
    )

    result = runner.invoke(cli.app, ["progress", "learner-1", "plan-1", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "0% complete" in result.output
    assert "not started" in result.output
    assert "locked" in result.output


@pytest.fixture
def stored_plan(config_file, monkeypatch):
    """A pending plan on disk, with no API key available."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    system = PlannerSystem.from_config(config_file)
    record = system.plan_store.save(
        PlanRecord(
            learner_id="learner-1",
            request=PlanRequest(goals="Learn DevOps", months=1, hours_per_week=5),
            generated_plan=PLAN_TEXT,
        )
    )
    return system, record.plan_id


def test_revise_runs_without_api_key(stored_plan, config_file, tmp_path):
    """Revising stored text never builds the LLM client."""
    system, plan_id = stored_plan
    edited = tmp_path / "edited.txt"
    edited.write_text("**Module 1: Terraform Basics**\nObjectives: Provision a VM\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["revise", plan_id, str(edited), "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert [module.title for module in system.modules(plan_id)] == ["Module 1: Terraform Basics"]


def test_approve_runs_without_api_key(stored_plan, config_file):
    system, plan_id = stored_plan

    result = runner.invoke(
        cli.app,
        ["approve", plan_id, "--reviewer-id", "admin-1", "--config", str(config_file)],
    )

    assert result.exit_code == 0, result.output
    assert "approved by admin-1" in result.output
    assert system.plan_store.load(plan_id).status is PlanStatus.APPROVED


def test_progress_unknown_plan(config_file):
    result = runner.invoke(cli.app, ["progress", "learner-1", "missing", "--config", str(config_file)])

    assert result.exit_code == 1
    assert "No modules stored" in result.output
