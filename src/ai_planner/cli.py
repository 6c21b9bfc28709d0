from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ai_planner.learning import ModuleStatus
from ai_planner.planning import PlanParseContext, PlanRequest, parse_plan
from ai_planner.planning.models import ModuleDescriptor
from ai_planner.system import PlannerSystem

app = typer.Typer(help="Learning plan generator and parser CLI.")
console = Console()

_env_path = Path.cwd() / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path, override=False)


def _load_system(config: Optional[Path], api_key: Optional[str] = None) -> PlannerSystem:
    """Instantiate `PlannerSystem` with an optional config file and API key."""
    return PlannerSystem.from_config(config, api_key=api_key)


def _module_table(title: str, modules: List[ModuleDescriptor]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Objectives")
    table.add_column("Hours", justify="right")
    table.add_column("Prerequisites")
    for module in modules:
        name = f"{module.title} [dim](placeholder)[/dim]" if module.is_placeholder else module.title
        table.add_row(
            str(module.order_index),
            name,
            module.objectives,
            f"{module.estimated_time_hours:g}",
            module.prerequisites or "-",
        )
    return table


@app.command()
def parse(
    plan_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    months: float = typer.Option(..., help="Plan duration in months."),
    hours_per_week: float = typer.Option(..., help="Study hours available per week."),
    backfill: bool = typer.Option(False, help="Pad short plans with placeholder modules."),
    as_json: bool = typer.Option(False, "--json", help="Print modules as JSON."),
):
    """
    Parse a plan text file into modules and print them.

    No model call is made; this is the same parse the service runs on generated text.
    """
    context = PlanParseContext.from_duration(months, hours_per_week)
    modules = parse_plan(plan_file.read_text(encoding="utf-8"), context, backfill_missing=backfill)
    if as_json:
        typer.echo(json.dumps([module.model_dump() for module in modules], indent=2))
        return
    if not modules:
        console.print("[yellow]No modules found: the plan text is empty.[/yellow]")
        return
    console.print(_module_table(f"{len(modules)} of {context.expected_module_count} modules", modules))


@app.command()
def generate(
    learner_id: str = typer.Argument(...),
    goals: str = typer.Option(..., help="What the learner wants to achieve."),
    months: float = typer.Option(..., help="Plan duration in months."),
    hours_per_week: float = typer.Option(..., help="Study hours available per week."),
    project_name: Optional[str] = typer.Option(None, help="Project the plan prepares for."),
    role: str = typer.Option("Software Engineer", help="Learner's current role."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
    api_key: Optional[str] = typer.Option(None, help="Model API key."),
):
    """Generate a plan with the configured LLM and store it for review."""
    system = _load_system(config, api_key)
    request = PlanRequest(
        goals=goals,
        months=months,
        hours_per_week=hours_per_week,
        project_name=project_name,
        role=role,
    )
    record = system.create_plan(learner_id, request)
    console.print(f"Created plan [bold]{record.plan_id}[/bold] (status: {record.status.value}).")
    console.print(_module_table("Modules", system.modules(record.plan_id)))


@app.command()
def revise(
    plan_id: str = typer.Argument(...),
    plan_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Replace a plan's text with an edited version and re-derive its modules."""
    system = _load_system(config)
    modules = system.plan_service.revise_plan(plan_id, plan_file.read_text(encoding="utf-8"))
    if not modules:
        console.print("[yellow]Edited text has no modules; the stored module set was kept.[/yellow]")
        return
    console.print(_module_table("Revised modules", modules))


@app.command()
def approve(
    plan_id: str = typer.Argument(...),
    reviewer_id: str = typer.Option(..., help="Admin approving the plan."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Approve a pending plan."""
    record = _load_system(config).plan_service.approve_plan(plan_id, reviewer_id)
    console.print(f"Plan {record.plan_id} approved by {reviewer_id}.")


@app.command()
def progress(
    learner_id: str = typer.Argument(...),
    plan_id: str = typer.Argument(...),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Show module status and which modules are unlocked for a learner."""
    system = _load_system(config)
    modules = system.modules(plan_id)
    if not modules:
        console.print(f"[red]No modules stored for plan {plan_id}.[/red]")
        raise typer.Exit(code=1)

    state = system.load_progress(learner_id, plan_id)
    table = Table(title=f"{learner_id}: {system.progress.progress_percent(state)}% complete")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Best score", justify="right")
    for module in modules:
        entry = state.modules[module.order_index]
        if entry.status == ModuleStatus.COMPLETED:
            status = "[green]completed[/green]"
        elif system.progress.can_access(state, module.order_index):
            status = entry.status.value.replace("_", " ")
        else:
            status = "[dim]locked[/dim]"
        best = entry.best_score
        table.add_row(str(module.order_index), module.title, status, "-" if best is None else f"{best}%")
    console.print(table)


if __name__ == "__main__":
    app()
