import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from promptevo.scheduler import PromptCandidate, SchedulerConfig, SchedulerEvent, UpdateController
from .utils import build_optimizer, console, load_settings, open_ledger

schedule_app = typer.Typer(help="Periodic crawl / auto-optimize cycles")


def _load_candidates(path: Path) -> List[PromptCandidate]:
    data = json.loads(path.read_text(encoding="utf-8"))
    return [PromptCandidate.model_validate(item) for item in data]


def _print_event(event: SchedulerEvent) -> None:
    stamp = datetime.fromtimestamp(event.timestamp).strftime("%H:%M:%S")
    style = "red" if event.type == "error" else "cyan"
    detail = f" {event.detail}" if event.detail else ""
    console.print(f"[dim]{stamp}[/dim] [{style}]{event.type}[/{style}]{detail}")


@schedule_app.command("run")
def schedule_run(
    prompts: Path = typer.Argument(..., help="JSON list of {id, content, usage_weight}"),
    corpus: Optional[Path] = typer.Option(None, "--corpus", "-c", help="Reference corpus JSON"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Judge backend"),
    ledger_path: Optional[Path] = typer.Option(None, "--ledger", help="Version store JSON file"),
    max_per_cycle: int = typer.Option(10, "--max", help="Max prompts per optimize cycle"),
    min_usage: int = typer.Option(2, "--min-usage", help="Minimum usage to be eligible"),
    forever: bool = typer.Option(False, "--forever", help="Keep running on the timers"),
):
    """
    Run one crawl + optimize cycle (or keep the timers running with --forever).
    """
    if not prompts.exists():
        console.print(f"[red]Prompt list not found: {prompts}[/red]")
        raise typer.Exit(1)

    settings = load_settings()
    optimizer = build_optimizer(settings, provider, corpus)
    ledger = open_ledger(settings, ledger_path)

    candidates = _load_candidates(prompts)
    for c in candidates:
        ledger.init_history(c.id, c.content)

    config = SchedulerConfig(
        crawl_interval_seconds=settings.crawl_interval_seconds,
        optimize_interval_seconds=settings.optimize_interval_seconds,
        max_optimize_per_cycle=max_per_cycle,
        min_usage_for_optimize=min_usage,
    )
    controller = UpdateController(
        optimizer, config=config, ledger=ledger, prompt_provider=lambda: candidates
    )
    controller.on_event(_print_event)

    async def _run():
        await controller.run_crawl_cycle()
        results = await controller.run_optimize_cycle()
        if not forever:
            return results
        controller.start()
        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            controller.dispose()

    try:
        results = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
        return

    improved = sum(1 for r in results if r.improved)
    console.print(f"\n[bold]{len(results)}[/bold] optimized, [green]{improved}[/green] improved")
