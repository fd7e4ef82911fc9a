import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel

from promptevo.optimizer.models import OptimizationResult
from .utils import build_optimizer, console, load_settings, open_ledger, read_prompt


def optimize_command(
    text: Optional[str] = typer.Argument(None, help="Prompt text"),
    from_file: Optional[Path] = typer.Option(None, "--from-file", "-f", help="Read prompt from file"),
    prompt_id: Optional[str] = typer.Option(
        None, "--id", help="Track the prompt under this ID and version the result"
    ),
    corpus: Optional[Path] = typer.Option(
        None, "--corpus", "-c", help="Reference corpus JSON (defaults to $PROMPTEVO_HOME/corpus.json)"
    ),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="Judge backend: ollama, openai, vllm, mock or heuristic"
    ),
    ledger_path: Optional[Path] = typer.Option(None, "--ledger", help="Version store JSON file"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Save the optimized prompt to file"),
):
    """
    Optimize a prompt with the rule catalogue and let the judge decide.
    """
    content = read_prompt(text, from_file)
    settings = load_settings()
    optimizer = build_optimizer(settings, provider, corpus)

    async def _run() -> OptimizationResult:
        await optimizer.load_references()
        if prompt_id:
            ledger = open_ledger(settings, ledger_path)
            ledger.init_history(prompt_id, content)
            return await optimizer.optimize_and_version(prompt_id, content, ledger)
        return await optimizer.optimize(content)

    result = asyncio.run(_run())

    console.print("\n[bold cyan]Optimization Complete![/bold cyan]")
    console.print(f"Original Score: {result.original_score}/5")
    console.print(f"Optimized Score: [green]{result.optimized_score}[/green]/5")
    verdict = "[green]improved[/green]" if result.improved else "[yellow]kept original[/yellow]"
    console.print(f"Verdict: {verdict} ({result.method})")
    if result.applied_rules:
        console.print(f"Rules: {', '.join(result.applied_rules)}")
    if result.inspiration_sources:
        console.print(f"Inspired by: {', '.join(result.inspiration_sources)}")

    if out:
        out.write_text(result.optimized_content, encoding="utf-8")
        console.print(f"Saved optimized prompt to: {out}")
    else:
        console.print(
            Panel(result.optimized_content, title="[bold]Optimized Prompt[/bold]", border_style="cyan")
        )
