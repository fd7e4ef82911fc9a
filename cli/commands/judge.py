import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from promptevo.optimizer.rules import OPTIMIZATION_RULES
from .utils import build_judge, console, load_settings, read_prompt


def score_command(
    text: Optional[str] = typer.Argument(None, help="Prompt text"),
    from_file: Optional[Path] = typer.Option(None, "--from-file", "-f", help="Read prompt from file"),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="Judge backend: ollama, openai, vllm, mock or heuristic"
    ),
):
    """
    Score a prompt on the 1-5 quality scale.
    """
    content = read_prompt(text, from_file)
    judge = build_judge(load_settings(), provider)
    result = asyncio.run(judge.score(content))

    console.print(f"Score: [green]{result.score}[/green]/5 ({result.method})")
    console.print(Panel(result.feedback or "(no feedback)", title="Feedback", border_style="cyan"))


def compare_command(
    file_a: Path = typer.Argument(..., help="Version A"),
    file_b: Path = typer.Argument(..., help="Version B"),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="Judge backend: ollama, openai, vllm, mock or heuristic"
    ),
):
    """
    A/B compare two prompt files.
    """
    content_a = read_prompt(None, file_a)
    content_b = read_prompt(None, file_b)
    judge = build_judge(load_settings(), provider)
    result = asyncio.run(judge.compare(content_a, content_b))

    console.print(f"Winner: [bold green]{result.winner}[/bold green] ({result.method})")
    if result.feedback:
        console.print(result.feedback)


def rules_command():
    """List the rewrite rules in the order they are applied."""
    table = Table(title="Optimization Rules")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for idx, rule in enumerate(OPTIMIZATION_RULES, start=1):
        table.add_row(str(idx), rule.name, rule.description)
    console.print(table)
