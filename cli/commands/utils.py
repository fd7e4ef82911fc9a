from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from promptevo.corpus import JsonFileCorpusLoader
from promptevo.history.manager import VersionLedger
from promptevo.llm.factory import get_provider
from promptevo.optimizer.engine import PromptOptimizer
from promptevo.optimizer.judge import QualityJudge
from promptevo.optimizer.models import OptimizerConfig
from promptevo.settings import Settings

console = Console()


def read_prompt(text: Optional[str], from_file: Optional[Path]) -> str:
    """Resolve prompt text from a positional argument or --from-file."""
    if from_file is not None:
        if not from_file.exists():
            console.print(f"[red]Prompt file not found: {from_file}[/red]")
            raise typer.Exit(1)
        return from_file.read_text(encoding="utf-8")
    if text:
        return text
    raise typer.BadParameter("Provide TEXT or --from-file")


def load_settings() -> Settings:
    """Settings.from_env(), turning a malformed variable into a clean exit."""
    try:
        return Settings.from_env()
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)


def build_judge(settings: Settings, provider: Optional[str]) -> QualityJudge:
    """A judge for the requested provider; None or "heuristic" means deterministic only."""
    name = provider if provider is not None else settings.provider
    if not name or name.lower() == "heuristic":
        return QualityJudge()
    try:
        llm = get_provider(name, settings.provider_config)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"[dim]Judge: {name} ({llm.config.model})[/dim]")
    return QualityJudge(provider=llm)


def build_optimizer(
    settings: Settings, provider: Optional[str], corpus: Optional[Path]
) -> PromptOptimizer:
    config = OptimizerConfig(
        max_references=settings.max_references,
        similarity_threshold=settings.similarity_threshold,
    )
    loader = JsonFileCorpusLoader(corpus or settings.corpus_path)
    return PromptOptimizer(config=config, judge=build_judge(settings, provider), loader=loader)


def open_ledger(settings: Settings, ledger_path: Optional[Path]) -> VersionLedger:
    return VersionLedger(ledger_path or settings.ledger_path)
