from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from .utils import console, load_settings, open_ledger

history_app = typer.Typer(help="Browse and manage prompt version histories")

LedgerOption = typer.Option(None, "--ledger", help="Version store JSON file")


@history_app.command("list")
def history_list(ledger_path: Optional[Path] = LedgerOption):
    """List tracked prompts."""
    ledger = open_ledger(load_settings(), ledger_path)
    ids = ledger.list_prompt_ids()

    if not ids:
        console.print("[yellow]No history found.[/yellow]")
        return

    table = Table(title="Tracked Prompts")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Versions", justify="right")
    table.add_column("Recommended", justify="right")
    table.add_column("Best Score", justify="right")

    for prompt_id in ids:
        recommended = ledger.get_recommended_version(prompt_id)
        score = recommended.judge_score if recommended else None
        table.add_row(
            prompt_id,
            str(ledger.get_version_count(prompt_id)),
            f"v{recommended.version}" if recommended else "-",
            f"{score:.1f}" if score is not None else "-",
        )

    console.print(table)


@history_app.command("show")
def history_show(
    prompt_id: str,
    version: Optional[int] = typer.Option(None, "--version", "-v", help="Print one version's content"),
    ledger_path: Optional[Path] = LedgerOption,
):
    """Show the versions of a tracked prompt."""
    ledger = open_ledger(load_settings(), ledger_path)
    history = ledger.get_history(prompt_id)
    if not history:
        console.print(f"[red]Prompt not found: {prompt_id}[/red]")
        raise typer.Exit(1)

    if version is not None:
        ver = history.find(version)
        if not ver:
            console.print(f"[red]Version not found: {prompt_id} v{version}[/red]")
            raise typer.Exit(1)
        console.print(ver.content)
        return

    table = Table(title=f"History: {prompt_id}")
    table.add_column("Ver", justify="right")
    table.add_column("Source", style="magenta")
    table.add_column("Score", justify="right")
    table.add_column("Created", style="green")
    table.add_column("Note")
    for ver in history.versions:
        marker = " *" if ver.version == history.recommended_version else ""
        table.add_row(
            f"{ver.version}{marker}",
            ver.source,
            f"{ver.judge_score:.1f}" if ver.is_scored else "-",
            ver.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            (ver.change_note or "").splitlines()[0] if ver.change_note else "",
        )
    console.print(table)
    console.print("[dim]* recommended version[/dim]")


@history_app.command("delete")
def history_delete(
    prompt_id: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    ledger_path: Optional[Path] = LedgerOption,
):
    """Delete a prompt's whole history (irreversible)."""
    ledger = open_ledger(load_settings(), ledger_path)
    if not yes:
        typer.confirm(f"Delete all versions of '{prompt_id}'?", abort=True)
    if not ledger.delete_history(prompt_id):
        console.print(f"[red]Prompt not found: {prompt_id}[/red]")
        raise typer.Exit(1)
    console.print(f"Deleted history for {prompt_id}")


@history_app.command("export")
def history_export(
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write JSON to file"),
    ledger_path: Optional[Path] = LedgerOption,
):
    """Export every history as JSON."""
    data = open_ledger(load_settings(), ledger_path).export_all()
    if out:
        out.write_text(data, encoding="utf-8")
        console.print(f"Exported to {out}")
    else:
        typer.echo(data)
