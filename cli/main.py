from __future__ import annotations

import logging

import typer

from promptevo import get_version
from .commands.history import history_app
from .commands.judge import compare_command, rules_command, score_command
from .commands.optimize import optimize_command
from .commands.schedule import schedule_app

app = typer.Typer(help="Prompt self-improvement CLI")
app.add_typer(history_app, name="history")
app.add_typer(schedule_app, name="schedule")

app.command("score")(score_command)
app.command("compare")(compare_command)
app.command("rules")(rules_command)
app.command("optimize")(optimize_command)


@app.callback(invoke_without_command=True)
def root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Log debug output"),
):
    """Top-level CLI. Shows help when no subcommand is given."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command()
def version():
    """Print the installed version."""
    typer.echo(get_version())


# Entry point
if __name__ == "__main__":  # pragma: no cover
    app()
