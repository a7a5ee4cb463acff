"""checkpoint command group: inspect, clear or export the stored session."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

console = Console()


def _stored_session(ctx):
    return ctx.obj["store"].read()


@click.group("checkpoint")
def checkpoint_cmd():
    """Manage the stored review checkpoint."""


@checkpoint_cmd.command("show")
@click.pass_context
def show_cmd(ctx):
    """Show progress of the stored review session."""
    session = _stored_session(ctx)
    if session is None:
        console.print("[yellow]No checkpoint found.[/yellow]")
        return

    table = Table(title="Current Progress", show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("PR", str(session.key))
    table.add_row("Files", f"{len(session.processed_files)}/{session.total_files}")
    table.add_row("Batches", str(session.current_batch))
    table.add_row("Comments", str(len(session.all_comments)))
    table.add_row("Last update", session.timestamp[:19].replace("T", " "))
    table.add_row("Completed", "[green]yes[/green]" if session.completed else "[yellow]no[/yellow]")
    console.print(table)

    if session.processed_files:
        console.print("[bold]Processed files:[/bold] " + ", ".join(session.processed_files))


@checkpoint_cmd.command("clear")
@click.pass_context
def clear_cmd(ctx):
    """Delete the stored checkpoint so the next review starts fresh."""
    if ctx.obj["store"].clear():
        console.print("[green]Checkpoint cleared.[/green]")
    else:
        console.print("[yellow]No checkpoint to clear.[/yellow]")


@checkpoint_cmd.command("export")
@click.option(
    "--output",
    "output_path",
    default=None,
    help="Destination JSON file. Defaults to export_path from the config (exported-comments.json).",
)
@click.pass_context
def export_cmd(ctx, output_path: str | None):
    """Write every comment recorded in the checkpoint to a JSON file."""
    session = _stored_session(ctx)
    if session is None or not session.all_comments:
        console.print("[yellow]No comments to export.[/yellow]")
        return

    output_path = output_path or ctx.obj["config"].get("export_path") or "exported-comments.json"
    comments = session.to_dict()["all_comments"]
    with open(output_path, "w") as f:
        json.dump(comments, f, indent=2)
    console.print(f"Exported {len(comments)} comment(s) to {output_path}")
