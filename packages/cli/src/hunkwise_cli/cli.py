"""CLI entry point for hunkwise.

Commands:
  review      run a resumable review on a pull request
  checkpoint  inspect, clear or export the stored review session
"""

from __future__ import annotations

import importlib.metadata

import click
from rich.console import Console

from hunkwise_cli.commands.checkpoint import checkpoint_cmd
from hunkwise_cli.commands.review import review_cmd
from hunkwise_cli.logs import configure_logging

console = Console()


def _build_store(config: dict):
    """Instantiate the configured checkpoint store from .hunkwise.yml settings.

    Store selection:
      checkpoint: file  → JsonFileStore (checkpoint_path, default ai-review-progress.json)
      checkpoint: gist  → GistStore     (requires gist_id and github_token)
      checkpoint: none  → NoOpStore     (no resume)
    """
    from hunkwise_store.noop import NoOpStore

    store_type = config.get("checkpoint", "file")

    if store_type == "gist":
        from hunkwise_store.gist import GistStore

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            console.print("[yellow]GistStore requires gist_id and a GitHub token. Falling back to no checkpoints.[/yellow]")
            return NoOpStore()
        return GistStore(gist_id=gist_id, token=token)

    if store_type == "file":
        from hunkwise_store.file import DEFAULT_CHECKPOINT_PATH, JsonFileStore

        return JsonFileStore(path=config.get("checkpoint_path") or DEFAULT_CHECKPOINT_PATH)

    if store_type not in ("none", "noop", None):
        console.print(f"[yellow]Unknown checkpoint backend {store_type!r}. Checkpoints are disabled.[/yellow]")
    return NoOpStore()


@click.group()
@click.version_option(
    version=importlib.metadata.version("hunkwise"),
    prog_name="hunkwise",
)
@click.option(
    "--config",
    "config_path",
    default=".hunkwise.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="HUNKWISE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Resumable, rate-limited AI review of large GitHub pull requests."""
    from hunkwise_core.config import load_config
    from hunkwise_cli.auth import resolve_github_token

    ctx.ensure_object(dict)
    configure_logging(verbose)

    config = load_config(config_path)

    token = resolve_github_token(config)
    if token:
        config["github_token"] = token

    ctx.obj["config_path"] = config_path
    ctx.obj["config"] = config
    ctx.obj["store"] = store = _build_store(config)
    ctx.call_on_close(store.close)


main.add_command(review_cmd)
main.add_command(checkpoint_cmd)
