"""
Tab Grouper - Command Line Interface

Group a JSON file of tabs from the terminal, or run the HTTP service.

Usage:
    tab-grouper group --file tabs.json
    tab-grouper group --file tabs.json --json
    tab-grouper serve --port 3000
"""

import asyncio
import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from config import get_config, load_env, reload_config
from . import __version__
from .errors import GroupingError
from .llm_client import build_completion_client
from .pipeline import TabGroupingPipeline

console = Console()


def load_tabs_file(file: Path):
    """Read a tabs file: either a bare list of tabs or a {"tabs": [...]} body."""
    data = json.loads(file.read_text(encoding="utf-8"))
    if isinstance(data, list):
        return {"tabs": data}
    return data


@click.group()
@click.version_option(version=__version__)
@click.option("--env-file", default=".env", help="Dotenv file to load before reading settings")
def cli(env_file: str):
    """Tab Grouper - AI tab grouping tool"""
    if load_env(env_file):
        reload_config()


@cli.command()
@click.option(
    "--file", "-f",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to a JSON file of tabs ({id, title, url} objects)"
)
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Print the raw category mapping as JSON"
)
def group(file: Path, as_json: bool):
    """
    Group the tabs in a JSON file by topic.

    Runs the same pipeline as the HTTP service, including retries.
    """
    try:
        body = load_tabs_file(file)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        console.print(f"[red]Error reading tabs file:[/red] {e}")
        sys.exit(1)

    llm_settings = get_config().llm
    pipeline = TabGroupingPipeline.from_settings(build_completion_client(llm_settings), llm_settings)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Grouping tabs with {llm_settings.model_name}...", total=None)
        try:
            groups = asyncio.run(pipeline.run(body))
        except GroupingError as e:
            progress.stop()
            console.print(f"[red]Error:[/red] {e.message}")
            for key, value in e.diagnostics().items():
                console.print(f"  {key}: {value}")
            sys.exit(1)

    if as_json:
        click.echo(json.dumps(groups, indent=2))
        return

    titles = {
        str(tab.get("id")): tab.get("title") or ""
        for tab in body.get("tabs", [])
        if isinstance(tab, dict)
    }

    table = Table(title="Tab Groups")
    table.add_column("Category", style="cyan")
    table.add_column("Tabs", justify="right", style="green")
    table.add_column("Titles")

    for category, tab_ids in groups.items():
        ids = tab_ids if isinstance(tab_ids, list) else [tab_ids]
        table.add_row(
            str(category),
            str(len(ids)),
            "\n".join(titles.get(str(tab_id), f"#{tab_id}") for tab_id in ids),
        )

    console.print(table)


@cli.command()
@click.option("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
@click.option("--port", "-p", default=None, type=int, help="Port (default: PORT or 3000)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool):
    """Run the grouping HTTP service."""
    import uvicorn

    server = get_config().server
    host = host or server.host
    port = port or server.port
    console.print(f"\n[bold blue]Tab Grouper[/bold blue] running at http://{host}:{port}")
    console.print(f"API key: {'Loaded' if get_config().llm.api_key else 'Missing'}\n")
    uvicorn.run("grouping_service.main:app", host=host, port=port, reload=reload)


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == "__main__":
    main()
