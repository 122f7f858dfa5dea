"""CLI interface for socialpilot."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from socialpilot.config import SocialPilotConfig, load_config, merge_cli_overrides
from socialpilot.errors import SocialPilotError
from socialpilot.store.models import Platform

app = typer.Typer(
    name="socialpilot",
    help="Turn fetched articles, videos and threads into scheduled social posts.",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from socialpilot import __version__

        console.print(f"socialpilot {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _load(config_path: Optional[Path], **overrides: object) -> SocialPilotConfig:
    config = load_config(config_path)
    return merge_cli_overrides(config, **overrides)


def _orchestrator(config: SocialPilotConfig):
    from socialpilot.orchestrator import Orchestrator

    return Orchestrator.from_config(config)


ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to a .socialpilot.toml file."),
]


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """SocialPilot - fetch, generate and publish social posts."""
    _setup_logging(verbose)


@app.command()
def serve(
    config_path: ConfigOption = None,
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 3001,
) -> None:
    """Run the HTTP API for the review UI."""
    import uvicorn

    from socialpilot.web import create_app

    config = _load(config_path)
    web_app = create_app(_orchestrator(config))
    console.print(f"[green]Serving on http://{host}:{port}[/green]")
    uvicorn.run(web_app, host=host, port=port, log_config=None)


@app.command()
def scheduler(config_path: ConfigOption = None) -> None:
    """Run the periodic fetch, publish, quota and growth tasks."""
    config = _load(config_path)
    orchestrator = _orchestrator(config)
    try:
        asyncio.run(orchestrator.run())
    except KeyboardInterrupt:
        console.print("[yellow]Scheduler stopped.[/yellow]")


@app.command()
def fetch(
    topics: Annotated[
        Optional[list[str]],
        typer.Option("--topic", "-t", help="Topic to fetch (repeatable)."),
    ] = None,
    config_path: ConfigOption = None,
    limit: Annotated[int, typer.Option(help="Rows to show.")] = 20,
) -> None:
    """Fetch content for the configured (or given) topics and list it."""
    config = _load(config_path, topics=topics or None)
    items = asyncio.run(_orchestrator(config).fetch_content())

    table = Table(title=f"{len(items)} item(s)")
    table.add_column("Source")
    table.add_column("Topic")
    table.add_column("Title")
    for item in items[:limit]:
        table.add_row(str(item.source), item.topic, item.title[:80])
    console.print(table)


@app.command()
def generate(
    topics: Annotated[
        Optional[list[str]],
        typer.Option("--topic", "-t", help="Topic to fetch (repeatable)."),
    ] = None,
    provider: Annotated[
        Optional[str], typer.Option("--provider", "-p", help="LLM provider.")
    ] = None,
    tone: Annotated[Optional[str], typer.Option(help="Post tone.")] = None,
    config_path: ConfigOption = None,
) -> None:
    """Run one fetch tick: fetch, generate and store posts."""
    config = _load(config_path, topics=topics or None, provider=provider, tone=tone)
    posts = asyncio.run(_orchestrator(config).fetch_tick())
    if not posts:
        console.print("[yellow]No posts generated.[/yellow]")
        return
    for post in posts:
        image = "with image" if post.image else "no image"
        console.print(f"[green]#{post.id}[/green] {post.status} ({image}): {post.source_content.title[:70]}")


@app.command()
def publish(
    post_id: Annotated[int, typer.Argument(help="Stored post id.")],
    platforms: Annotated[
        Optional[list[Platform]],
        typer.Option("--platform", help="Platform to publish to (repeatable)."),
    ] = None,
    config_path: ConfigOption = None,
) -> None:
    """Approve and publish a stored post now."""
    config = _load(config_path)
    orchestrator = _orchestrator(config)
    try:
        results = asyncio.run(orchestrator.approve_and_publish(post_id, platforms))
    except KeyError:
        console.print(f"[red]Error:[/red] Post {post_id} not found")
        raise typer.Exit(1)
    except (SocialPilotError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    failed = False
    for platform, result in results.items():
        if result.ok:
            console.print(f"[green]{platform}:[/green] {result.outcome.url}")
        else:
            failed = True
            console.print(f"[red]{platform}:[/red] {result.error}")
    if failed:
        raise typer.Exit(1)


@app.command()
def quota(config_path: ConfigOption = None) -> None:
    """Show this month's posting quota per platform."""
    config = _load(config_path)
    report = _orchestrator(config).quota()

    table = Table(title="Monthly quota")
    table.add_column("Platform")
    table.add_column("Used", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Per day", justify="right")
    for status in report.values():
        if status.unlimited:
            table.add_row(str(status.platform), str(status.used), "-", "-", "-")
        else:
            table.add_row(
                str(status.platform),
                str(status.used),
                str(status.limit),
                str(status.remaining),
                str(status.daily_average),
            )
    console.print(table)


@app.command()
def check(config_path: ConfigOption = None) -> None:
    """Report which credentials and integrations are configured."""
    config = _load(config_path)
    checks = {
        "NewsAPI": config.news.is_configured,
        "YouTube": config.youtube.is_configured,
        "Reddit": config.reddit.is_configured,
        "Unsplash": config.unsplash.is_configured,
        "Google image search": config.google_search.is_configured,
        "Twitter": config.twitter.is_configured,
        "LinkedIn": config.linkedin.is_configured,
        f"LLM ({config.generation.default_provider})": bool(
            config.llm.key_for(config.generation.default_provider)
        ),
    }
    for name, ok in checks.items():
        mark = "[green]✓[/green]" if ok else "[red]✗[/red]"
        console.print(f"{mark} {name}")
    if config.auto_publish_enabled:
        console.print("Auto-posting: [green]enabled[/green]")
    else:
        console.print("Auto-posting: [yellow]disabled (posts wait for approval)[/yellow]")


if __name__ == "__main__":
    app()
