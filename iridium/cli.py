"""CLI entry points: `iridium serve` and `iridium build`."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.table import Table

from iridium.config import load_config
from iridium.notebook.pipeline import create_pipeline

app = typer.Typer(name="iridium", help="Reactive notebook server and compiler.")
console = Console()


def _configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")


@app.command()
def serve(
    port: int = typer.Option(0, "--port", "-p", help="Port to serve on (default: configured port)"),
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
) -> None:
    """Start the notebook dev server."""
    import uvicorn

    _configure_logging()
    config = load_config()
    port = port or config.port

    console.print(f"\n[bold]Dev Server Started[/bold] http://localhost:{port}")
    uvicorn.run("iridium.server:app", host=host, port=port, reload=False)


@app.command()
def build() -> None:
    """Compile every notebook into its ES module."""
    _configure_logging()
    pipeline = create_pipeline(load_config())
    report = pipeline.compile_all()

    if not report:
        console.print("[yellow]No notebooks found.[/yellow]")
        return

    t = Table(title="Build", show_lines=False)
    t.add_column("Notebook", style="cyan")
    t.add_column("Status")
    t.add_column("Details")
    for notebook, result in report.items():
        status = "[green]ok[/green]" if result.ok else "[red]failed[/red]"
        t.add_row(notebook, status, result.summary())
    console.print(t)

    failed = sum(1 for result in report.values() if not result.ok)
    if failed:
        console.print(f"[red]{failed} of {len(report)} notebooks failed to compile.[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Compiled {len(report)} notebooks.[/green]")


def main() -> None:
    app()
