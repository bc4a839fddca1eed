"""Typer CLI for AssetMap: serve, syntax hints and history maintenance."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from result import Err

from assetmap.config import Config

app = typer.Typer(
    name="assetmap",
    help="AssetMap: multi-platform internet asset search console.",
    invoke_without_command=True,
)
history_app = typer.Typer(help="Inspect and maintain the query history.")
app.add_typer(history_app, name="history")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", help="Directory holding the AssetMap database"),
]


def _config(data_dir: Path | None, export_dir: Path | None = None) -> Config:
    defaults = Config()
    return Config(
        data_dir=data_dir or defaults.data_dir,
        export_dir=export_dir or defaults.export_dir,
    )


@app.callback(invoke_without_command=True)
def serve(
    ctx: typer.Context,
    data_dir: DataDirOption = None,
    export_dir: Annotated[
        Path | None,
        typer.Option("--export-dir", help="Fallback directory for CSV exports"),
    ] = None,
) -> None:
    """Start the AssetMap desktop application."""
    if ctx.invoked_subcommand is not None:
        return
    config = _config(data_dir, export_dir)
    from assetmap.ui.app import run_app

    run_app(config)


@app.command()
def hints(
    platform: Annotated[str, typer.Argument(help="hunter, fofa, quake or daydaymap")],
    text: Annotated[str, typer.Argument(help="Partial query to complete")] = "",
) -> None:
    """Print the syntax hints matching a partial query."""
    from assetmap.services.composer import autocomplete

    try:
        matches = autocomplete(platform, text)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from None
    if not matches:
        typer.echo("No matching hints.")
        return
    width = max(len(hint.example) for hint in matches)
    for hint in matches:
        typer.echo(f"{hint.example.ljust(width)}  {hint.description}")


@history_app.command("list")
def history_list(
    data_dir: DataDirOption = None,
    platform: Annotated[str, typer.Option("--platform", help="Only this platform")] = "all",
    keyword: Annotated[str, typer.Option("--keyword", help="Substring filter")] = "",
) -> None:
    """List recorded searches, newest first."""
    asyncio.run(_do_history_list(_config(data_dir), platform, keyword))


@history_app.command("export")
def history_export(
    directory: Annotated[Path, typer.Argument(help="Directory to write the CSV into")],
    data_dir: DataDirOption = None,
) -> None:
    """Export the query history as CSV."""
    asyncio.run(_do_history_export(_config(data_dir), directory))


@history_app.command("clear")
def history_clear(
    data_dir: DataDirOption = None,
    yes: Annotated[bool, typer.Option("--yes", help="Skip confirmation")] = False,
) -> None:
    """Delete every history record."""
    if not yes:
        typer.confirm("Delete all history records?", abort=True)
    asyncio.run(_do_history_clear(_config(data_dir)))


async def _do_history_list(config: Config, platform: str, keyword: str) -> None:
    from assetmap.services.container import ServiceContainer

    services = await ServiceContainer.create(config)
    try:
        result = await services.history_service.load()
        if isinstance(result, Err):
            typer.echo(result.err_value, err=True)
            raise typer.Exit(code=1)
        records = services.history_service.filtered(platform, keyword)
        for record in records:
            status = "ok" if record.success else f"failed: {record.error_message or ''}"
            typer.echo(
                f"{record.timestamp[:19]}  {record.platform:<9}  "
                f"{record.results_count:>8}  {record.query}  [{status}]"
            )
        typer.echo(f"\n{len(records)} record(s)")
    finally:
        await services.close()


async def _do_history_export(config: Config, directory: Path) -> None:
    from assetmap.services.container import ServiceContainer

    services = await ServiceContainer.create(config)
    try:
        result = await services.history_service.export_history(str(directory))
        if isinstance(result, Err):
            typer.echo(result.err_value, err=True)
            raise typer.Exit(code=1)
        typer.echo(f"Saved to {result.ok_value}")
    finally:
        await services.close()


async def _do_history_clear(config: Config) -> None:
    from assetmap.services.container import ServiceContainer

    services = await ServiceContainer.create(config)
    try:
        result = await services.history_service.clear()
        if isinstance(result, Err):
            typer.echo(result.err_value, err=True)
            raise typer.Exit(code=1)
        typer.echo("History cleared.")
    finally:
        await services.close()
