"""CLI entry point for chatgpt-import."""

import logging
import os
from pathlib import Path

import click
import uvicorn

from .engine import open_engine
from .errors import ChatImportError
from .formatting import DATE_FORMATS


@click.group()
@click.option("--vault", type=click.Path(file_okay=False, path_type=Path), envvar="CHATGPT_IMPORT_VAULT",
              help="Directory notes are written under (default: current directory).")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output.")
@click.pass_context
def main(ctx: click.Context, vault: Path | None, verbose: bool):
    """Import ChatGPT export archives into a folder of Markdown notes."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [ChatGPT Import] [%(levelname)s] %(message)s",
    )
    ctx.obj = vault


def _engine(ctx: click.Context):
    try:
        return open_engine(ctx.obj)
    except (ChatImportError, ValueError) as e:
        raise click.ClickException(str(e))


@main.command("import")
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--yes", "-y", is_flag=True, help="Re-process an archive that was already imported without asking.")
@click.pass_context
def import_archive(ctx: click.Context, archive: Path, yes: bool):
    """Import a ChatGPT export ZIP."""
    engine = _engine(ctx)

    def confirm(record) -> bool:
        if yes:
            return True
        return click.confirm(
            f"This archive ({archive.name}) has already been imported on {record.date}. "
            "Do you want to process it again?"
        )

    result = engine.process_archive(archive.read_bytes(), archive.name, confirm=confirm)
    click.echo(result.notice)
    if result.report_path:
        click.echo(f"Log: {result.report_path}")
    if result.has_errors:
        ctx.exit(1)


@main.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def reset(ctx: click.Context, yes: bool):
    """Forget all imported archives and conversation records."""
    engine = _engine(ctx)
    if not yes:
        click.confirm("This will reset all import catalogs. This action cannot be undone.", abort=True)
    engine.clear_all_state()
    click.echo("All catalogs have been reset.")


@main.command()
@click.pass_context
def rebuild(ctx: click.Context):
    """Recover conversation records from notes already in the vault."""
    added = _engine(ctx).rebuild_records()
    click.echo(f"Recovered {added} conversation records.")


@main.command()
@click.pass_context
def status(ctx: click.Context):
    """Show settings and catalog sizes."""
    engine = _engine(ctx)
    settings = engine.settings
    click.echo(f"Archive folder: {settings.archive_folder}")
    click.echo(f"Date prefix: {'on' if settings.add_date_prefix else 'off'} ({settings.date_format})")
    click.echo(f"Imported archives: {len(engine.state.archive_records)}")
    click.echo(f"Conversation records: {len(engine.state.conversation_records)}")


@main.command()
@click.option("--archive-folder", help="Folder conversations are stored in.")
@click.option("--date-prefix/--no-date-prefix", default=None, help="Prefix file names with the creation date.")
@click.option("--date-format", type=click.Choice(list(DATE_FORMATS)), help="Format of the date prefix.")
@click.option("--checkpoint/--no-checkpoint", default=None, help="Save state after every conversation.")
@click.pass_context
def settings(ctx: click.Context, archive_folder: str | None, date_prefix: bool | None,
             date_format: str | None, checkpoint: bool | None):
    """Change persisted settings."""
    changes = {
        "archive_folder": archive_folder,
        "add_date_prefix": date_prefix,
        "date_format": date_format,
        "checkpoint": checkpoint,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    engine = _engine(ctx)
    updated = engine.update_settings(**changes) if changes else engine.state.settings
    for key, value in vars(updated).items():
        click.echo(f"{key}: {value}")


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
@click.pass_context
def serve(ctx: click.Context, port: int, host: str):
    """Start the HTTP API."""
    if ctx.obj is not None:
        os.environ["CHATGPT_IMPORT_VAULT"] = str(ctx.obj)
    click.echo(f"Starting chatgpt-import on http://{host}:{port}")
    uvicorn.run("chatgpt_import.server:app", host=host, port=port, reload=False)
