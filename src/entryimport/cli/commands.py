"""CLI command implementations"""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session

from entryimport.config import Settings, load_config
from entryimport.core.models import EntryFields, ImportMode, ParseResult
from entryimport.core.pipeline import fields_summary, parse_import
from entryimport.crud.entries import commit_result
from entryimport.crud.database import init_db, make_engine
from entryimport.crud.sql_repo import SQLRepo


PathArg = Annotated[str, typer.Argument(help="Payload file, or '-' to read stdin")]
ModeOpt = Annotated[Optional[ImportMode], typer.Option("--mode", help="auto, json or markup")]
OverwriteOpt = Annotated[bool, typer.Option("--overwrite", help="Replace filled fields instead of only filling empty ones")]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output")]
DbOpt = Annotated[Optional[str], typer.Option("--db-url", help="Database URL for stored entries")]


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.secho(f"Error: {msg}", err=True, fg=typer.colors.RED)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def configure_logging(level: str = "WARNING", verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING),
        format="[%(levelname)s] %(message)s",
    )


def _settings(overrides: dict = None, verbose: bool = False) -> Settings:
    """Load config with standard CLI error handling, then configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail("Invalid configuration", e)
    configure_logging(settings.log_level, verbose)
    return settings


def _read_payload(path: str) -> str:
    if path == "-":
        return typer.get_text_stream("stdin").read()
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        _fail(f"Cannot read {path}", e)


def _read_current(path: Optional[str]) -> Optional[EntryFields]:
    if not path:
        return None
    try:
        return EntryFields.model_validate_json(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        _fail(f"Cannot load current fields from {path}", e)


def _echo_warnings(result: ParseResult) -> None:
    for w in result.warnings:
        typer.secho(f"  warning: {w}", err=True, fg=typer.colors.YELLOW)


def _parse(settings: Settings, payload: str, mode, overwrite, current=None) -> ParseResult:
    return parse_import(
        payload,
        mode or settings.default_mode,
        overwrite or settings.overwrite,
        current,
        settings=settings,
    )


def parse_cmd(
    path: PathArg,
    mode: ModeOpt = None,
    overwrite: OverwriteOpt = False,
    current: Annotated[Optional[str], typer.Option("--current", help="JSON file with the entry's current fields")] = None,
    verbose: VerboseOpt = False,
    ):
    """Parse a payload and print the result as JSON."""
    settings = _settings(verbose=verbose)
    result = _parse(settings, _read_payload(path), mode, overwrite, _read_current(current))
    typer.echo(result.to_json())
    if not result.success:
        raise typer.Exit(1)


def _engine(settings: Settings):
    engine = make_engine(settings.db_url)
    init_db(engine)
    return engine


def import_cmd(
    path: PathArg,
    mode: ModeOpt = None,
    overwrite: OverwriteOpt = False,
    entry_id: Annotated[Optional[str], typer.Option("--entry-id", help="Update this stored entry instead of creating")] = None,
    db_url: DbOpt = None,
    verbose: VerboseOpt = False,
    ):
    """Parse a payload and create (or update) entries in the database."""
    settings = _settings(overrides={"db_url": db_url}, verbose=verbose)
    payload = _read_payload(path)
    with Session(_engine(settings)) as session:
        repo = SQLRepo(session)
        current = None
        if entry_id:
            current = repo.get(entry_id)
            if current is None:
                _fail(f"Entry {entry_id} not found in {settings.db_url}")

        result = _parse(settings, payload, mode, overwrite, current)
        _echo_warnings(result)
        if not result.success:
            _fail(result.error or "Nothing to import")

        try:
            changes = commit_result(repo, result, entry_id)
        except (KeyError, ValueError) as e:
            _fail("Import failed", e)
    for status, saved_id in changes:
        typer.echo(f"  {status}: {saved_id}")
    typer.echo(f"Imported {len(changes)} entr{'y' if len(changes) == 1 else 'ies'} ({result.detected_format.value})")


def summary_cmd(
    path: PathArg,
    mode: ModeOpt = None,
    verbose: VerboseOpt = False,
    ):
    """Preview the fields each entry in a payload would set."""
    settings = _settings(verbose=verbose)
    result = _parse(settings, _read_payload(path), mode, True)
    if not result.success:
        _echo_warnings(result)
        _fail(result.error or "No entries found")
    for i, entry in enumerate(result.entries, start=1):
        typer.echo(f"Entry {i}:")
        for line in fields_summary(entry):
            typer.echo(f"  {line}")
    _echo_warnings(result)


def show_cmd(
    entry_id: Annotated[str, typer.Argument(help="Stored entry id")],
    db_url: DbOpt = None,
    ):
    """Print a stored entry as JSON."""
    settings = _settings(overrides={"db_url": db_url})
    with Session(_engine(settings)) as session:
        fields = SQLRepo(session).get(entry_id)
    if fields is None:
        _fail(f"Entry {entry_id} not found")
    typer.echo(json.dumps(fields.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))


def list_cmd(db_url: DbOpt = None):
    """List stored entry ids with their titles."""
    settings = _settings(overrides={"db_url": db_url})
    with Session(_engine(settings)) as session:
        repo = SQLRepo(session)
        entries = [(entry_id, repo.get(entry_id)) for entry_id in repo.list_ids()]
    if not entries:
        typer.echo("No entries stored.")
        raise typer.Exit(1)
    for entry_id, fields in entries:
        typer.echo(f"{entry_id}  {fields.title or '(untitled)'}")
