"""Typer CLI entry point for TakeNote."""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path
from typing import Any, Optional

import typer

from .config import get_settings, list_environment_settings
from .core.session import ActionOutcome, SessionWorkspace
from .core.timecode import TimecodeError, parse_timecode
from .data.storage import SQLiteLocalCache
from .errors import TakeNoteError, UpgradeRequiredError
from .export import EXTENSIONS
from .logging import configure_logging, get_logger
from .services.factory import ServiceConfigurationError, resolve_entitlements, resolve_remote_store

app = typer.Typer(help="TakeNote timecode logger")
LOGGER = get_logger(__name__)

SessionOption = typer.Option(None, "--session", "-s", help="Session id; defaults to the newest session")


def _build_workspace(offline: bool = False, scheduler=None) -> SessionWorkspace:
    settings = get_settings()
    configure_logging(settings.log_level)
    try:
        store = resolve_remote_store(settings=settings)
    except ServiceConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return SessionWorkspace(
        user_id=settings.user_id,
        store=store,
        entitlements=resolve_entitlements(settings),
        scheduler=scheduler,
        settings=settings,
        cache=SQLiteLocalCache(settings.cache_path),
        online=not offline,
    )


def _check(outcome: ActionOutcome) -> Any:
    try:
        return outcome.raise_for_status()
    except UpgradeRequiredError as exc:
        typer.echo(f"Upgrade required: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    except TakeNoteError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


@contextlib.contextmanager
def _session(session_id: Optional[str], offline: bool = False):
    workspace = _build_workspace(offline=offline)
    _check(workspace.open(session_id))
    try:
        yield workspace
    finally:
        workspace.dispose()


@app.command()
def sessions() -> None:
    """List sessions, newest first."""

    workspace = _build_workspace()
    listed = workspace.reconciler.store.list(workspace.user_id)
    if not listed.ok:
        typer.echo(f"Could not list sessions: {listed.error}", err=True)
        raise typer.Exit(code=1)
    if not listed.sessions:
        typer.echo("No sessions yet.")
    for session in listed.sessions:
        typer.echo(f"{session.id}  {session.name}  ({len(session.active_notes())} notes, {session.fps:g} fps)")


@app.command()
def new(name: Optional[str] = typer.Argument(None, help="Session name")) -> None:
    """Create a session."""

    workspace = _build_workspace()
    listed = workspace.reconciler.store.list(workspace.user_id)
    workspace.sessions = listed.sessions if listed.ok else []
    session = _check(workspace.create_session(name))
    typer.echo(f"Created {session.id}: {session.name}")
    workspace.dispose()


@app.command("open")
def open_session(session_id: Optional[str] = typer.Argument(None, help="Session id; newest when omitted")) -> None:
    """Open a session and show its summary."""

    with _session(session_id) as workspace:
        session = workspace.current
        typer.echo(f"{session.name} ({session.id})")
        typer.echo(f"Timecode {workspace.engine.current_string()} at {session.fps:g} fps")
        typer.echo(f"{len(session.active_notes())} notes, {len(session.mics)} mics")
        for field in session.metadata:
            if field.value:
                typer.echo(f"{field.label}: {field.value}")


@app.command("delete-session")
def delete_session(session_id: str = typer.Argument(..., help="Session id")) -> None:
    """Delete a session from the store."""

    workspace = _build_workspace()
    _check(workspace.delete_session(session_id))
    typer.echo(f"Deleted {session_id}")


@app.command()
def notes(session_id: Optional[str] = SessionOption) -> None:
    """Show the notes of a session."""

    with _session(session_id) as workspace:
        typer.echo(f"{workspace.current.name} [{workspace.current.fps:g} fps]")
        for note in workspace.visible_notes():
            span = note.timecode_in if note.timecode_in == note.timecode_out else f"{note.timecode_in}-{note.timecode_out}"
            typer.echo(f"{span}  {note.text}  ({note.id})")


@app.command()
def note(
    text: str = typer.Argument(..., help="Note text"),
    at: Optional[str] = typer.Option(None, "--at", help="Insert at HH:MM:SS:FF instead of now"),
    session_id: Optional[str] = SessionOption,
    offline: bool = typer.Option(False, "--offline", help="Only save to the local cache"),
) -> None:
    """Log a note at the session timecode."""

    with _session(session_id, offline=offline) as workspace:
        outcome = workspace.insert_note_at(text, at) if at else workspace.add_note(text)
        created = _check(outcome)
        typer.echo(f"{created.timecode_in}  {created.text}")


@app.command("edit-note")
def edit_note(
    note_id: str = typer.Argument(...),
    text: str = typer.Argument(...),
    session_id: Optional[str] = SessionOption,
) -> None:
    """Change the text of a note."""

    with _session(session_id) as workspace:
        _check(workspace.update_note(note_id, text))


@app.command("delete-note")
def delete_note(
    note_id: str = typer.Argument(...),
    session_id: Optional[str] = SessionOption,
    offline: bool = typer.Option(False, "--offline", help="Only save to the local cache"),
) -> None:
    """Delete a note (it stays deleted across syncs)."""

    with _session(session_id, offline=offline) as workspace:
        _check(workspace.delete_note(note_id))
        typer.echo(f"Deleted {note_id}")


@app.command()
def timecode(
    session_id: Optional[str] = SessionOption,
    watch: float = typer.Option(0.0, "--watch", help="Keep the clock running for this many seconds"),
) -> None:
    """Print the session timecode, optionally as a running clock."""

    if watch <= 0:
        with _session(session_id) as workspace:
            typer.echo(workspace.engine.current_string())
        return

    loop = asyncio.new_event_loop()
    workspace = _build_workspace(scheduler=loop)
    try:
        _check(workspace.open(session_id))
        workspace.engine.add_listener(lambda text: typer.echo(f"\r{text}", nl=False))
        workspace.engine.run()
        loop.call_later(watch, loop.stop)
        loop.run_forever()
    except KeyboardInterrupt:
        LOGGER.debug("Clock watch interrupted")
    finally:
        workspace.dispose()
        loop.close()
        typer.echo("")


@app.command("set-timecode")
def set_timecode(
    value: str = typer.Argument(..., help="HH:MM:SS:FF to show right now"),
    session_id: Optional[str] = SessionOption,
) -> None:
    """Jam the session clock to a timecode."""

    with _session(session_id) as workspace:
        try:
            target = parse_timecode(value, workspace.current.fps)
        except TimecodeError as exc:
            raise typer.BadParameter(str(exc)) from exc
        workspace.edit_timecode()
        _check(
            workspace.set_timecode_fields(
                hours=target.hours, minutes=target.minutes, seconds=target.seconds, frames=target.frames
            )
        )
        _check(workspace.commit_timecode())
        typer.echo(f"Offset {workspace.current.tc_offset} ms")


@app.command("sync-now")
def sync_now(session_id: Optional[str] = SessionOption) -> None:
    """Follow the wall clock again (offset 0)."""

    with _session(session_id) as workspace:
        typer.echo(_check(workspace.sync_to_now()))


@app.command()
def fps(rate: float = typer.Argument(..., help="Frame rate"), session_id: Optional[str] = SessionOption) -> None:
    """Change the session frame rate."""

    with _session(session_id) as workspace:
        workspace.edit_timecode()
        _check(workspace.set_frame_rate(rate))


@app.command("mic-add")
def mic_add(
    frequency: str = typer.Argument("", help="Radio frequency"),
    session_id: Optional[str] = SessionOption,
) -> None:
    """Add a mic channel."""

    with _session(session_id) as workspace:
        mic = _check(workspace.add_mic(frequency))
        typer.echo(f"Mic {mic.number} added")


@app.command("mic-assign")
def mic_assign(
    number: int = typer.Argument(...),
    person: str = typer.Argument(...),
    session_id: Optional[str] = SessionOption,
) -> None:
    """Give a mic channel to a person (recorded at the current timecode)."""

    with _session(session_id) as workspace:
        _check(workspace.assign_mic(number, person))


@app.command("meta-set")
def meta_set(
    field_id: str = typer.Argument(..., help="Metadata field id, e.g. scene"),
    value: str = typer.Argument(...),
    session_id: Optional[str] = SessionOption,
) -> None:
    """Set a metadata value."""

    with _session(session_id) as workspace:
        _check(workspace.update_metadata_field(field_id, value=value))


@app.command()
def sync(session_id: Optional[str] = SessionOption) -> None:
    """Reconcile the local copy with the store."""

    with _session(session_id) as workspace:
        outcome = workspace.reconcile()
        if outcome is None or not outcome.ok:
            typer.echo(f"Sync failed: {outcome.error if outcome else 'no session'}", err=True)
            raise typer.Exit(code=1)
        if outcome.notice:
            typer.echo(f"Merged {len(outcome.notice.note_ids)} new note(s)")
        if outcome.persisted:
            typer.echo(f"Synced {outcome.session.id}: {len(outcome.session.active_notes())} note(s) in the store")


@app.command()
def export(
    fmt: str = typer.Option("csv", "--format", "-f", help="csv, tsv, edl, fcpxml or ale"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file; stdout when omitted"),
    session_id: Optional[str] = SessionOption,
) -> None:
    """Export notes for an editing application."""

    with _session(session_id) as workspace:
        text = _check(workspace.export(fmt))
        name = workspace.current.name
    if output is None:
        typer.echo(text, nl=False)
        return
    if output.is_dir():
        output = output / f"{name}{EXTENSIONS[fmt.lower()]}"
    output.write_text(text, encoding="utf-8")
    typer.echo(f"Wrote {output}")


@app.command()
def config() -> None:
    """Show settings and the environment variables that override them."""

    for entry in list_environment_settings():
        typer.echo(f"{entry.env_name}={entry.value}  (default: {entry.default})")


if __name__ == "__main__":  # pragma: no cover
    app()
