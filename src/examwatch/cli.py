"""CLI entry point for examwatch: run the API, maintain its database and watch it."""

from __future__ import annotations

import sys
import time
from pathlib import Path

import click

from examwatch.client import AdminMonitor, ClientError, ProctorClient, PullScheduler
from examwatch.config import ConfigError, Settings, get_settings
from examwatch.logging import setup_logging
from examwatch.student_store import StudentStore


def _load_settings(config_path: Path | None) -> Settings:
    try:
        return get_settings(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(package_name="examwatch")
def main() -> None:
    """examwatch - exam proctoring API."""
    pass


@main.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to examwatch.yaml (auto-detected if not specified)",
)
@click.option("--host", default=None, help="Bind address (overrides config)")
@click.option("--port", type=int, default=None, help="Bind port (overrides config)")
@click.option("--db", "db_path", default=None, help="SQLite database path (overrides config)")
def serve(
    config_path: Path | None,
    host: str | None,
    port: int | None,
    db_path: str | None,
) -> None:
    """Run the REST API server."""
    import uvicorn  # noqa: PLC0415

    from examwatch.api.app import create_app  # noqa: PLC0415

    settings = _load_settings(config_path)
    if host is not None:
        settings.server.host = host
    if port is not None:
        settings.server.port = port
    if db_path is not None:
        settings.database.path = db_path

    setup_logging(log_dir=settings.logging.dir, level=settings.logging.level)

    app = create_app(
        db_path=settings.database.path,
        cors_origins=settings.server.cors_origins,
    )
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_config=None)


@main.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to examwatch.yaml (auto-detected if not specified)",
)
@click.option("--db", "db_path", default=None, help="SQLite database path (overrides config)")
@click.option(
    "--events/--no-events",
    default=False,
    help="Also delete all activity events",
)
@click.confirmation_option(prompt="Delete all students?")
def reset(config_path: Path | None, db_path: str | None, events: bool) -> None:
    """Delete every student (and optionally every activity event)."""
    settings = _load_settings(config_path)
    store = StudentStore(db_path or settings.database.path)
    try:
        deleted = store.reset_students()
        click.echo(f"Deleted {deleted} students.")
        if events:
            deleted_events = store.reset_events()
            click.echo(f"Deleted {deleted_events} activity events.")
    finally:
        store.close()


@main.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to examwatch.yaml (auto-detected if not specified)",
)
@click.option("--db", "db_path", default=None, help="SQLite database path (overrides config)")
def students(config_path: Path | None, db_path: str | None) -> None:
    """List registered students."""
    settings = _load_settings(config_path)
    store = StudentStore(db_path or settings.database.path)
    try:
        records = store.list_students()
    finally:
        store.close()

    if not records:
        click.echo("No students.")
        return
    for student in records:
        click.echo(
            f"{student.student_id}  {student.name!r:24}  {student.exam!r:20}  "
            f"{student.status:9}  risk={student.risk_score:<4} time={student.time_elapsed}"
        )


def _print_dashboard(admin: AdminMonitor) -> None:
    stats = admin.stats()
    distribution = admin.risk_distribution()
    click.echo(
        f"active={stats.active_students}  flagged={stats.flagged_sessions}  "
        f"total={stats.total_sessions}  avg_risk={stats.average_risk_score:.1f}"
    )
    click.echo(
        f"risk: low={distribution.low}  medium={distribution.medium}  high={distribution.high}"
    )
    last_error = admin.snapshot.last_error
    if last_error is not None:
        click.echo(f"error: {last_error}", err=True)


@main.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to examwatch.yaml (auto-detected if not specified)",
)
@click.option("--url", "base_url", default=None, help="API root URL (overrides config)")
@click.option("--once", is_flag=True, help="Poll once, print the dashboard and exit")
def monitor(config_path: Path | None, base_url: str | None, once: bool) -> None:
    """Poll a running API and print the admin dashboard figures."""
    settings = _load_settings(config_path)
    if base_url is not None:
        settings.client.base_url = base_url

    setup_logging(log_dir=settings.logging.dir, level=settings.logging.level, console=False)

    client = ProctorClient.from_config(settings.client)
    admin = AdminMonitor(client, scheduler=PullScheduler.from_config(settings.client))
    try:
        if once:
            for refresh in (admin.refresh_students, admin.refresh_events):
                try:
                    refresh()
                except ClientError:
                    pass  # recorded on the snapshot
            _print_dashboard(admin)
            if admin.snapshot.last_error is not None:
                sys.exit(1)
            return

        admin.start()
        try:
            while True:
                time.sleep(settings.client.poll_interval)
                _print_dashboard(admin)
        except KeyboardInterrupt:
            pass
        finally:
            admin.stop()
    finally:
        client.close()


if __name__ == "__main__":
    main()
