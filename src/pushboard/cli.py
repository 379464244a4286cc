"""Pushboard command line: serve the dashboard API and report on its analytics."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, time, tzinfo
from pathlib import Path

import click

from pushboard import __version__
from pushboard.analytics import AnalyticsReport, DateRange, build_export, localize, resolve_range
from pushboard.client import DashboardClient, DashboardClientError
from pushboard.config import ConfigError, DashboardConfig, load_config
from pushboard.core.logging import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:40300"

_DATE_ONLY_FORMAT = "%Y-%m-%d"
_DATE_FORMATS = [_DATE_ONLY_FORMAT, "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


class RangeBound(click.DateTime):
    """A range bound; with ``end_of_day`` a bare date means the last instant of that day."""

    def __init__(self, end_of_day: bool = False) -> None:
        super().__init__(_DATE_FORMATS)
        self.end_of_day = end_of_day

    def convert(self, value, param, ctx):
        parsed = super().convert(value, param, ctx)
        if self.end_of_day and isinstance(value, str) and _is_bare_date(value):
            return datetime.combine(parsed.date(), time.max)
        return parsed


def _is_bare_date(value: str) -> bool:
    try:
        datetime.strptime(value, _DATE_ONLY_FORMAT)
    except ValueError:
        return False
    return True


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to pushboard.toml (defaults to $PUSHBOARD_CONFIG or ./pushboard.toml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """Pushboard push notification dashboard."""
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    configure_logging(config.logging, service_name=ctx.invoked_subcommand)
    ctx.obj = config


@cli.command()
@click.option("--host", default=None, help="Bind address (default: config or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="Bind port (default: config or 40300)")
@click.pass_obj
def serve(config: DashboardConfig, host: str | None, port: int | None) -> None:
    """Start the dashboard API server."""
    import uvicorn

    from pushboard.api.deps import init_config

    init_config(config)
    resolved_host = host or config.host
    resolved_port = port or config.port
    click.echo(f"Starting Pushboard dashboard on {resolved_host}:{resolved_port}")
    uvicorn.run(
        "pushboard.api.app:create_app",
        host=resolved_host,
        port=resolved_port,
        factory=True,
    )


@cli.command()
@click.option("--revision", default="head", show_default=True, help="Target revision")
def migrate(revision: str) -> None:
    """Create the database if needed and upgrade its schema."""
    from pushboard.db import Database
    from pushboard.migrations import run_migrations

    db = Database.from_env()
    asyncio.run(db.provision())
    run_migrations(db.url, revision=revision)
    click.echo(f"Database {db.db_name} migrated to {revision}")


def _range_options(func):
    """Options shared by the analytics commands."""
    decorators = [
        click.option("--api-url", default=DEFAULT_API_URL, show_default=True),
        click.option("--from", "start", type=RangeBound(), default=None),
        click.option(
            "--to",
            "end",
            type=RangeBound(end_of_day=True),
            default=None,
            help="Range end; a bare date covers that whole day",
        ),
        click.option("--days", type=int, default=None, help="Range length when a bound is omitted"),
        click.option("--tz", default=None, help="IANA zone for calendar days"),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _cli_range(
    config: DashboardConfig,
    start: datetime | None,
    end: datetime | None,
    days: int | None,
    zone: tzinfo | None,
) -> DateRange:
    try:
        return resolve_range(
            localize(start, zone),
            localize(end, zone),
            default_days=config.default_range_days if days is None else days,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def _fetch_report(api_url: str, date_range: DateRange, zone: tzinfo | None) -> AnalyticsReport:
    async def _run() -> AnalyticsReport:
        async with DashboardClient(api_url) as client:
            return await client.fetch_report(date_range, tz=zone)

    logger.debug("Fetching notifications from %s", api_url)
    try:
        return asyncio.run(_run())
    except DashboardClientError as exc:
        raise click.ClickException(str(exc)) from exc


def _zone(config: DashboardConfig, tz: str | None) -> tzinfo | None:
    try:
        return config.display_zone(tz)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--tz") from exc


@cli.command()
@_range_options
@click.pass_obj
def summary(
    config: DashboardConfig,
    api_url: str,
    start: datetime | None,
    end: datetime | None,
    days: int | None,
    tz: str | None,
) -> None:
    """Print totals, engagement and per-day counts for a date range."""
    zone = _zone(config, tz)
    date_range = _cli_range(config, start, end, days, zone)
    report = _fetch_report(api_url, date_range, zone)

    totals = report.summary
    click.echo(f"Total: {totals.total}  Delivered: {totals.delivered}  Clicked: {totals.clicked}")
    for name, value in report.engagement.as_slices():
        click.echo(f"  {name:<22} {value}")

    if not report.buckets:
        click.echo("No notifications in range")
        return

    click.echo(f"{'Date':<8} {'Total':>7} {'Delivered':>10} {'Clicked':>8}")
    click.echo("-" * 36)
    for bucket in report.buckets:
        click.echo(f"{bucket.date:<8} {bucket.total:>7} {bucket.delivered:>10} {bucket.clicked:>8}")


@cli.command()
@_range_options
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
)
@click.pass_obj
def export(
    config: DashboardConfig,
    api_url: str,
    start: datetime | None,
    end: datetime | None,
    days: int | None,
    tz: str | None,
    output_dir: Path,
) -> None:
    """Write the per-day CSV report for a date range."""
    zone = _zone(config, tz)
    date_range = _cli_range(config, start, end, days, zone)
    report = _fetch_report(api_url, date_range, zone)

    artifact = build_export(report, tz=zone)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / artifact.filename
    path.write_text(artifact.content, encoding="utf-8")
    click.echo(f"Wrote {len(report.buckets)} day(s) to {path}")

