"""Command line interface for PressAudit."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .audit.service import build_audit_service
from .config import load_app_config
from .core import (
    NEWS_PUBLICATIONS,
    AppConfig,
    Audit,
    AuditStatus,
    ConfigurationError,
    ValidationError,
)
from .utils import configure_logging, create_progress, display_rich, format_json, get_logger

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
POLL_INTERVAL_SECONDS = 0.5
console = Console()


def _resolve_env_file(config_file: Optional[str]) -> Optional[str]:
    if not config_file:
        return None
    path = Path(config_file)
    if path.is_dir():
        raise click.ClickException("Configuration file path must point to a file, not a directory.")
    return str(path)


def _get_logger(ctx: click.Context) -> logging.Logger:
    if ctx.obj is None:
        ctx.obj = {}
    logger = ctx.obj.get("logger")
    if logger is None:
        logger = get_logger(__name__)
        ctx.obj["logger"] = logger
    return logger


def _load_config(ctx: click.Context) -> AppConfig:
    if ctx.obj is None:
        ctx.obj = {}
    if "config" not in ctx.obj:
        env_file = ctx.obj.get("config_file")
        try:
            ctx.obj["config"] = load_app_config(env_file=env_file)
        except ConfigurationError as exc:
            _get_logger(ctx).error("Configuration loading failed", exc_info=exc)
            raise click.ClickException(f"Configuration error: {exc}") from exc
    return ctx.obj["config"]


def _with_overrides(
    config: AppConfig,
    batch_size: Optional[int],
    batch_delay: Optional[float],
) -> AppConfig:
    updates = {}
    if batch_size is not None:
        updates["batch_size"] = batch_size
    if batch_delay is not None:
        updates["batch_delay_seconds"] = batch_delay
    if not updates:
        return config
    return config.model_copy(update={"audit": config.audit.model_copy(update=updates)})


async def _run_audit(
    config: AppConfig,
    brand_name: str,
    website_url: str,
    *,
    show_progress: bool,
) -> Optional[Audit]:
    service = build_audit_service(config)
    try:
        audit = await service.create_audit(brand_name, website_url)
        if not show_progress:
            return await service.wait_for(audit.id)

        with create_progress(console) as progress:
            progress_task = progress.add_task(f"Auditing {audit.brand_name}", total=audit.total_publications)
            runner_task = service.runner.submit(audit.id)
            while not runner_task.done():
                current = await service.get_audit(audit.id)
                if current is not None:
                    progress.update_task(
                        progress_task,
                        completed=len(current.results),
                        description=f"Auditing {current.brand_name} ({current.mentions_found} mentions)",
                    )
                await asyncio.wait({runner_task}, timeout=POLL_INTERVAL_SECONDS)
            final = await service.wait_for(audit.id)
            if final is not None:
                progress.update_task(progress_task, completed=len(final.results))
        return final
    finally:
        await service.aclose()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config-file",
    type=click.Path(path_type=str, dir_okay=False, resolve_path=True),
    default=None,
    help="Optional path to a .env file that should be loaded before running commands.",
)
@click.option(
    "--log-level",
    type=click.Choice(["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level to use for this invocation.",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=str, dir_okay=False),
    default=None,
    help="Write logs to this file in addition to stderr.",
)
@click.version_option(__version__, prog_name="PressAudit")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: str, log_file: Optional[str]) -> None:
    """PressAudit command-line interface."""

    ctx.ensure_object(dict)
    ctx.obj["config_file"] = _resolve_env_file(config_file)

    configure_logging(level=log_level, log_file=log_file, force=True)
    _get_logger(ctx).debug("Starting PressAudit CLI", extra={"config_file": ctx.obj["config_file"]})


@cli.command(name="validate-config")
@click.pass_context
def validate_config(ctx: click.Context) -> None:
    """Validate PressAudit environment configuration."""

    logger = _get_logger(ctx)
    config = _load_config(ctx)

    summary = (
        f"Gemini model: [bold]{config.api.gemini_model}[/bold]\n"
        f"Search locale: [bold]{config.api.search_locale}/{config.api.search_language}[/bold]\n"
        f"Batch size: [bold]{config.audit.batch_size}[/bold]"
    )

    console.print(Panel.fit("Configuration validated successfully", border_style="green"))
    console.print(summary)
    logger.info("Configuration validation succeeded")


@cli.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Display active configuration summary (without secrets)."""

    logger = _get_logger(ctx)
    config = _load_config(ctx)

    console.print(
        Panel(
            f"Gemini model: [cyan]{config.api.gemini_model}[/cyan]\n"
            f"Max tokens: [cyan]{config.api.gemini_max_tokens}[/cyan]\n"
            f"Classifier temperature: [cyan]{config.api.classifier_temperature}[/cyan]\n"
            f"Strategy temperature: [cyan]{config.api.strategy_temperature}[/cyan]\n"
            f"Search timeout: [cyan]{config.api.search_timeout}s[/cyan]\n"
            f"Batch size: [cyan]{config.audit.batch_size}[/cyan]\n"
            f"Batch delay: [cyan]{config.audit.batch_delay_seconds}s[/cyan]\n"
            f"Base URL: [cyan]{config.audit.base_url}[/cyan]\n"
            f"Publications: [cyan]{len(NEWS_PUBLICATIONS)}[/cyan]",
            title="PressAudit Configuration",
        )
    )
    logger.info("Displayed configuration summary")


@cli.command()
def publications() -> None:
    """List the news publications checked by every audit."""

    table = Table(title="Publications")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Domain", style="blue")
    for index, publication in enumerate(NEWS_PUBLICATIONS, start=1):
        table.add_row(str(index), publication.name, publication.domain)
    console.print(table)


@cli.command(name="audit")
@click.argument("brand_name")
@click.argument("website_url")
@click.option("--format", "output_format", type=click.Choice(["rich", "json"], case_sensitive=False), default="rich", help="Output format")
@click.option("--batch-size", type=click.IntRange(min=1), default=None, help="Publications checked concurrently (default: from .env AUDIT_BATCH_SIZE)")
@click.option("--batch-delay", type=click.FloatRange(min=0.0), default=None, help="Seconds to pause between batches (default: from .env AUDIT_BATCH_DELAY)")
@click.pass_context
def audit_command(
    ctx: click.Context,
    brand_name: str,
    website_url: str,
    output_format: str,
    batch_size: Optional[int],
    batch_delay: Optional[float],
) -> None:
    """Audit news coverage of BRAND_NAME (website WEBSITE_URL)."""

    logger = _get_logger(ctx)
    config = _with_overrides(_load_config(ctx), batch_size, batch_delay)
    as_json = output_format.lower() == "json"

    try:
        audit = asyncio.run(
            _run_audit(config, brand_name, website_url, show_progress=not as_json)
        )
    except ValidationError as exc:
        raise click.BadParameter(exc.user_message) from exc
    except ConfigurationError as exc:
        logger.error("Audit could not start", exc_info=exc)
        raise click.ClickException(f"Configuration error: {exc}") from exc

    if audit is None:
        raise click.ClickException("Audit record disappeared before completion")

    if as_json:
        click.echo(format_json(audit))
    else:
        display_rich(audit, console)

    logger.info(
        "Audit finished",
        extra={"audit_id": audit.id, "status": audit.status.value, "mentions_found": audit.mentions_found},
    )
    if audit.status == AuditStatus.FAILED:
        ctx.exit(1)


if __name__ == "__main__":  # pragma: no cover
    cli()
