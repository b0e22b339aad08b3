"""
Command-line interface for trendflow.

Runs the ingestion-to-topic pipeline once (for cron or a scheduler),
initializes the database and manages quota-constrained providers.

Usage:
    trendflow run                       # All sources, full pipeline
    trendflow run --source reddit,v2ex  # Selected sources
    trendflow run --mock                # Offline fixtures instead of live sources
    trendflow list-sources              # Sources and recommended cron cadence
    trendflow init-db                   # Create tables
    trendflow providers status          # Provider quota report
"""

import asyncio
import sys

import click

from trendflow.config.settings import get_settings
from trendflow.observability.logging import setup_logging
from trendflow.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """TrendFlow - discussion ingestion, clustering and direction synthesis."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command()
@click.option(
    "--source",
    "sources",
    multiple=True,
    help="Source to ingest (repeatable or comma-separated; default all)",
)
@click.option("--parallel", default=None, type=click.IntRange(min=1), help="Direction analysis workers")
@click.option("--mock", is_flag=True, help="Ingest offline mock records instead of live sources")
@click.option("--metrics-port", default=None, type=int, help="Expose Prometheus metrics on this port")
def run(sources: tuple[str, ...], parallel: int | None, mock: bool, metrics_port: int | None) -> None:
    """Run ingest, embed, cluster and synthesize once."""
    from trendflow.ingestion.registry import resolve_sources
    from trendflow.pipeline.driver import PipelineDriver
    from trendflow.providers.config import ProvidersConfig
    from trendflow.providers.manager import ProviderManager
    from trendflow.providers.store import ProviderStore
    from trendflow.storage.database import Database

    selected = ["mock"] if mock else list(sources) or None
    try:
        resolve_sources(selected)
    except KeyError as e:
        raise click.BadParameter(str(e.args[0]), param_hint="--source") from None

    if metrics_port:
        get_metrics().start_server(metrics_port)

    async def execute():
        settings = get_settings()
        providers_config = ProvidersConfig()
        async with Database() as db, ProviderStore(
            str(settings.redis_url),
            usage_ttl_seconds=providers_config.usage_ttl_seconds,
        ) as store:
            manager = ProviderManager(store, config=providers_config)
            driver = PipelineDriver.from_database(db, provider_manager=manager)
            try:
                return await driver.run(selected, parallel=parallel)
            finally:
                await driver.close()

    report = asyncio.run(execute())

    click.echo("\nPipeline Results:")
    click.echo("-" * 40)
    for key, value in report.summary().items():
        click.echo(f"  {key}: {value}")
    for stage, reason in report.skipped.items():
        click.echo(click.style(f"  - {stage} skipped: {reason}", fg="yellow"))
    for stage, error in report.failed.items():
        click.echo(click.style(f"  ✗ {stage} failed: {error}", fg="red"))
    click.echo("-" * 40)


@main.command("list-sources")
def list_sources() -> None:
    """List registered sources and their recommended schedules."""
    from trendflow.ingestion.registry import SOURCES

    click.echo("\nSources:")
    click.echo("-" * 40)
    for definition in SOURCES.values():
        quota = f" (quota: {definition.quota_platform})" if definition.quota_constrained else ""
        click.echo(f"  {definition.name:<12} {definition.recommended_interval:<14} {definition.display_name}{quota}")


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from trendflow.storage.database import Database
    from trendflow.storage.schema import create_tables

    async def execute():
        async with Database() as db:
            await create_tables(db)

        click.echo("Database initialized successfully")

    asyncio.run(execute())


@main.group()
def providers() -> None:
    """Manage quota-constrained API providers."""


def _provider_manager():
    from trendflow.providers.config import ProvidersConfig
    from trendflow.providers.manager import ProviderManager
    from trendflow.providers.store import ProviderStore

    config = ProvidersConfig()
    store = ProviderStore(str(get_settings().redis_url), usage_ttl_seconds=config.usage_ttl_seconds)
    return ProviderManager(store, config=config)


@providers.command("status")
@click.option("--platform", default="twitter", show_default=True)
def providers_status(platform: str) -> None:
    """Show per-provider usage for the current month."""

    async def execute():
        manager = _provider_manager()
        async with manager.store:
            return await manager.get_status(platform), await manager.get_total_quota(platform)

    statuses, total = asyncio.run(execute())

    if not statuses:
        click.echo(f"No {platform} providers configured")
        return

    click.echo(f"\n{platform} providers:")
    click.echo("-" * 60)
    for status in statuses:
        color = "green" if status.enabled and status.remaining > 0 else "red"
        state = "enabled" if status.enabled else "disabled"
        click.echo(
            click.style(
                f"  {status.name} [{status.id}] {state}: "
                f"{status.used}/{status.monthly_quota} ({status.usage_percent}%), "
                f"{status.remaining} remaining",
                fg=color,
            )
        )
    click.echo("-" * 60)
    click.echo(f"  Total: {total.used}/{total.total}, {total.remaining} remaining")


@providers.command("seed")
@click.option("--platform", default="twitter", show_default=True)
@click.option("--keys", default=None, help="Comma-separated specs: key, key@template, key@host:search:comments")
@click.option("--quota", default=None, type=int, help="Monthly quota per provider")
def providers_seed(platform: str, keys: str | None, quota: int | None) -> None:
    """Create providers from API key specs (PROVIDERS_TWITTER_KEYS by default)."""
    from trendflow.providers.seed import parse_provider_specs, seed_providers

    manager = _provider_manager()
    config = manager.config
    specs = parse_provider_specs(keys or (config.twitter_keys if platform == "twitter" else None), platform)
    if not specs:
        click.echo(click.style("No provider keys given (use --keys or PROVIDERS_TWITTER_KEYS)", fg="red"))
        sys.exit(1)

    async def execute():
        async with manager.store as store:
            return await seed_providers(
                store, platform, specs, quota if quota is not None else config.default_monthly_quota
            )

    created = asyncio.run(execute())
    for provider in created:
        click.echo(f"  ✓ {provider.name} [{provider.id}] {provider.host} quota={provider.monthly_quota}")
    click.echo(f"Seeded {len(created)} {platform} provider(s)")


def _set_enabled(platform: str, provider_id: str, enabled: bool) -> None:
    async def execute():
        manager = _provider_manager()
        async with manager.store:
            return await manager.set_enabled(platform, provider_id, enabled)

    provider = asyncio.run(execute())
    if provider is None:
        click.echo(click.style(f"Provider {provider_id} not found", fg="red"))
        sys.exit(1)
    click.echo(f"{provider.name} {'enabled' if enabled else 'disabled'}")


@providers.command("enable")
@click.option("--platform", default="twitter", show_default=True)
@click.argument("provider_id")
def providers_enable(platform: str, provider_id: str) -> None:
    """Enable a provider."""
    _set_enabled(platform, provider_id, True)


@providers.command("disable")
@click.option("--platform", default="twitter", show_default=True)
@click.argument("provider_id")
def providers_disable(platform: str, provider_id: str) -> None:
    """Disable a provider."""
    _set_enabled(platform, provider_id, False)


if __name__ == "__main__":
    main()
