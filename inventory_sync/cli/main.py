# inventory_sync/cli/main.py
import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone

import click

from inventory_sync.core.config import get_settings
from inventory_sync.core.enums import PlatformName
from inventory_sync.core.logging_config import configure_logging
from inventory_sync.database import create_engine_from_url, create_tables as create_all_tables, get_session, get_session_factory
from inventory_sync.integrations.setup import build_adapter
from inventory_sync.services.history_ledger import HistoryLedger
from inventory_sync.services.label_generator import OpenAILabelGenerator
from inventory_sync.services.reconciliation_service import sync_inventory_items

logger = logging.getLogger(__name__)

PLATFORM_CHOICES = [p.slug for p in PlatformName]

# Credential options each platform understands
PLATFORM_OPTIONS = {
    "bigcommerce": ("store_hash", "client_id", "access_token"),
    "shopify": ("store_domain", "access_token"),
    "clover": ("merchant_id", "access_token", "environment"),
    "api": ("api_url", "api_key", "items_path"),
}


@click.group()
@click.option('--log-level', default=None, help='Overrides LOG_LEVEL')
def cli(log_level):
    """Inventory sync tools"""
    configure_logging(log_level)


@cli.command()
@click.option('--org-id', required=True, help='Organization the items belong to')
@click.option('--platform', type=click.Choice(PLATFORM_CHOICES), required=True, help='Platform to pull from')
@click.option('--source', default=None, help='Source tag (defaults to the platform name)')
@click.option('--enable-ai-labeling', is_flag=True, help='Ask the label generator for categories on new items')
@click.option('--timeout', type=float, default=None, help='Overall job timeout in seconds')
@click.option('--store-hash', default=None, help='BigCommerce store hash')
@click.option('--client-id', default=None, help='BigCommerce client id')
@click.option('--store-domain', default=None, help='Shopify store domain')
@click.option('--merchant-id', default=None, help='Clover merchant id')
@click.option('--environment', type=click.Choice(['us', 'eu']), default=None, help='Clover region')
@click.option('--access-token', default=None, help='Platform access token')
@click.option('--api-url', default=None, help='Generic JSON API endpoint')
@click.option('--api-key', default=None, help='Bearer token for the generic JSON API')
@click.option('--items-path', default=None, help='Dotted path to the items array in the API response')
def sync(org_id, platform, source, enable_ai_labeling, timeout, **credentials):
    """Pull a platform catalog and reconcile it into the inventory"""
    settings = get_settings()
    job_timeout = timeout or settings.SYNC_JOB_TIMEOUT_SECONDS

    start_time = datetime.now()
    logger.info(f"Starting {platform} sync for org {org_id} at {start_time}")

    try:
        response = asyncio.run(
            run_sync(org_id, platform, source, enable_ai_labeling, job_timeout, credentials)
        )
    except TimeoutError:
        logger.error(f"Sync for org {org_id} timed out after {job_timeout}s")
        raise click.ClickException(f"Sync timed out after {job_timeout}s; items already written are kept")
    except Exception as e:
        logger.exception("Error during sync")
        raise click.ClickException(f"Error during sync: {str(e)}")

    if response is None:
        click.echo("No items returned by the platform, nothing to reconcile")
        return

    click.echo(f"\nSync completed in {datetime.now() - start_time}")
    click.echo(response.summary)
    for error in response.results.errors:
        click.echo(f"  - {error}")

    if not response.success:
        raise click.exceptions.Exit(1)


async def run_sync(org_id, platform, source, enable_ai_labeling, job_timeout, credentials):
    options = {k: v for k, v in credentials.items() if k in PLATFORM_OPTIONS[platform]}
    adapter = build_adapter(platform, **options)
    engine = create_engine_from_url()
    try:
        async with asyncio.timeout(job_timeout):
            items = await adapter.fetch_catalog_items()
            if not items:
                logger.warning(f"No items returned by {platform} for org {org_id}")
                return None

            label_generator = OpenAILabelGenerator() if enable_ai_labeling else None
            return await sync_inventory_items(
                get_session_factory(engine),
                org_id,
                source or adapter.source,
                items,
                enable_ai_labeling=enable_ai_labeling,
                label_generator=label_generator,
            )
    finally:
        await engine.dispose()


@cli.command('create-tables')
def create_tables():
    """Create all database tables directly using SQLAlchemy"""

    async def _create_tables():
        engine = create_engine_from_url()
        try:
            await create_all_tables(engine)
        finally:
            await engine.dispose()
        click.echo("All tables created successfully!")

    asyncio.run(_create_tables())


@cli.command('validation-report')
@click.option('--org-id', required=True)
@click.option('--days', type=int, default=30, show_default=True, help='Look-back window')
def validation_report(org_id, days):
    """Print the Clover webhook/sync validation report as JSON"""

    async def _report():
        engine = create_engine_from_url()
        try:
            async with get_session(get_session_factory(engine)) as session:
                since = datetime.now(timezone.utc) - timedelta(days=days)
                return await HistoryLedger(session).validation_report(org_id, since=since)
        finally:
            await engine.dispose()

    report = asyncio.run(_report())
    click.echo(json.dumps(report.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    cli()
