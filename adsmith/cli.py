"""Click CLI entry point for adsmith."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from adsmith import workflows
from adsmith.config import Settings
from adsmith.logging import configure_logging
from adsmith.models.base import Failure
from adsmith.services import Services

if TYPE_CHECKING:
    from pydantic import BaseModel

    from adsmith.models.creative import ClipMediaResult, CreativeOutput


def _emit(result: BaseModel) -> None:
    """Print a result as JSON; exit 1 if it is a failure."""
    click.echo(result.model_dump_json(indent=2))
    if getattr(result, "success", True) is False:
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """adsmith: product research to finished video ads."""
    ctx.ensure_object(dict)
    settings = Settings()
    log_level = "DEBUG" if verbose else settings.log_level
    configure_logging(log_level=log_level, log_format=settings.log_format)
    ctx.obj["services"] = Services(settings)


@cli.command()
@click.argument("url")
@click.option("--research", is_flag=True, help="Run market research on the scraped product")
@click.pass_context
def scrape(ctx: click.Context, url: str, research: bool) -> None:
    """Scrape a product page."""
    services = ctx.obj["services"]
    _emit(asyncio.run(workflows.scrape_product_url(url, research, services=services)))


@cli.command("research")
@click.argument("product_name")
@click.option("--brand", default=None, help="Brand of the product")
@click.option("--category", default=None, help="Product category, e.g. 'running shoes'")
@click.pass_context
def research_cmd(
    ctx: click.Context, product_name: str, brand: str | None, category: str | None
) -> None:
    """Search-based market research for a product."""
    services = ctx.obj["services"]
    _emit(
        asyncio.run(
            workflows.refresh_product_research(product_name, brand, category, services=services)
        )
    )


@cli.command("ads")
@click.argument("product_name")
@click.option("--brand", default="", help="Brand of the product")
@click.option("--category", default="", help="Product category")
@click.pass_context
def ads_cmd(ctx: click.Context, product_name: str, brand: str, category: str) -> None:
    """Summarise competitor ads from ad-library searches."""
    services = ctx.obj["services"]
    _emit(
        asyncio.run(
            workflows.analyze_ad_intelligence(product_name, brand, category, services=services)
        )
    )


async def _storyboard_for(url: str, services: Services) -> CreativeOutput | Failure:
    scraped = await workflows.scrape_product_url(url, True, services=services)
    if isinstance(scraped, Failure):
        return scraped
    return await workflows.generate_storyboards(
        scraped.data, scraped.research, services=services
    )


@cli.command()
@click.argument("url")
@click.pass_context
def storyboard(ctx: click.Context, url: str) -> None:
    """Scrape, research, and write a four-scene storyboard."""
    _emit(asyncio.run(_storyboard_for(url, ctx.obj["services"])))


@cli.command()
@click.argument("url")
@click.pass_context
def render(ctx: click.Context, url: str) -> None:
    """Scrape, research, storyboard, and publish the finished ad video."""
    services = ctx.obj["services"]

    async def _run() -> ClipMediaResult:
        creative = await _storyboard_for(url, services)
        if isinstance(creative, Failure):
            return creative
        return await workflows.generate_clip_media(creative.clips, services=services)

    _emit(asyncio.run(_run()))


@cli.command()
@click.argument("product_name")
@click.option("--category", required=True, help="Product category")
@click.option("--brand", default=None, help="Brand of the product")
@click.pass_context
def influencers(ctx: click.Context, product_name: str, category: str, brand: str | None) -> None:
    """Find influencers who could promote a product."""
    services = ctx.obj["services"]
    _emit(
        asyncio.run(workflows.find_influencers(product_name, category, brand, services=services))
    )
