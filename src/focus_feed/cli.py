"""CLI entry point for focus feed."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from focus_feed.adapters.config_source import StaticConfigSource
from focus_feed.adapters.sources import build_source_registry
from focus_feed.adapters.storage import InMemoryFeedStore
from focus_feed.aggregator import Aggregator
from focus_feed.ai_processor import AIProcessor
from focus_feed.config import Settings, get_settings
from focus_feed.core import ContentProcessor, FocusFeedError, ProfileFetchResult, SeenItemStore

app = typer.Typer(help="Aggregate and score tech content per focus profile.")

CONFIG_OPTION = typer.Option(Path("config.yaml"), "--config", "-c", help="Settings file")
DEBUG_OPTION = typer.Option(False, "--debug", help="Verbose logging")


def build_aggregator(settings: Settings) -> Aggregator:
    """Wire the aggregator from settings and the YAML configuration directory."""
    processing = settings.processing
    seen_store = None
    if settings.paths.seen_store:
        seen_store = SeenItemStore(settings.paths.seen_store, settings.paths.seen_retention_days)

    return Aggregator(
        config_source=StaticConfigSource.from_yaml(settings.sources_file, settings.profiles_dir),
        sources=build_source_registry(settings),
        content_processor=ContentProcessor(
            similarity_threshold=processing.similarity_threshold,
            min_content_length=processing.min_content_length,
            min_title_length=processing.min_title_length,
            insufficient_score=processing.insufficient_score,
        ),
        store=InMemoryFeedStore(),
        ai_processor=AIProcessor(settings) if settings.ai.enabled else None,
        seen_store=seen_store,
        source_timeout=settings.fetch.source_timeout,
    )


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_profile(result: ProfileFetchResult, show_items: int) -> None:
    print(f"\n[{result.profile_id}] {result.profile_name}")
    print(
        f"  sources ok: {result.successful_fetches}/{len(result.fetch_results)}"
        f"  items: {result.total_items} -> {result.processed_items}"
        f"  duplicates removed: {result.duplicates_removed}"
        f"  avg relevance: {result.avg_relevance_score:.3f}"
    )
    for error in result.errors:
        print(f"  ! {error}")

    for item in (result.processed_feed_items or [])[:show_items]:
        score = item.semantic_score if item.semantic_score is not None else item.relevance_score
        print(f"  {score or 0:.2f}  {item.title[:80]}")
        print(f"        {item.url}")
        if item.ai_summary:
            print(f"        {item.ai_summary.summary[:160]}")


@app.command()
def run(
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Only this profile"),
    ai: bool = typer.Option(False, "--ai", help="Enhance items with the AI provider"),
    show_items: int = typer.Option(10, "--show-items", help="Top items to print per profile"),
    config: Path = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Fetch all active profiles, or one profile, and print the results."""
    _setup_logging(debug)
    try:
        asyncio.run(async_run(get_settings(config), profile, ai, show_items))
    except FocusFeedError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)


async def async_run(settings: Settings, profile_id: Optional[str], ai: bool, show_items: int) -> None:
    aggregator = build_aggregator(settings)
    include_items = show_items > 0

    if profile_id:
        profile = await aggregator.get_profile(profile_id)
        results = [await aggregator.fetch_from_profile(profile, include_items, ai)]
    else:
        run_result = await aggregator.fetch_from_all_active_profiles(include_items, ai)
        results = run_result.profiles
        print(
            f"Run finished in {run_result.duration:.1f}s: "
            f"{run_result.total_fetches} fetches, {run_result.total_items} items, "
            f"{run_result.total_errors} errors"
        )

    for result in results:
        _print_profile(result, show_items)

    if ai and aggregator.ai_processor is not None:
        stats = aggregator.ai_processor.get_stats()
        print(f"\nAI provider: {stats['active_provider']} ({stats['total_tokens']} tokens)")


@app.command()
def status(config: Path = CONFIG_OPTION, debug: bool = DEBUG_OPTION) -> None:
    """Show configuration summary and credentials."""
    _setup_logging(debug)
    settings = get_settings(config)
    try:
        aggregator = build_aggregator(settings)
    except FocusFeedError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)

    result = asyncio.run(aggregator.get_status())
    summary = result.config
    print(f"Config: {summary.location}")
    print(f"  sources: {summary.enabled_sources_count}/{summary.sources_count} enabled")
    print(f"  profiles: {summary.active_profiles_count}/{summary.profiles_count} active")
    print(f"  ANTHROPIC_API_KEY: {'set' if settings.anthropic_api_key else 'missing (mock AI provider)'}")
    print(f"  GITHUB_TOKEN: {'set' if settings.github_token else 'missing (lower rate limit)'}")


@app.command("test-source")
def test_source(
    source_id: str = typer.Argument(..., help="Source id from sources.yaml"),
    config: Path = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Fetch a single source and report the outcome."""
    _setup_logging(debug)
    try:
        aggregator = build_aggregator(get_settings(config))
        result = asyncio.run(aggregator.test_source(source_id))
    except FocusFeedError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)

    if result.success:
        print(f"{source_id}: ok, {result.item_count} items ({result.new_item_count} new) in {result.duration:.2f}s")
    else:
        print(f"{source_id}: failed after {result.duration:.2f}s: {result.error}")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
