# =============================================================================
# provider_directory/cli/directory.py: Directory CLI
# =============================================================================
#
# Command-line front end for the provider directory. It plays the role the
# browser page played: build the application context once, load providers
# through the store, apply the user's filters and print the visible subset.
#
# Typical usage:
#   python -m provider_directory.cli list --category "Home Services"
#   python -m provider_directory.cli list --search plumb --json
#   python -m provider_directory.cli categories
#   python -m provider_directory.cli export -o providers.csv
#   python -m provider_directory.cli refresh
#   python -m provider_directory.cli watch --interval-ms 60000
#
# Logs always go to stderr so stdout carries only directory output; --quiet
# (implied by --json) raises the log level to WARNING.
# =============================================================================

"""Standalone CLI for browsing, exporting and refreshing the provider directory."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from provider_directory.config.loader import load_config, resolve_settings
from provider_directory.config.settings import Settings
from provider_directory.context import AppContext
from provider_directory.models.provider import ALL_CATEGORIES, DataSource, ProviderRecord
from provider_directory.services.csv_exporter import export_filename, to_csv
from provider_directory.utils.errors import ConfigurationError
from provider_directory.utils.github_urls import edit_url_for
from provider_directory.utils.logging import configure_logging

_NOTHING_LOADED = "No provider data could be loaded. Check SOURCE_URL and your connection."


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_provider(provider: ProviderRecord) -> str:
    """Format one provider as an indented text block."""
    lines = [f"{provider.company}  [{provider.category}]"]
    details = (
        ("Contact", provider.contact),
        ("Phone", provider.number),
        ("Email", provider.email),
        ("Location", provider.main_location),
        ("Specialty", provider.specialty),
        ("Service area", provider.service_area),
    )
    for label, value in details:
        if value:
            lines.append(f"    {label + ':':<14}{value}")
    if provider.testimonial:
        lines.append(f'    "{provider.testimonial}"')
    return "\n".join(lines)


def _format_text_output(ctx: AppContext) -> str:
    """Render the visible subset followed by a one-line summary."""
    visible = ctx.filter_engine.visible
    state = ctx.filter_engine.state
    blocks = [_format_provider(p) for p in visible] or ["No providers match the current filters."]

    source = ctx.store.last_source.value if ctx.store.last_source else "unknown"
    summary = f"{len(visible)} of {len(ctx.filter_engine.providers)} providers (source: {source}"
    if state.category != ALL_CATEGORIES:
        summary += f", category: {state.category}"
    if state.search_term:
        summary += f", search: {state.search_term!r}"
    summary += ")"
    return "\n\n".join(blocks) + "\n\n" + summary


def _format_json_output(providers: list[ProviderRecord]) -> str:
    return json.dumps([p.to_row() for p in providers], indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_list(args: argparse.Namespace, ctx: AppContext) -> int:
    await ctx.load(force_refresh=args.refresh)
    if ctx.store.last_source is DataSource.EMPTY:
        print(_NOTHING_LOADED, file=sys.stderr)
        return 1

    ctx.filter_engine.set_category(args.category)
    ctx.filter_engine.set_search_term(args.search)

    if args.json_output:
        print(_format_json_output(ctx.filter_engine.visible))
    else:
        print(_format_text_output(ctx))
    return 0


async def _handle_categories(args: argparse.Namespace, ctx: AppContext) -> int:
    await ctx.load()
    if ctx.store.last_source is DataSource.EMPTY:
        print(_NOTHING_LOADED, file=sys.stderr)
        return 1

    categories = ctx.filter_engine.categories()
    if args.json_output:
        print(json.dumps(categories, ensure_ascii=False))
    else:
        for category in categories:
            print(category)
    return 0


async def _handle_export(args: argparse.Namespace, ctx: AppContext) -> int:
    providers = await ctx.store.get_providers(force_refresh=args.refresh)
    if ctx.store.last_source is DataSource.EMPTY:
        print(_NOTHING_LOADED, file=sys.stderr)
        return 1

    output = Path(args.output or export_filename())
    output.write_text(to_csv(providers), encoding="utf-8")
    print(f"Exported {len(providers)} providers to {output}")
    return 0


async def _handle_refresh(args: argparse.Namespace, ctx: AppContext) -> int:
    providers = await ctx.load(force_refresh=True)
    source = ctx.store.last_source
    if source is DataSource.EMPTY:
        print(_NOTHING_LOADED, file=sys.stderr)
        return 1

    print(f"Refreshed {len(providers)} providers (source: {source.value})")
    edit_url = edit_url_for(ctx.settings.source_url)
    if edit_url:
        print(f"Edit the directory at: {edit_url}")
    if source is not DataSource.NETWORK:
        print("Warning: remote source unavailable, showing cached or fallback data.", file=sys.stderr)
    return 0


async def _handle_watch(args: argparse.Namespace, ctx: AppContext) -> int:
    """Load once, then keep refreshing on the configured interval until interrupted."""

    def _report(providers: list[ProviderRecord]) -> None:
        source = ctx.store.last_source.value if ctx.store.last_source else "unknown"
        print(f"Auto-refresh: {len(providers)} providers (source: {source})", flush=True)

    providers = await ctx.load()
    _report(providers)

    ctx.scheduler.register_listener(_report)
    ctx.scheduler.start(args.interval_ms)
    await asyncio.Event().wait()
    return 0


_HANDLERS = {
    "list": _handle_list,
    "categories": _handle_categories,
    "export": _handle_export,
    "refresh": _handle_refresh,
    "watch": _handle_watch,
}


async def _run(args: argparse.Namespace, ctx: AppContext) -> int:
    async with ctx:
        return await _HANDLERS[args.command](args, ctx)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the directory CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m provider_directory.cli",
        description="Browse, filter and export the service provider directory.",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="Path to the YAML config file (default: config/config.yaml)",
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true", help="Only log warnings and errors"
    )
    subparsers = parser.add_subparsers(dest="command", help="Directory commands")

    # -- list --
    list_parser = subparsers.add_parser("list", help="List providers, optionally filtered")
    list_parser.add_argument(
        "--category", default=ALL_CATEGORIES, help="Category to show (default: all)"
    )
    list_parser.add_argument("--search", default="", help="Case-insensitive search term")
    list_parser.add_argument(
        "--refresh", action="store_true", help="Bypass the cache and fetch from the source"
    )
    list_parser.add_argument(
        "--json", action="store_true", dest="json_output", help="Print providers as JSON"
    )

    # -- categories --
    categories_parser = subparsers.add_parser("categories", help="List provider categories")
    categories_parser.add_argument(
        "--json", action="store_true", dest="json_output", help="Print categories as JSON"
    )

    # -- export --
    export_parser = subparsers.add_parser("export", help="Export providers to a CSV file")
    export_parser.add_argument(
        "--output", "-o", default=None, help="Output file (default: providers-<date>.csv)"
    )
    export_parser.add_argument(
        "--refresh", action="store_true", help="Bypass the cache and fetch from the source"
    )

    # -- refresh --
    subparsers.add_parser(
        "refresh", help="Force a fetch, report the result and print the GitHub edit link"
    )

    # -- watch --
    watch_parser = subparsers.add_parser("watch", help="Keep refreshing on an interval")
    watch_parser.add_argument(
        "--interval-ms",
        type=int,
        default=None,
        dest="interval_ms",
        help="Refresh interval in milliseconds (default: AUTO_REFRESH_INTERVAL_MS)",
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    settings = Settings()
    try:
        settings = resolve_settings(load_config(args.config, settings), settings)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    quiet = args.quiet or getattr(args, "json_output", False)
    configure_logging(
        log_level="WARNING" if quiet else settings.log_level,
        json_output=settings.app_env == "production",
        stream=sys.stderr,
    )

    try:
        ctx = AppContext.build(settings=settings, config_path=args.config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(_run(args, ctx))
    except KeyboardInterrupt:
        return 0
