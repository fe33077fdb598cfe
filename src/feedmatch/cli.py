"""Command-line entry point: classify category ids, fetch posters, invalidate matches."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Sequence

import yaml
from rich.console import Console
from rich.table import Table

from .categories.resolver import UnifiedCategoryResolver
from .categories.unified import to_key, to_label, to_media_type
from .config import PROVIDER_NAMES, AppConfig, load_config
from .help_formatter import CommandHelp, RichArgumentParser
from .persistence import PosterMatchCache, ReleaseStore
from .posters import PosterFetchCoordinator, PosterMatchOrchestrator, PosterStorage
from .providers import build_providers
from .utils import env_bool, load_yaml_file, parse_int_list
from .validation import validate_config_data
from .version import __version__

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/config/feedmatch.yaml"

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_FETCH_FAILED = 2

_CONFIG_ENV = [
    ("CONFIG_PATH", f"Path to the YAML config (default {DEFAULT_CONFIG_PATH})"),
    ("VERBOSE", "Enable debug logging when set to true"),
]

CLASSIFY_HELP = CommandHelp(
    examples=[
        ("Resolve a C411 anime release", "feedmatch classify --source C411 5000 105000 5070"),
        ("Resolve with explicit std and spec ids", "feedmatch classify --source YGEGE --std 2000 --spec 102183 2000"),
    ],
    tips=["Ids may be given space or comma separated", "Source overrides from --config are merged with the built-in tables"],
)

FETCH_HELP = CommandHelp(
    examples=[
        ("Fetch posters for two releases", "feedmatch fetch --config feedmatch.yaml 42 43"),
        ("Ignore an existing poster file", "feedmatch fetch --force 42"),
    ],
    env_vars=_CONFIG_ENV,
    tips=["Exit status is 2 when at least one release ends without a poster"],
)

INVALIDATE_HELP = CommandHelp(
    examples=[
        ("Confirm the TMDB id of a release", "feedmatch invalidate 42 --provider tmdb --provider-id 603"),
    ],
    env_vars=_CONFIG_ENV,
    tips=["Changing the confirmed id drops the cached poster match for the release"],
)

VALIDATE_HELP = CommandHelp(
    examples=[("Check a config file", "feedmatch validate-config --config feedmatch.yaml")],
    env_vars=_CONFIG_ENV,
    tips=["Schema errors are listed with their config path and exit with code 1"],
)


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH)),
        help="Path to feedmatch YAML config",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = RichArgumentParser(prog="feedmatch", description="Indexer category resolution and poster matching.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    classify = subparsers.add_parser(
        "classify",
        help="Resolve raw category ids to a unified category",
        command_help=CLASSIFY_HELP,
    )
    classify.add_argument("--source", default="", help="Indexer source name (e.g. C411, YGEGE)")
    classify.add_argument("--std", type=int, default=None, help="Standard category id supplied by the indexer")
    classify.add_argument("--spec", type=int, default=None, help="Vendor category id supplied by the indexer")
    classify.add_argument("--config", type=Path, default=None, help="Optional config with source overrides")
    classify.add_argument("ids", nargs="*", help="All category ids attached to the release")
    classify.set_defaults(handler=_cmd_classify)

    fetch = subparsers.add_parser("fetch", help="Fetch posters for stored releases", command_help=FETCH_HELP)
    _add_config_argument(fetch)
    fetch.add_argument("--force", action="store_true", help="Match again even when a poster file exists")
    fetch.add_argument("release_ids", nargs="+", help="Release ids to fetch posters for")
    fetch.set_defaults(handler=_cmd_fetch)

    invalidate = subparsers.add_parser(
        "invalidate",
        help="Record a confirmed external id for a release",
        command_help=INVALIDATE_HELP,
    )
    _add_config_argument(invalidate)
    invalidate.add_argument("release_id", type=int, help="Release id")
    invalidate.add_argument("--provider", required=True, help="External provider (tmdb, tvdb, ...)")
    invalidate.add_argument("--provider-id", required=True, help="Id at the external provider")
    invalidate.add_argument("--title", default=None, help="External title")
    invalidate.add_argument("--overview", default=None, help="External overview")
    invalidate.set_defaults(handler=_cmd_invalidate)

    validate = subparsers.add_parser(
        "validate-config",
        help="Validate the config and show provider status",
        command_help=VALIDATE_HELP,
    )
    _add_config_argument(validate)
    validate.set_defaults(handler=_cmd_validate_config)

    return parser


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s\n%(message)s\n",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load(path: Path) -> AppConfig | None:
    try:
        return load_config(path)
    except Exception as exc:  # noqa: BLE001
        LOGGER.error("Failed to load config %s: %s", path, exc)
        return None


def _cmd_classify(args: argparse.Namespace, console: Console) -> int:
    overrides = {}
    if args.config is not None:
        config = _load(args.config)
        if config is None:
            return EXIT_CONFIG_ERROR
        overrides = config.source_overrides

    try:
        all_ids = parse_int_list(args.ids)
    except ValueError as exc:
        LOGGER.error("Category ids must be integers: %s", exc)
        return EXIT_CONFIG_ERROR

    resolution = UnifiedCategoryResolver(overrides).explain(args.source, args.std, args.spec, all_ids)
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Source", args.source or "-")
    table.add_row("Std id", str(resolution.std_id) if resolution.std_id is not None else "-")
    table.add_row("Spec id", str(resolution.spec_id) if resolution.spec_id is not None else "-")
    table.add_row("Mapped", resolution.from_map.value)
    table.add_row("Override table", resolution.override_source or "-")
    table.add_row("Category", resolution.category.value)
    table.add_row("Key", to_key(resolution.category))
    table.add_row("Label", to_label(resolution.category))
    table.add_row("Media type", to_media_type(resolution.category))
    console.print(table)
    return EXIT_OK


def _open_coordinator(config: AppConfig) -> tuple[PosterFetchCoordinator, list]:
    settings = config.settings
    cache = PosterMatchCache(settings.database_path)
    releases = ReleaseStore(settings.database_path, cache=cache)
    providers = build_providers(config)
    coordinator = PosterFetchCoordinator(
        releases,
        cache,
        PosterStorage(settings.poster_root),
        PosterMatchOrchestrator.from_providers(providers),
    )
    return coordinator, [providers, releases, cache]


def _cmd_fetch(args: argparse.Namespace, console: Console) -> int:
    config = _load(args.config)
    if config is None:
        return EXIT_CONFIG_ERROR
    try:
        release_ids = parse_int_list(args.release_ids)
    except ValueError as exc:
        LOGGER.error("Release ids must be integers: %s", exc)
        return EXIT_CONFIG_ERROR

    coordinator, resources = _open_coordinator(config)
    failed = 0
    try:
        table = Table(title="Poster fetch")
        table.add_column("Release", justify="right")
        table.add_column("Status", justify="right")
        table.add_column("Provider")
        table.add_column("File")
        table.add_column("Detail")
        for release_id in release_ids:
            outcome = coordinator.fetch_poster(release_id, skip_if_exists=not args.force)
            if not outcome.ok:
                failed += 1
            provider = f"{outcome.provider}:{outcome.provider_id}" if outcome.provider else "-"
            detail = "cached" if outcome.cached else (outcome.error or "")
            table.add_row(str(release_id), str(outcome.status_code), provider, outcome.poster_file or "-", detail)
        console.print(table)
    finally:
        for resource in resources:
            resource.close()
    return EXIT_FETCH_FAILED if failed else EXIT_OK


def _cmd_invalidate(args: argparse.Namespace, console: Console) -> int:
    config = _load(args.config)
    if config is None:
        return EXIT_CONFIG_ERROR

    path = config.settings.database_path
    cache = PosterMatchCache(path)
    releases = ReleaseStore(path, cache=cache)
    try:
        updated = releases.update_external_details(
            args.release_id,
            args.provider,
            args.provider_id,
            title=args.title,
            overview=args.overview,
        )
    finally:
        releases.close()
        cache.close()

    if not updated:
        console.print(f"Release {args.release_id} not found", style="red")
        return EXIT_FETCH_FAILED
    console.print(f"Release {args.release_id} linked to {args.provider}:{args.provider_id}")
    return EXIT_OK


def _cmd_validate_config(args: argparse.Namespace, console: Console) -> int:
    try:
        data = load_yaml_file(args.config)
    except (OSError, yaml.YAMLError) as exc:
        LOGGER.error("Failed to read config %s: %s", args.config, exc)
        return EXIT_CONFIG_ERROR

    report = validate_config_data(data)
    if report.issues:
        issues = Table(title=f"Validation issues ({args.config})")
        issues.add_column("Severity")
        issues.add_column("Path")
        issues.add_column("Message")
        for issue in report.issues:
            style = "red" if issue.severity == "error" else "yellow"
            issues.add_row(f"[{style}]{issue.severity}[/{style}]", issue.path, issue.message)
        console.print(issues)
    if not report.is_valid:
        return EXIT_CONFIG_ERROR

    config = _load(args.config)
    if config is None:
        return EXIT_CONFIG_ERROR

    table = Table(title=f"Providers ({args.config})")
    table.add_column("Provider")
    table.add_column("Enabled")
    table.add_column("Credentials")
    table.add_column("Language")
    for name in PROVIDER_NAMES:
        provider = config.provider(name)
        table.add_row(
            name,
            "yes" if provider.enabled else "no",
            "ok" if provider.has_credentials else "missing",
            provider.language,
        )
    console.print(table)
    console.print(f"Database: {config.settings.database_path}")
    console.print(f"Posters:  {config.settings.poster_root}")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose or bool(env_bool("VERBOSE")))
    return args.handler(args, Console())


if __name__ == "__main__":
    sys.exit(main())
