"""CLI entry point for CloudSift."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from cloudsift.models.query import AbstractQuery, Conjunction, FilterCondition, FilterGroup, SortSpec

if TYPE_CHECKING:
    from cloudsift.config.settings import Settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cloudsift",
        description="CloudSift — Search abstraction adapter for Amazon CloudSearch",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"CloudSift {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("compile", "Print the compiled query string without sending it"),
        ("search", "Run a query and print the result as JSON"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("index", help="Index machine name")
        sub.add_argument("keywords", nargs="?", default=None, help="Free-text keywords")
        sub.add_argument(
            "--filter",
            "-f",
            action="append",
            default=[],
            metavar="FIELD=VALUE",
            help="Equality filter; repeat to AND several",
        )
        sub.add_argument(
            "--sort",
            "-s",
            action="append",
            default=[],
            metavar="FIELD[:asc|desc]",
            help="Sort criterion; 'relevance' and 'id' are reserved",
        )
        sub.add_argument("--facet", action="append", default=[], help="Field to compute facets for")
        sub.add_argument("--limit", "-n", type=int, default=10, help="Maximum number of hits")
        sub.add_argument("--offset", type=int, default=0, help="Index of the first hit")
    return parser


def parse_query(args: argparse.Namespace) -> AbstractQuery:
    """Build an ``AbstractQuery`` from parsed command-line arguments."""
    conditions: list[FilterGroup | FilterCondition] = []
    for item in args.filter:
        field, sep, value = item.partition("=")
        if not sep or not field:
            raise ValueError(f"Invalid filter '{item}', expected FIELD=VALUE")
        conditions.append(FilterCondition(field=field, value=value))

    sorts: list[SortSpec] = []
    for item in args.sort:
        field, _, direction = item.partition(":")
        sorts.append(SortSpec(field=field, direction=direction or "asc"))

    return AbstractQuery(
        keywords=args.keywords,
        filter_tree=FilterGroup(conjunction=Conjunction.AND, children=conditions) if conditions else None,
        sort=sorts,
        facets=args.facet,
        offset=args.offset,
        limit=args.limit,
    )


async def _run(command: str, index: str, query: AbstractQuery, settings: Settings) -> str:
    from cloudsift.adapters.cloudsearch.backend import CloudSearchBackend

    backend = CloudSearchBackend(settings)
    if command == "compile":
        await backend.store.initialize()
        return await backend.compile_query(index, query)

    await backend.initialize()
    try:
        result = await backend.search(index, query)
    finally:
        await backend.shutdown()
    return result.model_dump_json(indent=2)


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    from cloudsift.adapters.base.exceptions import CloudSearchError
    from cloudsift.config.settings import Settings
    from cloudsift.observability.logging import setup_logging

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    if args.log_level:
        settings.observability.log_level = args.log_level
    ns = settings.namespace
    setup_logging(
        settings.observability,
        command=args.command,
        index=args.index,
        site_id=ns.site_id if ns.shared else None,
    )

    try:
        query = parse_query(args)
        output = asyncio.run(_run(args.command, args.index, query, settings))
    except (ValueError, CloudSearchError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(output)


def _get_version() -> str:
    """Get the package version."""
    try:
        from cloudsift import __version__

        return __version__
    except ImportError:
        return "unknown"


if __name__ == "__main__":
    main()
