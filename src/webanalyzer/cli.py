"""Command-line interface for the website analyzer."""

import asyncio
import sys
import json
from typing import Optional

from webanalyzer.config import AnalyzerConfig
from webanalyzer.constants import DEFAULT_PAGE_SIZE, SORTABLE_COLUMNS
from webanalyzer.database import AbstractDatabase, get_db_client
from webanalyzer.dispatcher import AnalysisDispatcher
from webanalyzer.exceptions import WebAnalyzerError
from webanalyzer.logging_config import get_logger, setup_logging
from webanalyzer.models import AnalysisReport

logger = get_logger(__name__)


def _open_db(args) -> AbstractDatabase:
    db_url = getattr(args, "db", None)
    if db_url:
        return get_db_client(db_url=db_url)
    return get_db_client()


def _write_output(output: str, output_file: Optional[str]) -> None:
    if output_file:
        with open(output_file, "w") as f:
            f.write(output)
        print(f"Results written to {output_file}")
    else:
        print(output)


async def _async_analyze(db: AbstractDatabase, target_ids: list[int], config: AnalyzerConfig):
    """Start analysis for the targets and wait for every job.

    Args:
        db: Storage holding the targets
        target_ids: Targets to analyze
        config: Pipeline configuration

    Returns:
        Ids of the targets that were actually started
    """
    dispatcher = AnalysisDispatcher(db, config=config)
    handles = dispatcher.start_bulk(target_ids)
    try:
        await dispatcher.wait_all()
    except asyncio.CancelledError:
        await dispatcher.aclose()
        raise
    return [handle.target_id for handle in handles]


def print_report(report: AnalysisReport):
    """Print an analysis report in a formatted way.

    Args:
        report: AnalysisReport for one target
    """
    target = report.target
    print(f"\n{'=' * 60}")
    print(f"Analysis for: {target.url} (#{target.id})")
    print(f"{'=' * 60}")
    print(f"\nStatus: {target.status.value}")
    if target.error_message:
        print(f"Error: {target.error_message}")
    if target.title is not None:
        print(f"Title: {target.title}")
    if target.html_version is not None:
        print(f"HTML version: {target.html_version}")

    if report.headings:
        counts = ", ".join(f"{tag}={count}" for tag, count in report.headings.to_dict().items())
        print(f"\nHeadings: {counts}")

    if report.links:
        print(f"Internal links: {report.links.internal_links}")
        print(f"External links: {report.links.external_links}")
        print(f"Login form: {'yes' if report.links.has_login_form else 'no'}")

    if report.broken_links:
        print(f"\nInaccessible links ({report.inaccessible_links}):")
        for link in report.broken_links:
            print(f"  • {link.url} [{link.status_code} {link.status_text}]")

    print(f"\n{'=' * 60}\n")


def add_command(args):
    """Register one or more URLs for analysis."""
    db = _open_db(args)
    try:
        for url in args.urls:
            target = db.create_target(url, owner_id=args.owner)
            print(f"Added #{target.id}: {target.url}")
    finally:
        db.close()


def analyze_command(args):
    """Analyze one or more targets and wait for the results."""
    db = _open_db(args)
    try:
        started = asyncio.run(_async_analyze(db, args.ids, AnalyzerConfig.from_env()))
        skipped = [target_id for target_id in args.ids if target_id not in started]
        for target_id in skipped:
            print(f"Skipped #{target_id} (missing or already running)")
        for target_id in started:
            target = db.get_target(target_id)
            line = f"#{target_id} {target.url}: {target.status.value}"
            if target.error_message:
                line += f" ({target.error_message})"
            print(line)
    finally:
        db.close()


def stop_command(args):
    """Stop the analysis of a running target."""
    db = _open_db(args)
    try:
        dispatcher = AnalysisDispatcher(db)
        dispatcher.stop(args.id)
        print(f"Stopped analysis of #{args.id}")
    finally:
        db.close()


def show_command(args):
    """Show the latest results of a target."""
    db = _open_db(args)
    try:
        report = db.get_report(args.id)
    finally:
        db.close()

    if args.output == "json":
        _write_output(json.dumps(report.to_dict(), indent=2, default=str), args.output_file)
    else:
        print_report(report)


def list_command(args):
    """List registered targets."""
    db = _open_db(args)
    try:
        targets, total = db.list_targets(
            page=args.page,
            page_size=args.page_size,
            owner_id=args.owner,
            sort_by=args.sort_by,
            descending=not args.ascending,
        )
    finally:
        db.close()

    if args.output == "json":
        result = {
            "total": total,
            "page": args.page,
            "page_size": args.page_size,
            "websites": [target.to_dict() for target in targets],
        }
        _write_output(json.dumps(result, indent=2, default=str), args.output_file)
        return

    if not targets:
        print("No websites found")
        return
    for target in targets:
        title = f" - {target.title}" if target.title else ""
        print(f"#{target.id:<5} {target.status.value:<8} {target.url}{title}")
    print(f"\n{len(targets)} of {total} websites")


def delete_command(args):
    """Delete one or more targets."""
    db = _open_db(args)
    try:
        deleted = db.delete_targets(args.ids)
    finally:
        db.close()
    print(f"Deleted {deleted} website(s)")


def _add_output_args(parser):
    parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file (only for json format)",
    )


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        description="Website Analyzer - Analyze page structure and check link health"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Set logging verbosity (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console (default: LOG_FILE)",
    )
    parser.add_argument(
        "--db",
        help="Database URL (default: DATABASE_URL or sqlite:///website_analyzer.db)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    add_parser = subparsers.add_parser("add", help="Register URLs for analysis.")
    add_parser.add_argument("urls", nargs="+", help="URLs to register")
    add_parser.add_argument("--owner", type=int, help="Owner id to attach to the websites")
    add_parser.set_defaults(func=add_command)

    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyze one or more websites and wait for the results."
    )
    analyze_parser.add_argument("ids", nargs="+", type=int, help="Website ids")
    analyze_parser.set_defaults(func=analyze_command)

    stop_parser = subparsers.add_parser("stop", help="Stop a running analysis.")
    stop_parser.add_argument("id", type=int, help="Website id")
    stop_parser.set_defaults(func=stop_command)

    show_parser = subparsers.add_parser("show", help="Show the results for a website.")
    show_parser.add_argument("id", type=int, help="Website id")
    _add_output_args(show_parser)
    show_parser.set_defaults(func=show_command)

    list_parser = subparsers.add_parser("list", help="List websites.")
    list_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    list_parser.add_argument(
        "--page-size",
        type=int,
        default=DEFAULT_PAGE_SIZE,
        help=f"Websites per page (default: {DEFAULT_PAGE_SIZE})",
    )
    list_parser.add_argument(
        "--sort-by",
        choices=SORTABLE_COLUMNS,
        default="created_at",
        help="Sort column (default: created_at)",
    )
    list_parser.add_argument("--ascending", action="store_true", help="Sort ascending")
    list_parser.add_argument("--owner", type=int, help="Only websites of this owner")
    _add_output_args(list_parser)
    list_parser.set_defaults(func=list_command)

    delete_parser = subparsers.add_parser("delete", help="Delete websites.")
    delete_parser.add_argument("ids", nargs="+", type=int, help="Website ids")
    delete_parser.set_defaults(func=delete_command)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        args.func(args)
    except WebAnalyzerError as e:
        logger.debug(f"Command failed: {e}")
        print(f"Error: {e}")
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
