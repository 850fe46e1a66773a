"""Command-line interface for firstlink."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .core.interrupts import cancel_on_interrupt
from .core.traverser import Traverser
from .exceptions import FirstLinkError
from .logging_config import setup_logging
from .models.config import FirstLinkConfig, ProfileName
from .models.events import EventType, Outcome, TraversalResult


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="firstlink",
        description="Follow the first link of each article until the article matches a target",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Any article with "Car" in its title is a target, start at Vehicle
  firstlink Car Vehicle

  # Exact target
  firstlink --exact Philosophy "Ancient Greece"

  # Older skins keep the article in #bodyContent
  firstlink --profile body-content Philosophy Vehicle

  # First unvisited link anywhere on the page
  firstlink --profile loose Philosophy Vehicle

Press Ctrl-C at any time to stop and print the trip so far.
        """,
    )

    parser.add_argument(
        "target",
        nargs="?",
        help="Regular expression matched against article titles",
    )
    parser.add_argument(
        "start",
        nargs="?",
        help="Title of the article to start from",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Profile
    parser.add_argument(
        "--profile",
        "-p",
        choices=[profile.value for profile in ProfileName],
        default=ProfileName.CUSTOM.value,
        help="Preset profile (default: custom)",
    )

    # Corpus settings
    corpus_group = parser.add_argument_group("corpus settings")
    corpus_group.add_argument(
        "--base-url",
        type=str,
        default=None,
        metavar="URL",
        help="Base URL of the corpus (default: https://en.wikipedia.org/wiki/)",
    )
    corpus_group.add_argument(
        "--container",
        type=str,
        default=None,
        metavar="ID",
        help="id of the element holding the article text (default: mw-content-text)",
    )
    corpus_group.add_argument(
        "--no-container",
        action="store_true",
        help="Look for links in the whole document",
    )
    corpus_group.add_argument(
        "--block-tag",
        type=str,
        default=None,
        metavar="TAG",
        help="Text-block tag links must sit in (default: p)",
    )
    corpus_group.add_argument(
        "--any-block",
        action="store_true",
        help="Accept links anywhere in the container",
    )

    # Traversal settings
    traversal_group = parser.add_argument_group("traversal settings")
    traversal_group.add_argument(
        "--exact",
        action="store_true",
        help="Treat TARGET as an exact article title instead of a pattern",
    )
    traversal_group.add_argument(
        "--permissive",
        action="store_true",
        help="Follow any unvisited link, not just in-corpus articles",
    )
    traversal_group.add_argument(
        "--parser",
        choices=["stream", "soup"],
        default=None,
        help="HTML scanning strategy (default: stream)",
    )

    # Network settings
    network_group = parser.add_argument_group("network settings")
    network_group.add_argument(
        "--rate-limit",
        "-r",
        type=float,
        default=None,
        help="Seconds between requests",
    )
    network_group.add_argument(
        "--timeout",
        type=int,
        default=None,
        metavar="SECONDS",
        help="Read timeout per request",
    )
    network_group.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="Retry attempts when a request fails (default: 0)",
    )
    network_group.add_argument(
        "--user-agent",
        type=str,
        help="Custom User-Agent string",
    )
    network_group.add_argument(
        "--proxy",
        type=str,
        metavar="URL",
        help="Proxy URL",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--log-file",
        type=Path,
        default=None,
        metavar="FILE",
        help="Also write logs to FILE",
    )
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    output_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only print the report",
    )

    return parser


def build_config(args: argparse.Namespace) -> FirstLinkConfig:
    """Build a FirstLinkConfig from parsed arguments."""
    config_kwargs: dict = {
        "target": args.target,
        "start": args.start,
        "profile": ProfileName(args.profile),
    }

    # Corpus settings
    corpus_kwargs: dict = {}
    if args.base_url:
        corpus_kwargs["base_url"] = args.base_url
    if args.no_container:
        corpus_kwargs["container_key"] = None
    elif args.container:
        corpus_kwargs["container_key"] = args.container
    if args.any_block:
        corpus_kwargs["block_tag"] = None
    elif args.block_tag:
        corpus_kwargs["block_tag"] = args.block_tag
    if corpus_kwargs:
        config_kwargs["corpus"] = corpus_kwargs

    # Traversal settings
    traversal_kwargs: dict = {}
    if args.exact:
        traversal_kwargs["target_mode"] = "exact"
    if args.permissive:
        traversal_kwargs["policy"] = "permissive"
    if args.parser:
        traversal_kwargs["parser"] = args.parser
    if traversal_kwargs:
        config_kwargs["traversal"] = traversal_kwargs

    # Network settings
    network_kwargs: dict = {}
    if args.rate_limit is not None:
        network_kwargs["rate_limit"] = args.rate_limit
    if args.timeout is not None:
        network_kwargs["read_timeout"] = args.timeout
    if args.max_retries is not None:
        network_kwargs["max_retries"] = args.max_retries
    if args.user_agent:
        network_kwargs["user_agent"] = args.user_agent
    if args.proxy:
        network_kwargs["proxy"] = args.proxy
    if network_kwargs:
        config_kwargs["network"] = network_kwargs

    # Log level
    if args.verbose:
        config_kwargs["log_level"] = "DEBUG"
    elif args.quiet:
        config_kwargs["log_level"] = "ERROR"
    else:
        config_kwargs["log_level"] = "WARNING"
    if args.log_file:
        config_kwargs["log_file"] = args.log_file

    return FirstLinkConfig(**config_kwargs)


def print_report(console: Console, result: TraversalResult, config: FirstLinkConfig) -> None:
    """Print the path as offset: title lines, followed by a summary."""
    for offset, node in enumerate(result.path):
        console.print(f"{offset}: {escape(config.strip_base(node.url))}", highlight=False)

    if result.outcome == Outcome.MATCHED:
        console.print(f"[green]Found match, took {result.follow_count} follows[/green]")
    elif result.outcome == Outcome.CANCELLED:
        console.print(f"[yellow]Interrupted after {result.follow_count} follows[/yellow]")


def run_traversal(args: argparse.Namespace) -> int:
    """Run a traversal with given arguments."""
    console = Console()

    try:
        config = build_config(args)
    except Exception as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return 1

    setup_logging(
        level=config.log_level,
        log_file=str(config.log_file) if config.log_file else None,
    )

    try:
        traverser = Traverser(config)
    except FirstLinkError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return 1

    async def run() -> int:
        if not args.quiet:
            console.print(f"[bold blue]firstlink[/bold blue] v{__version__}")
            console.print(f"Start: {escape(config.start_url)}")
            console.print(f"Target: {escape(config.target)}")
            console.print()

        try:
            async with traverser:
                with cancel_on_interrupt(traverser):
                    if args.quiet:
                        async for _ in traverser.run():
                            pass
                    else:
                        with Progress(
                            SpinnerColumn(),
                            TextColumn("[progress.description]{task.description}"),
                            console=console,
                            transient=True,
                        ) as progress:
                            task = progress.add_task("Starting...", total=None)

                            async for event in traverser.run():
                                if event.type == EventType.LINK_FOLLOWED:
                                    progress.update(
                                        task,
                                        description=f"[cyan]Have followed {event.follow_count} links",
                                    )
                                elif event.type == EventType.BACKTRACKED and args.verbose:
                                    console.print(f"[yellow]Backtracked to[/yellow] {escape(event.url or '')}")

        except FirstLinkError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            if traverser.result is not None:
                print_report(console, traverser.result, config)
            return 1

        except Exception as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            if args.verbose:
                import traceback

                traceback.print_exc()
            return 1

        assert traverser.result is not None
        print_report(console, traverser.result, config)

        if not args.quiet:
            stats = traverser.stats
            console.print()
            console.print("[bold]Results:[/bold]")
            console.print(f"  Pages fetched: {stats.pages_fetched}")
            console.print(f"  Dead ends: {stats.dead_ends}")
            console.print(f"  Backtracks: {stats.backtracks}")
            console.print(f"  Duration: {stats.duration_seconds:.1f}s")

        return 0

    return asyncio.run(run())


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.target or not args.start:
        parser.print_usage()
        print("Needs a target pattern and a start article to start crawling")
        return 0

    return run_traversal(args)


if __name__ == "__main__":
    sys.exit(main())
