"""Command-line interface for the GitHub Project Exporter.

Usage:
    github-project-exporter serve --github.token ghp_... --github.organization acme
    github-project-exporter scrape --github.repository acme/widgets
    github-project-exporter version

Flags override environment settings (GITHUB_TOKEN, GITHUB_ORGANIZATIONS, ...).
"""

import argparse
import logging
import sys
from typing import Optional

from prometheus_client import CollectorRegistry, generate_latest

from project_exporter import __commit__, __version__
from project_exporter.config import ConfigurationError, settings, split_comma_separated
from project_exporter.exporter import Exporter
from project_exporter.server import serve

logger = logging.getLogger(__name__)


def _add_github_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--github.token",
        dest="github_token",
        default=None,
        help="GitHub access token (default: $GITHUB_TOKEN)",
    )
    parser.add_argument(
        "--github.organization",
        dest="github_organizations",
        action="append",
        default=None,
        help="Organization name; repeatable or comma-separated",
    )
    parser.add_argument(
        "--github.repository",
        dest="github_repositories",
        action="append",
        default=None,
        help="Repository name (owner/name); repeatable or comma-separated",
    )
    parser.add_argument(
        "--github.cache-ttl",
        dest="github_cache_ttl",
        type=int,
        default=None,
        help=f"Cache TTL of GitHub API response in seconds (default: {settings.github_cache_ttl})",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured ArgumentParser with all commands and arguments.
    """
    parser = argparse.ArgumentParser(
        prog="github-project-exporter",
        description="Exporter for GitHub Project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  github-project-exporter serve --github.organization acme
  github-project-exporter serve --github.repository acme/widgets --github.cache-ttl 300
  github-project-exporter scrape --github.organization acme
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve metrics over HTTP",
        description="Expose project, column and card counts for Prometheus",
    )
    _add_github_arguments(serve_parser)
    serve_parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        default=settings.web_listen_address,
        help=f"Address to listen on for web interface and telemetry (default: {settings.web_listen_address})",
    )
    serve_parser.add_argument(
        "--web.telemetry-path",
        dest="telemetry_path",
        default=settings.web_telemetry_path,
        help=f"Path under which to expose metrics (default: {settings.web_telemetry_path})",
    )

    scrape_parser = subparsers.add_parser(
        "scrape",
        help="Run one scrape and print the metrics",
        description="Collect once and print the Prometheus exposition text",
    )
    _add_github_arguments(scrape_parser)

    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    return parser


def _flatten(values: list[str] | None) -> list[str] | None:
    """Merge repeated, comma-separated flag values; None when the flag is absent."""
    if values is None:
        return None
    return [item for value in values for item in split_comma_separated(value)]


def build_exporter(args: argparse.Namespace) -> Exporter:
    """Build the exporter from settings, overridden by command-line flags.

    Raises:
        ConfigurationError: If the resulting configuration is invalid
    """
    return Exporter.from_settings(
        settings,
        token=args.github_token,
        organizations=_flatten(args.github_organizations),
        repositories=_flatten(args.github_repositories),
        cache_ttl=args.github_cache_ttl,
    )


def cmd_serve(args: argparse.Namespace) -> int:
    """Execute the serve command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        exporter = build_exporter(args)
        if not args.telemetry_path.startswith("/"):
            raise ConfigurationError(f"invalid telemetry path: {args.telemetry_path}")

        registry = CollectorRegistry()
        registry.register(exporter)
        serve(registry, listen_address=args.listen_address, telemetry_path=args.telemetry_path)
        return 0

    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.error("Server failed: %s", e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_scrape(args: argparse.Namespace) -> int:
    """Execute the scrape command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        registry = CollectorRegistry()
        registry.register(build_exporter(args))
        sys.stdout.write(generate_latest(registry).decode("utf-8"))
        return 0

    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130


def cmd_version(args: argparse.Namespace) -> int:
    """Execute the version command."""
    print(f"Version: {__version__} ({__commit__})")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        return cmd_serve(args)
    elif args.command == "scrape":
        return cmd_scrape(args)
    elif args.command == "version":
        return cmd_version(args)
    else:
        parser.print_help()
        return 0


def cli_entry() -> None:
    """Console script entry point for setuptools."""
    sys.exit(main())


if __name__ == "__main__":
    cli_entry()
