#!/usr/bin/env python3
"""
Command-Line Interface for the CTMS Platform Client
===================================================
Every command runs the same session around its own work:

    authenticate -> resolve the resource in the registry -> act -> print
    -> fetch the current token -> log out

Any failure logs the reason, cancels the keep-alive task and exits with
status 1.

All configuration flows through ``PlatformConfig``; credentials come from
``--username``/``--password``, ``CTMS_USERNAME``/``CTMS_PASSWORD`` or an
interactive prompt.

Run with: python -m ctms_client --host <host> <command> [args]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file (host, credentials) before anything else
_env_path = Path(__file__).resolve().parent.parent / '.env'
if _env_path.exists():
    load_dotenv(_env_path)
else:
    load_dotenv()  # tries CWD

from .auth import AuthSessionManager, Credentials, resolve_credentials
from .errors import PlatformError
from .folders import LOCATIONS_RESOURCE, FolderTraversal, default_locations_template
from .formatting import format_asset_pages, format_folder_tree, format_process_pages, format_registry
from .paging import PageWalker
from .processes import (
    ORCHESTRATION_SERVICE_TYPE,
    PROCESS_QUERY_RESOURCE,
    PROCESS_RESOURCE,
    build_process_description,
    default_process_query_template,
    default_process_template,
    query_processes,
    start_process,
)
from .registry import RegistryResolver
from .run_config import PlatformConfig
from .search import (
    SEARCHES_RESOURCE,
    SIMPLE_SEARCH_RESOURCE,
    advanced_search,
    default_searches_template,
    default_simple_search_template,
    load_search_description,
    simple_search,
)
from .transport import RequestContext, Transport

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S'
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
# Each command receives the parsed args, the config, the session transport
# and the authenticated context, and returns the text to print.

def _resolve_first(transport, context, config, candidates, resource_name, default_template) -> str:
    resolver = RegistryResolver(transport)
    templates = resolver.resolve(
        context, candidates, config.registry_version, resource_name, default_template,
    )
    return templates[0]


def cmd_registry(args, config: PlatformConfig, transport: Transport, context: RequestContext) -> str:
    resolver = RegistryResolver(transport)
    return format_registry(resolver.list_resources(context, config.registry_version))


def cmd_simple_search(args, config: PlatformConfig, transport: Transport, context: RequestContext) -> str:
    template = _resolve_first(
        transport, context, config, [args.service_type], SIMPLE_SEARCH_RESOURCE,
        default_simple_search_template(config.host, args.service_type, args.service_version, args.realm),
    )
    pages = simple_search(PageWalker(transport), context, template, args.expression)
    return format_asset_pages(pages, f"search expression: '{args.expression}'")


def cmd_advanced_search(args, config: PlatformConfig, transport: Transport, context: RequestContext) -> str:
    description = load_search_description(args.description_file)
    searches_url = _resolve_first(
        transport, context, config, [args.service_type], SEARCHES_RESOURCE,
        default_searches_template(config.host, args.service_type, args.service_version, args.realm),
    )
    pages = advanced_search(PageWalker(transport), context, searches_url, description)
    return format_asset_pages(pages, f"search description from file '{args.description_file}'")


def cmd_query_processes(args, config: PlatformConfig, transport: Transport, context: RequestContext) -> str:
    template = _resolve_first(
        transport, context, config, [ORCHESTRATION_SERVICE_TYPE], PROCESS_QUERY_RESOURCE,
        default_process_query_template(config.host, args.service_version, args.realm),
    )
    pages = query_processes(PageWalker(transport), context, template, args.expression)
    return format_process_pages(pages, f"search expression: '{args.expression}'")


def cmd_start_process(args, config: PlatformConfig, transport: Transport, context: RequestContext) -> str:
    template = _resolve_first(
        transport, context, config, [ORCHESTRATION_SERVICE_TYPE], PROCESS_RESOURCE,
        default_process_template(config.host, args.service_version, args.realm),
    )
    description = build_process_description(args.realm, args.item_id)
    print(f"Process: \"{description['common']['name']}\"")
    lifecycle = start_process(
        PageWalker(transport), context, template, description,
        on_lifecycle=lambda value: print(f"Lifecycle: {value}"),
    )
    return f"Process finished with lifecycle: {lifecycle}"


def cmd_folders(args, config: PlatformConfig, transport: Transport, context: RequestContext) -> str:
    locations_url = _resolve_first(
        transport, context, config, [args.service_type], LOCATIONS_RESOURCE,
        default_locations_template(config.host, args.service_type, args.service_version, args.realm),
    )
    items = FolderTraversal(PageWalker(transport)).traverse(context, locations_url)
    return format_folder_tree(items)


COMMANDS = {
    'registry': cmd_registry,
    'simple-search': cmd_simple_search,
    'advanced-search': cmd_advanced_search,
    'query-processes': cmd_query_processes,
    'start-process': cmd_start_process,
    'folders': cmd_folders,
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ctms_client',
        description='CTMS platform client - registry, searches, processes and folders',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ctms_client --host upstream registry
  python -m ctms_client --host upstream simple-search avid.mam.assets.access 0 BEEF "*"
  python -m ctms_client --host upstream advanced-search avid.mam.assets.access 0 BEEF query.json
  python -m ctms_client --host upstream query-processes 0 BEEF "export"
  python -m ctms_client --host upstream start-process 0 BEEF 2016050410152760101291561460050569B02260
  python -m ctms_client --host upstream folders avid.mam.assets.access 0 BEEF
        """
    )
    parser.add_argument('--host', type=str, help='Platform host (or set CTMS_HOST)')
    parser.add_argument('--proxy', type=str, help='Forwarding proxy URL (or set CTMS_PROXY)')
    parser.add_argument('--insecure', action='store_true',
                        help='Disable TLS certificate validation (or set CTMS_INSECURE=1)')
    parser.add_argument('--timeout', type=float, help='Per-request timeout in seconds (default: 60)')
    parser.add_argument('--registry-version', type=str, help='Registry service version (default: 0)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    # ── Authentication flags ──────────────────────────────────────
    auth_group = parser.add_argument_group(
        'Authentication',
        'Credentials are resolved from flags, env vars, or prompted interactively.')
    auth_group.add_argument('--username', type=str, help='Login username (or set CTMS_USERNAME)')
    auth_group.add_argument('--password', type=str, help='Login password (or set CTMS_PASSWORD)')

    sub = parser.add_subparsers(dest='command', metavar='<command>')
    sub.required = True

    sub.add_parser('registry', help='List every registered resource and its hrefs')

    simple = sub.add_parser('simple-search', help='Run a query-string asset search')
    simple.add_argument('service_type')
    simple.add_argument('service_version')
    simple.add_argument('realm')
    simple.add_argument('expression')

    advanced = sub.add_parser('advanced-search', help='Run a search described in a JSON file')
    advanced.add_argument('service_type')
    advanced.add_argument('service_version')
    advanced.add_argument('realm')
    advanced.add_argument('description_file')

    processes = sub.add_parser('query-processes', help='Quick-search orchestration processes')
    processes.add_argument('service_version', help='Orchestration service version')
    processes.add_argument('realm')
    processes.add_argument('expression')

    start = sub.add_parser('start-process', help='Start an export process and wait for it')
    start.add_argument('service_version', help='Orchestration service version')
    start.add_argument('realm')
    start.add_argument('item_id', help='Id of the asset to export')

    folders = sub.add_parser('folders', help='Print the location (folder) tree')
    folders.add_argument('service_type')
    folders.add_argument('service_version')
    folders.add_argument('realm')

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def run(args, manager: Optional[AuthSessionManager] = None, interactive: bool = True) -> int:
    """Run one command inside an authenticated session; return the exit status."""
    try:
        config = PlatformConfig.from_cli_args(args)
    except ValueError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 1
    config.log_summary()

    if manager is None:
        manager = AuthSessionManager(config)

    creds = resolve_credentials(
        Credentials(args.username or "", args.password or ""),
        interactive=interactive,
    )
    if not creds.is_complete:
        logger.error("Credentials incomplete - set --username/--password or CTMS_USERNAME/CTMS_PASSWORD")
        return 1

    try:
        context = manager.authenticate(creds)
        output = COMMANDS[args.command](args, config, manager.transport, context)
        print(output)
        manager.end_session(context)
    except (PlatformError, OSError, ValueError) as exc:
        logger.error(f"{args.command} failed: {exc}")
        manager.shutdown()
        return 1

    print("End")
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    sys.exit(run(args, interactive=sys.stdin.isatty()))


if __name__ == "__main__":
    main()
