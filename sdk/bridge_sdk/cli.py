"""
Command-line tool for the Bridge SDK.

Commands:
- seed: Load the curated partner internships into a running authority
- counts: Print internship counts per category
- serve: Run the in-memory dev server

Usage:
    bridge seed --api-url http://localhost:8000 --actor admin-1
    bridge counts
    bridge serve --port 8000

Invariants:
    - Failures exit non-zero
    - Notifications are echoed to stderr, results to stdout
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .cache import QueryCache
from .config import Settings
from .errors import BridgeError
from .mutations import MutationCoordinator
from .notifications import Notification, Notifier
from .seed import SeedImporter
from .types import Identity
from ._http_client import HttpBackend

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _echo(notification: Notification) -> None:
    print(f"[{notification.level.value}] {notification.message}", file=sys.stderr)


def _backend(settings: Settings, actor: str | None) -> HttpBackend:
    identity = Identity(actor) if actor else None
    return HttpBackend(settings, caller=lambda: identity)


async def _seed(settings: Settings, actor: str | None) -> int:
    notifier = Notifier()
    notifier.subscribe(_echo)
    async with _backend(settings, actor) as remote:
        coordinator = MutationCoordinator(QueryCache(settings), remote, notifier, settings)
        result = await SeedImporter(coordinator, notifier).run()
    print(f"added={result.added} skipped={result.skipped} failed={result.failed}")
    return 1 if result.failed else 0


async def _counts(settings: Settings, actor: str | None) -> int:
    async with _backend(settings, actor) as remote:
        counts = await remote.get_category_counts()
    for count in sorted(counts, key=lambda c: c.category):
        print(f"{count.category}\t{count.count}")
    return 0


def _serve(host: str | None, port: int | None) -> int:
    import uvicorn

    from devserver.app import create_app
    from devserver.config import DevServerSettings

    server_settings = DevServerSettings()
    uvicorn.run(
        create_app(settings=server_settings),
        host=host or server_settings.host,
        port=port or server_settings.port,
        log_level=server_settings.log_level.lower(),
    )
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Bridge internship platform tool")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # seed command
    seed_parser = subparsers.add_parser("seed", help="Seed curated partner internships")
    seed_parser.add_argument("--api-url", help="Remote authority URL (default: BRIDGE_API_URL)")
    seed_parser.add_argument("--actor", required=True, help="Admin principal to act as")

    # counts command
    counts_parser = subparsers.add_parser("counts", help="Print internship counts per category")
    counts_parser.add_argument("--api-url", help="Remote authority URL (default: BRIDGE_API_URL)")
    counts_parser.add_argument("--actor", help="Principal to act as")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the in-memory dev server")
    serve_parser.add_argument("--host", help="Bind host")
    serve_parser.add_argument("--port", type=int, help="Bind port")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    if args.command == "serve":
        sys.exit(_serve(args.host, args.port))

    settings = Settings(api_url=args.api_url) if args.api_url else Settings()
    command = _seed if args.command == "seed" else _counts
    try:
        code = asyncio.run(command(settings, args.actor))
    except BridgeError as e:
        logger.error(e.message)
        print(f"Error: {e.message}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
