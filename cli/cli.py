# cli/cli.py
"""
Operator commands for the lead capture service.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from datetime import datetime
from typing import Callable, Dict, Optional

import uvicorn
from sqlalchemy.exc import SQLAlchemyError

from leadcapture.core.catalog import get_app_config, offer_summary
from leadcapture.core.config import settings
from leadcapture.core.exceptions import BaseAPIException
from leadcapture.db import session as db
from leadcapture.services.admin_stats import compute_lead_stats


def _supports_color() -> bool:
    """Check if terminal supports ANSI color codes."""
    if sys.platform == "win32":
        return os.getenv("TERM") == "xterm" or os.getenv("ANSICON") is not None
    return sys.stdout.isatty()


SUPPORTS_COLOR = _supports_color()

GREEN = '\033[92m' if SUPPORTS_COLOR else ''
RED = '\033[91m' if SUPPORTS_COLOR else ''
BLUE = '\033[94m' if SUPPORTS_COLOR else ''
RESET = '\033[0m' if SUPPORTS_COLOR else ''


def print_success(message: str):
    print(f"{GREEN}[✓]{RESET} {message}")


def print_error(message: str):
    print(f"{RED}[✗]{RESET} {message}", file=sys.stderr)


def print_info(message: str):
    print(f"{BLUE}[i]{RESET} {message}")


async def cmd_setup_db(args: argparse.Namespace) -> int:
    """Command: create tables and indexes."""
    print_info("Creating tables and indexes...")
    try:
        await db.create_all()
    finally:
        await db.dispose_engine()
    print_success("Database ready")
    return 0


async def cmd_stats(args: argparse.Namespace) -> int:
    """Command: print dashboard counters as JSON."""
    db.create_database_engine()
    try:
        async with db.AsyncSessionLocal() as session:
            stats = await compute_lead_stats(session, now=datetime.now().astimezone())
    finally:
        await db.dispose_engine()

    print(json.dumps({
        "total": stats.total,
        "today": stats.today,
        "thisWeek": stats.this_week,
        "couponSent": stats.coupon_sent,
        "bookingRedirected": stats.booking_redirected,
    }, indent=2))
    return 0


def run_server(args: argparse.Namespace) -> int:
    """Command: run the API under uvicorn."""
    uvicorn.run(
        "leadcapture.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload,
        log_config=None,
    )
    return 0


async def cmd_offers(args: argparse.Namespace) -> int:
    """Command: list the offer catalog with booking links."""
    config = get_app_config()
    offers = [offer_summary(config, template) for template in config.offers.values()]
    print(json.dumps(offers, indent=2))
    return 0


COMMANDS: Dict[str, Callable] = {
    'setup-db': cmd_setup_db,
    'stats': cmd_stats,
    'offers': cmd_offers,
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all commands."""
    parser = argparse.ArgumentParser(
        description='Lead capture operator CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')
    subparsers.add_parser('setup-db', help='Create tables and indexes')
    subparsers.add_parser('stats', help='Print lead counters as JSON')
    subparsers.add_parser('offers', help='List the offer catalog')

    serve_parser = subparsers.add_parser('serve', help='Run the API server')
    serve_parser.add_argument('--host', default=None, help='Bind address')
    serve_parser.add_argument('--port', type=int, default=None, help='Bind port')
    serve_parser.add_argument('--reload', action='store_true', help='Reload on code changes')

    return parser


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'serve':
        return run_server(parsed_args)

    command_func = COMMANDS[parsed_args.command]

    try:
        return asyncio.run(command_func(parsed_args))
    except KeyboardInterrupt:
        print_error("Interrupted by user")
        return 130
    except (SQLAlchemyError, BaseAPIException, OSError) as e:
        print_error(f"Error executing command: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
