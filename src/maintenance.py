# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Operator maintenance commands.

Usage:
    python -m src.maintenance check
    python -m src.maintenance create-schema
    python -m src.maintenance resync-purchasers <content_id> [<content_id> ...]

The purchasers read model is eventually consistent with the purchase
ledger; operators schedule resync-purchasers to repair drift.
"""

import argparse
import asyncio
import logging
import sys

from src.core.config import get_settings
from src.core.container import build_container
from src.infrastructure.database.connection import (
    check_database_connection,
    close_database,
    create_schema,
    get_session,
    init_database,
)
from src.utils.logging import bind_context, clear_context, setup_logging

logger = logging.getLogger(__name__)


async def resync_purchasers(content_ids: list[str]) -> int:
    """Rebuild the purchasers read model for each content item.

    Returns:
        Total purchaser rows written.
    """
    total = 0
    for content_id in content_ids:
        async with get_session() as session:
            services = build_container(session)
            total += await services.purchases.resync_purchasers(content_id)
    return total


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    bind_context(command=args.command)
    await init_database(settings)
    try:
        if args.command == "check":
            ok = await check_database_connection()
            logger.info("Database reachable: %s", ok)
            return 0 if ok else 1
        if args.command == "create-schema":
            await create_schema()
            logger.info("Schema created")
            return 0
        rows = await resync_purchasers(args.content_ids)
        logger.info("Resync complete: contents=%d, rows=%d", len(args.content_ids), rows)
        return 0
    finally:
        await close_database()
        clear_context()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="coursegate-maintenance")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("check", help="Check database connectivity")
    commands.add_parser("create-schema", help="Create tables (development only)")
    resync = commands.add_parser("resync-purchasers", help="Rebuild content purchasers")
    resync.add_argument("content_ids", nargs="+", metavar="content_id")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(get_settings())
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
