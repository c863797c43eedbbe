#!/usr/bin/env python3
"""
Ingestion Operator Tool
=======================

Run ingestion once, or inspect and reconcile the checkpoint by hand
(e.g. after a checkpoint_error left a written batch ahead of it).

Usage:
    python scripts/manage_ingestion.py run
    python scripts/manage_ingestion.py show-checkpoint
    python scripts/manage_ingestion.py set-checkpoint case-2024-03-01T10:15:00
"""

import argparse
import asyncio
import json
import sys

from supportgpt.config import settings
from supportgpt.ingestion.infrastructure import build_checkpoint_store, build_ingestion_service
from supportgpt.shared.infrastructure.logging import setup_logging


async def run() -> int:
    result = await build_ingestion_service(settings).run()
    print(json.dumps(result.to_dict(), indent=2))
    return 1 if result.is_error else 0


async def show_checkpoint() -> int:
    checkpoint = await build_checkpoint_store(settings).get()
    print(checkpoint if checkpoint is not None else "(no checkpoint)")
    return 0


async def set_checkpoint(case_id: str) -> int:
    await build_checkpoint_store(settings).set(case_id)
    print(f"Checkpoint set to {case_id}")
    return 0


async def main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(description="Support case ingestion operator tool")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="Run one ingestion")
    sub.add_parser("show-checkpoint", help="Print the last committed case ID")
    set_parser = sub.add_parser("set-checkpoint", help="Overwrite the last committed case ID")
    set_parser.add_argument("case_id")
    args = parser.parse_args(argv)

    if settings.checkpoint_backend == "database":
        from supportgpt.infrastructure.database import init_database, create_tables, close_database
        init_database(settings.database_url)
        await create_tables()

    try:
        if args.command == "run":
            return await run()
        if args.command == "show-checkpoint":
            return await show_checkpoint()
        return await set_checkpoint(args.case_id)
    finally:
        if settings.checkpoint_backend == "database":
            await close_database()


if __name__ == "__main__":
    setup_logging(settings.log_level, settings.environment)
    sys.exit(asyncio.run(main(sys.argv[1:])))
