#!/usr/bin/env python3
"""
Command-line control surface for the occupation sync.

Usage:
    # Full sync, resuming from the last checkpoint of this process
    python scripts/run_sync.py sync

    # Start over, smaller batches, only two occupations
    python scripts/run_sync.py sync --force-restart --batch-size 10 --codes 15-1252 29-1141

    # One health check, printed as JSON
    python scripts/run_sync.py health

    # Show configured API keys and their quota usage
    python scripts/run_sync.py keys

    # Create tables
    python scripts/run_sync.py init-db

Environment:
    DATABASE_URL: Database connection string
    BLS_API_KEY, BLS_API_KEY_2, ...: BLS registration keys
    LOG_LEVEL, LOG_FORMAT: Logging level and json|console rendering
"""

import asyncio
import argparse
import json
import signal
import sys
import os
from dataclasses import replace

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from occsync.core.config import settings
from occsync.core.events import EventType, SyncEvent
from occsync.core.logging_config import configure_logging
from occsync.db import create_db_and_tables
from occsync.services.occupation_codes import load_work_items
from occsync.services.runtime import build_runtime
from occsync.services.sync_orchestrator import SyncConfig


def print_event(event: SyncEvent) -> None:
    payload = event.payload
    if event.type is EventType.CHECKPOINT:
        print(f"  checkpoint: batch {payload['batch_number']}, {payload['processed']} processed")
    elif event.type is EventType.ITEM_ERROR:
        print(f"  [{payload['code']}] {payload['error']} (retryable={payload['retryable']})")
    elif event.type is EventType.HEALTH_WARNING:
        print(f"  warning: {payload.get('type')} remaining={payload.get('remaining_requests')}")
    elif event.type in (EventType.ALERT, EventType.RECOVERY):
        print(f"  {event.type.value}: {payload}")


async def run_sync(args) -> int:
    sync_config = SyncConfig.from_settings(settings)
    if args.batch_size:
        sync_config = replace(sync_config, batch_size=args.batch_size)
    if args.concurrency:
        sync_config = replace(sync_config, max_concurrent=args.concurrency)

    work_items = load_work_items(args.codes) if args.codes else None
    runtime = build_runtime(sync_config=sync_config, work_items=work_items)
    runtime.events.subscribe(
        print_event,
        {EventType.CHECKPOINT, EventType.ITEM_ERROR, EventType.HEALTH_WARNING, EventType.ALERT, EventType.RECOVERY},
    )

    if len(runtime.pool) == 0:
        print("ERROR: no valid BLS_API_KEY* environment variables set")
        return 1

    print("=== Occupation Sync ===")
    print(f"Credentials: {len(runtime.pool)}")
    print(f"Batch size: {sync_config.batch_size}, concurrency: {sync_config.max_concurrent}")
    print()

    # Ctrl+C stops after the in-flight items settle
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, lambda: asyncio.ensure_future(runtime.stop()))
    except NotImplementedError:
        pass

    await runtime.monitor.start()
    try:
        result = await runtime.start(force_restart=args.force_restart)
    finally:
        await runtime.aclose()

    stats = result.stats
    print()
    print("=== Summary ===")
    print(result.message)
    print(f"Processed: {stats.processed}/{stats.total}")
    print(f"Success: {stats.successful}")
    print(f"Failed: {stats.failed}")
    print(f"Skipped: {stats.skipped}")
    if stats.duration_seconds is not None:
        print(f"Duration: {stats.duration_seconds:.1f}s")
    return 0 if result.success else 2


async def run_health(args) -> int:
    runtime = build_runtime()
    try:
        health = await runtime.check_health()
    finally:
        await runtime.aclose()
    print(json.dumps(health.to_dict(), indent=2, default=str))
    return 0


async def run_keys(args) -> int:
    runtime = build_runtime()
    try:
        if args.validate:
            removed = await runtime.pool.validate_all()
            for preview in removed:
                print(f"Removed invalid key {preview}")
        for status in runtime.pool.status_snapshot():
            state = "blocked" if status["blocked"] else "active"
            print(f"{status['preview']}  used={status['used']}  remaining={status['remaining']}  {state}")
        print(f"Remaining today: {runtime.pool.remaining_capacity()}")
    finally:
        await runtime.aclose()
    return 0


async def main() -> int:
    parser = argparse.ArgumentParser(description="Occupation statistics sync")
    parser.add_argument("--log-level", default=None, help="Log level (defaults to LOG_LEVEL, then INFO)")
    parser.add_argument("--json-logs", action="store_true", default=None, help="Emit one JSON object per log line")
    subcommands = parser.add_subparsers(dest="command", required=True)

    sync_parser = subcommands.add_parser("sync", help="Run a sync")
    sync_parser.add_argument("--force-restart", action="store_true", help="Ignore checkpoints and start over")
    sync_parser.add_argument("--batch-size", type=int, default=None, help="Items per batch")
    sync_parser.add_argument("--concurrency", type=int, default=None, help="Items processed at once")
    sync_parser.add_argument("--codes", nargs="+", default=None, help="Only sync these occupation codes")

    subcommands.add_parser("health", help="Run one health check")

    keys_parser = subcommands.add_parser("keys", help="Show API key usage")
    keys_parser.add_argument("--validate", action="store_true", help="Check keys against the BLS API first")

    subcommands.add_parser("init-db", help="Create database tables")

    args = parser.parse_args()
    configure_logging(level=args.log_level, json_output=args.json_logs)

    if args.command == "sync":
        return await run_sync(args)
    if args.command == "health":
        return await run_health(args)
    if args.command == "keys":
        return await run_keys(args)

    print("Creating tables...")
    create_db_and_tables()
    print("Tables created successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
