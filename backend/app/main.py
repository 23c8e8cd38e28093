"""Command-line entry point: one-off syncs, connection tests and the scheduler."""

import argparse
import asyncio
import json
import logging
import sys

import httpx

from app import __version__
from app.database import SessionLocal
from app.exceptions import PosSyncError
from app.logging_config import configure_logging
from app.scheduler import shutdown_scheduler, start_scheduler, sync_all_connections
from app.schemas.connection import ConnectionInDB, ConnectionParams
from app.schemas.sync import DailySummaryResponse, SyncJobResponse
from app.services.connection_service import authenticate_and_list_companies
from app.services.store import SyncStore
from app.services.sync_service import resolve_sync_date, run_daily_sync

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pos-sync", description="Odoo POS daily closing sync")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL (TRACE, VERBOSE, DEBUG, INFO...)")
    sub = parser.add_subparsers(dest="command", required=True)

    sync = sub.add_parser("sync", help="Sync one connection")
    sync.add_argument("connection_id", type=int)
    sync.add_argument("--date", default=None, help="YYYY-MM-DD, defaults to today")

    sync_all = sub.add_parser("sync-all", help="Sync every active connection")
    sync_all.add_argument("--date", default=None, help="YYYY-MM-DD, defaults to today")

    test = sub.add_parser("test-connection", help="Authenticate and list companies")
    test.add_argument("--url", required=True)
    test.add_argument("--database", required=True)
    test.add_argument("--username", required=True)
    test.add_argument("--api-key", required=True)

    summaries = sub.add_parser("summaries", help="Show stored daily summaries")
    summaries.add_argument("--date", default=None)
    summaries.add_argument("--connection-id", type=int, default=None)

    jobs = sub.add_parser("jobs", help="Show recent sync jobs")
    jobs.add_argument("--connection-id", type=int, default=None)
    jobs.add_argument("--limit", type=int, default=20)

    sub.add_parser("connections", help="List registered connections")

    sub.add_parser("serve", help="Run the scheduler until interrupted")
    return parser


async def _sync_one(connection_id: int, sync_date) -> dict:
    db = SessionLocal()
    try:
        return await run_daily_sync(db, connection_id, sync_date)
    finally:
        db.close()


def _list_stored(args) -> list:
    db = SessionLocal()
    try:
        store = SyncStore(db)
        if args.command == "connections":
            return [ConnectionInDB.model_validate(c).model_dump(mode="json") for c in store.list_connections()]
        if args.command == "summaries":
            target = resolve_sync_date(args.date) if args.date else None
            rows = store.list_summaries(target, args.connection_id)
            return [DailySummaryResponse.model_validate(r).model_dump(mode="json") for r in rows]
        rows = store.list_sync_jobs(args.connection_id, args.limit)
        return [SyncJobResponse.model_validate(r).model_dump(mode="json") for r in rows]
    finally:
        db.close()


async def _serve() -> None:
    start_scheduler()
    try:
        await asyncio.Event().wait()
    finally:
        shutdown_scheduler()


def _fail(error: dict) -> int:
    log.error(f"{error['error_type']}: {error['message']}")
    print(json.dumps({"success": False, "error": error}), file=sys.stderr)
    return 1


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.command == "sync":
            result = asyncio.run(_sync_one(args.connection_id, args.date))
        elif args.command == "sync-all":
            result = asyncio.run(sync_all_connections(args.date))
        elif args.command == "test-connection":
            params = ConnectionParams(
                base_url=args.url, database=args.database, username=args.username, api_key=args.api_key
            )
            result = asyncio.run(authenticate_and_list_companies(params))
        elif args.command in ("connections", "summaries", "jobs"):
            result = _list_stored(args)
        else:
            try:
                asyncio.run(_serve())
            except KeyboardInterrupt:
                log.info("Interrupted, stopping scheduler")
            return 0
    except PosSyncError as e:
        return _fail(e.to_dict())
    except (ValueError, httpx.HTTPError) as e:
        # Bad --date or --url input, or a non-2xx answer from Odoo
        return _fail({"error_type": type(e).__name__, "message": str(e), "context": {}})

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
