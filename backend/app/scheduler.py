"""APScheduler integration for the nightly POS sync."""

import logging
from datetime import date
from typing import Optional, Union

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings
from app.database import SessionLocal
from app.schemas.sync import ConnectionSyncResult
from app.services.store import SyncStore
from app.services.sync_service import run_daily_sync

log = logging.getLogger(__name__)

JOB_ID = "daily_pos_sync_job"

# Global scheduler instance
scheduler = AsyncIOScheduler(timezone=settings.timezone)

# Guard against overlapping scheduled runs
_sync_running = False


async def sync_all_connections(sync_date: Union[str, date, None] = None, session_factory=SessionLocal) -> dict:
    """
    Sync every active connection, one after the other.

    A failing connection is logged and reported in the results; the loop
    then moves on to the next one.
    """
    db = session_factory()
    try:
        connection_ids = [c.id for c in SyncStore(db).list_connections(active_only=True)]
    finally:
        db.close()

    results = []
    for connection_id in connection_ids:
        db = session_factory()
        try:
            result = await run_daily_sync(db, connection_id, sync_date)
            results.append(ConnectionSyncResult(
                connection_id=connection_id,
                status="success",
                synced=result["synced"],
                orders=result["orders"],
                message=result.get("message")
            ))
        except Exception as e:
            log.error(f"Sync of connection {connection_id} failed: {e}")
            results.append(ConnectionSyncResult(connection_id=connection_id, status="error", message=str(e)))
        finally:
            db.close()

    failed = sum(1 for r in results if r.status == "error")
    log.info(f"Synced {len(connection_ids)} connections ({failed} failed)")
    return {"processed": len(connection_ids), "results": [r.model_dump() for r in results]}


async def scheduled_sync_job(sync_date: Optional[str] = None):
    """Execute scheduled sync, skipping when the previous run is still active."""
    global _sync_running

    if _sync_running:
        log.warning("Scheduled sync skipped: previous run still active")
        return None

    _sync_running = True
    log.info("Starting scheduled sync job")
    try:
        return await sync_all_connections(sync_date)
    except Exception as e:
        log.error(f"Scheduled sync failed: {e}", exc_info=True)
        return None
    finally:
        _sync_running = False


def reschedule_sync_job(cron: str, enabled: bool):
    """Install, replace or remove the cron job."""
    if scheduler.get_job(JOB_ID):
        scheduler.remove_job(JOB_ID)
        log.info(f"Removed existing job: {JOB_ID}")

    if enabled:
        trigger = CronTrigger.from_crontab(cron, timezone=settings.timezone)
        scheduler.add_job(
            scheduled_sync_job,
            trigger=trigger,
            id=JOB_ID,
            replace_existing=True
        )
        log.info(f"Scheduled sync job updated: cron='{cron}'")
    else:
        log.info("Scheduled sync job disabled")


def start_scheduler():
    """Start the APScheduler with the configured cron."""
    reschedule_sync_job(settings.sync_cron, settings.sync_enabled)

    if not scheduler.running:
        scheduler.start()
        log.info("APScheduler started successfully")


def shutdown_scheduler():
    """Shutdown the APScheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        log.info("APScheduler shut down successfully")
