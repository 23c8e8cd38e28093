import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import NotFound, PersistenceError
from app.models.connection import Connection
from app.models.daily_summary import DailySummary
from app.models.sync_job import SyncJob

log = logging.getLogger(__name__)

# Columns overwritten when a (pos_id, summary_date) row already exists
SUMMARY_UPDATE_COLUMNS = (
    "pos_name",
    "connection_id",
    "total_amount",
    "order_count",
    "payments",
    "top_products",
    "delivered",
    "updated_at",
)


class SyncStore:
    """
    Database access used by the sync: connection lookup, idempotent summary
    upserts and the sync job audit trail.
    """

    def __init__(self, db: Session):
        self.db = db

    # -- connections -------------------------------------------------------

    def get_connection(self, connection_id: int) -> Connection:
        connection = self.db.query(Connection).filter(Connection.id == connection_id).first()
        if connection is None:
            raise NotFound(f"Connection {connection_id} not found", {"connection_id": connection_id})
        return connection

    def list_connections(self, active_only: bool = False) -> List[Connection]:
        query = self.db.query(Connection)
        if active_only:
            query = query.filter(Connection.status != 'disabled')
        return query.order_by(Connection.id).all()

    # -- daily summaries ---------------------------------------------------

    def upsert_summary(self, pos_id: int, summary_date: date, fields: Dict[str, Any]) -> None:
        """
        Insert or overwrite the summary keyed on (pos_id, summary_date).

        Uses the database's native ON CONFLICT handling where available so
        concurrent writers cannot produce duplicate rows.
        """
        values = dict(fields)
        values["pos_id"] = pos_id
        values["summary_date"] = summary_date
        values.setdefault("delivered", False)
        values.setdefault("updated_at", datetime.now(timezone.utc))

        try:
            dialect = self.db.get_bind().dialect.name
            if dialect in ("postgresql", "sqlite"):
                self._native_upsert(dialect, values)
            else:
                self._select_then_write(values)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error(f"Failed to upsert summary for POS {pos_id} on {summary_date}: {e}")
            raise PersistenceError(
                f"Could not save summary for POS {pos_id} on {summary_date}: {e}",
                {"pos_id": pos_id, "summary_date": summary_date.isoformat()}
            ) from e

    def _native_upsert(self, dialect: str, values: Dict[str, Any]) -> None:
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            from sqlalchemy.dialects.sqlite import insert

        stmt = insert(DailySummary).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["pos_id", "summary_date"],
            set_={column: stmt.excluded[column] for column in SUMMARY_UPDATE_COLUMNS if column in values}
        )
        self.db.execute(stmt)

    def _select_then_write(self, values: Dict[str, Any]) -> None:
        existing = self.db.query(DailySummary).filter(
            DailySummary.pos_id == values["pos_id"],
            DailySummary.summary_date == values["summary_date"]
        ).with_for_update().first()
        if existing is None:
            self.db.add(DailySummary(**values))
            return
        for column in SUMMARY_UPDATE_COLUMNS:
            if column in values:
                setattr(existing, column, values[column])

    def list_summaries(
        self,
        summary_date: Optional[date] = None,
        connection_id: Optional[int] = None
    ) -> List[DailySummary]:
        """Summaries for display, newest date first."""
        query = self.db.query(DailySummary)
        if summary_date is not None:
            query = query.filter(DailySummary.summary_date == summary_date)
        if connection_id is not None:
            query = query.filter(DailySummary.connection_id == connection_id)
        return query.order_by(DailySummary.summary_date.desc(), DailySummary.pos_name).all()

    # -- sync jobs ---------------------------------------------------------

    def append_sync_job(self, connection_id: int, status: str, message: str, sync_date: date) -> SyncJob:
        job = SyncJob(
            connection_id=connection_id,
            status=status,
            message=message,
            sync_date=sync_date
        )
        try:
            self.db.add(job)
            self.db.commit()
            self.db.refresh(job)
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error(f"Failed to record sync job for connection {connection_id}: {e}")
            raise PersistenceError(
                f"Could not record sync job for connection {connection_id}: {e}",
                {"connection_id": connection_id}
            ) from e
        return job

    def list_sync_jobs(self, connection_id: Optional[int] = None, limit: int = 50) -> List[SyncJob]:
        query = self.db.query(SyncJob)
        if connection_id is not None:
            query = query.filter(SyncJob.connection_id == connection_id)
        return query.order_by(SyncJob.created_at.desc(), SyncJob.id.desc()).limit(limit).all()
