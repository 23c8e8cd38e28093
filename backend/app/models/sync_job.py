"""Sync job model, the append-only audit trail of sync attempts."""

from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class SyncJob(Base):
    """One row per sync attempt of a connection."""

    __tablename__ = "sync_jobs"

    id = Column(Integer, primary_key=True, index=True)
    connection_id = Column(Integer, ForeignKey("connections.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False)  # 'success' or 'error'
    message = Column(Text, nullable=True)
    sync_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    connection = relationship("Connection", back_populates="sync_jobs")

    def __repr__(self):
        return f"<SyncJob(id={self.id}, connection={self.connection_id}, status='{self.status}')>"
