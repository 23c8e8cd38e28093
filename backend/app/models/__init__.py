"""Database models."""

from app.models.connection import Connection
from app.models.daily_summary import DailySummary
from app.models.sync_job import SyncJob

__all__ = [
    "Connection",
    "DailySummary",
    "SyncJob",
]
