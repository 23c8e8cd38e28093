"""Connection model for registered Odoo instances."""

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base, JSONType


class Connection(Base):
    """An Odoo instance whose POS closings are synced."""

    __tablename__ = "connections"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    base_url = Column(String(255), nullable=False)
    database = Column(String(100), nullable=False)
    username = Column(String(255), nullable=False)
    api_key = Column(Text, nullable=False)  # Encrypted
    odoo_version = Column(String(20), nullable=True)
    company_ids = Column(JSONType, nullable=True)  # Optional list of res.company ids to scope queries
    status = Column(String(20), nullable=False, default='connected')  # 'connected', 'disabled', 'error'
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    sync_jobs = relationship("SyncJob", back_populates="connection")

    @property
    def is_active(self) -> bool:
        return self.status != 'disabled'

    def __repr__(self):
        return f"<Connection(id={self.id}, name='{self.name}', database='{self.database}')>"
