"""Daily closing summary per POS location."""

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Boolean, ForeignKey, Index, UniqueConstraint
from sqlalchemy.sql import func
from app.database import Base, JSONType


class DailySummary(Base):
    """Aggregated sales of one POS location (pos.config) for one day."""

    __tablename__ = "daily_summaries"

    id = Column(Integer, primary_key=True, index=True)

    # Location
    pos_id = Column(Integer, nullable=False)
    pos_name = Column(String(255), nullable=False)
    connection_id = Column(Integer, ForeignKey("connections.id"), nullable=False, index=True)
    summary_date = Column(Date, nullable=False)

    # Figures
    total_amount = Column(Numeric(14, 2, asdecimal=False), nullable=False, default=0)
    order_count = Column(Integer, nullable=False, default=0)
    payments = Column(JSONType, nullable=False, default=dict)  # {"Cash": 120.5, "Card": 29.5}
    top_products = Column(JSONType, nullable=False, default=list)  # [{"name", "qty", "total"}]

    # Downstream notification state, reset by every sync
    delivered = Column(Boolean, nullable=False, default=False)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('pos_id', 'summary_date', name='uq_daily_summaries_pos_date'),
        Index('idx_daily_summaries_summary_date', 'summary_date'),
    )

    def __repr__(self):
        return f"<DailySummary(pos_id={self.pos_id}, date={self.summary_date}, total={self.total_amount})>"
