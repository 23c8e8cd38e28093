from datetime import date, datetime
from typing import Optional, List, Dict
from pydantic import BaseModel


class TopProduct(BaseModel):
    name: str
    qty: int
    total: float


class DailySummaryResponse(BaseModel):
    pos_id: int
    pos_name: str
    connection_id: int
    summary_date: date
    total_amount: float
    order_count: int
    payments: Dict[str, float]
    top_products: List[TopProduct]
    delivered: bool
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SyncJobResponse(BaseModel):
    id: int
    connection_id: int
    status: str  # 'success', 'error'
    message: Optional[str] = None
    sync_date: date
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConnectionSyncResult(BaseModel):
    connection_id: int
    status: str  # 'success', 'error'
    synced: int = 0
    orders: int = 0
    message: Optional[str] = None
