from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional

from pydantic import BaseModel, Field


class PosOrder(BaseModel):
    """Read-only projection of a pos.order record."""
    id: int = Field(..., description="Odoo pos.order id")
    name: Optional[str] = Field(None, description="Order reference")
    location_id: Optional[int] = Field(None, description="pos.config id the order was rung up on")
    location_name: Optional[str] = Field(None, description="pos.config display name")
    amount_total: float = Field(0.0, description="Tax-inclusive order total")
    amount_tax: float = Field(0.0, description="Tax part of the total")
    line_ids: List[int] = Field([], description="pos.order.line back-references")
    payment_ids: List[int] = Field([], description="pos.payment back-references")


class PosPayment(BaseModel):
    """Read-only projection of a pos.payment record."""
    order_id: Optional[int] = Field(None, description="Owning pos.order id")
    method_name: str = Field(..., description="Payment method display name")
    amount: float = Field(0.0, description="Paid amount")


class PosOrderLine(BaseModel):
    """Read-only projection of a pos.order.line record."""
    order_id: Optional[int] = Field(None, description="Owning pos.order id")
    product_name: str = Field(..., description="Product display name")
    qty: float = Field(0.0, description="Sold quantity")
    price_subtotal_incl: float = Field(0.0, description="Tax-inclusive line subtotal")


class BaseConnector(ABC):
    """Abstract Base Class for ERP connectors."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config

    @abstractmethod
    async def authenticate(self) -> int:
        """Returns the remote user id, or 0 when the credentials are rejected."""
        pass

    @abstractmethod
    async def execute(self, uid: int, model: str, method: str, args: List[Any], kwargs: Optional[Dict[str, Any]] = None) -> Any:
        """Runs a model method on the remote system."""
        pass

    @abstractmethod
    async def validate_connection(self) -> bool:
        """Validates the connection to the external system."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Releases network resources."""
        pass
