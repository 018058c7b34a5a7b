from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from models.sales_orders import SalesOrderStatus
from schemas.sales_order_items import SalesOrderItem, SalesOrderItemCreateRequest


class SalesOrderCreate(BaseModel):
    client_id: int
    items: List[SalesOrderItemCreateRequest] = Field(..., min_length=1)


class SalesOrder(BaseModel):
    id: int
    client_id: int
    client_name: Optional[str] = None
    user_id: Optional[int] = None
    status: SalesOrderStatus
    total_amount: Decimal
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: List[SalesOrderItem] = []

    class Config:
        from_attributes = True


class CancelSaleResponse(BaseModel):
    message: str
    sale_id: int
