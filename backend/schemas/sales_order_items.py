from pydantic import BaseModel, Field
from decimal import Decimal


class SalesOrderItemCreateRequest(BaseModel):
    medicine_id: int
    quantity: int = Field(..., gt=0)


class SalesOrderItem(BaseModel):
    id: int
    medicine_id: int
    medicine_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    class Config:
        from_attributes = True
