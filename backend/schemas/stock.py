from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from models.stock_movement import MovementType


class StockRequest(BaseModel):
    medicine_id: int
    quantity: int = Field(..., gt=0)
    reason: Optional[str] = None


class StockLevel(BaseModel):
    medicine_id: int
    medicine_name: str
    quantity: int


class StockOperationResult(BaseModel):
    message: str
    medicine_id: int
    medicine_name: str
    moved_quantity: int
    current_quantity: int
    operation: MovementType


class StockMovement(BaseModel):
    id: int
    medicine_id: int
    medicine_name: str
    quantity: int
    movement_type: MovementType
    total_after: int
    reason: Optional[str] = None
    changed_by: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True
