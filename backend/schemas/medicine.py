from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


class MedicineBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal
    expiry_date: Optional[date] = None
    category_id: Optional[int] = None


class MedicineCreate(MedicineBase):
    quantity: int = 0
    active: bool = True
    images: List[str] = []


class MedicineUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = None
    quantity: Optional[int] = None
    expiry_date: Optional[date] = None
    category_id: Optional[int] = None


class MedicineStatusUpdate(BaseModel):
    active: bool


class Medicine(MedicineBase):
    id: int
    quantity: int
    active: bool
    images: List[str] = []
    category_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
