from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import date, datetime
from typing import Optional
import re

_CPF_PATTERN = re.compile(r"^\d{3}\.?\d{3}\.?\d{3}-?\d{2}$")


class ClientBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    cpf: str
    email: EmailStr
    phone: Optional[str] = None
    address: Optional[str] = None
    birth_date: date

    @field_validator("cpf")
    @classmethod
    def validate_cpf(cls, value: str) -> str:
        value = value.strip()
        if not _CPF_PATTERN.match(value):
            raise ValueError("CPF must have 11 digits, optionally formatted as 000.000.000-00")
        return value


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    birth_date: Optional[date] = None


class Client(BaseModel):
    id: int
    name: str
    cpf: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    birth_date: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
