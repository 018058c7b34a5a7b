from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Literal, Optional

Role = Literal["ADMIN", "VENDEDOR"]


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = "VENDEDOR"


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class User(BaseModel):
    id: int
    name: str
    email: str
    role: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str
    user: User
