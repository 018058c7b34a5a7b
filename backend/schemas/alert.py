from pydantic import BaseModel
from datetime import datetime
from models.alert import AlertKind


class Alert(BaseModel):
    id: int
    medicine_id: int
    medicine_name: str
    kind: AlertKind
    message: str
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ReconcileResult(BaseModel):
    message: str
    unread_alerts: int
