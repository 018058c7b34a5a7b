from sqlalchemy import Column, Integer, String, DateTime, Boolean, Enum, Index
from database import Base
import enum


class AlertKind(enum.Enum):
    LOW_STOCK = "LOW_STOCK"
    EXPIRY_SOON = "EXPIRY_SOON"
    EXPIRED = "EXPIRED"


class Alert(Base):
    __tablename__ = "alerts"
    __table_args__ = (Index("ix_alerts_medicine_kind_read", "medicine_id", "kind", "read"),)

    id = Column(Integer, primary_key=True, index=True)
    medicine_id = Column(Integer, nullable=False, index=True)
    medicine_name = Column(String, nullable=False)  # Snapshot for display
    kind = Column(Enum(AlertKind), nullable=False)
    message = Column(String, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Alert(id={self.id}, medicine_id={self.medicine_id}, kind={self.kind.name}, read={self.read})>"
