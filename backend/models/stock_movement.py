from sqlalchemy import Column, Integer, String, DateTime, Enum
from database import Base
import enum


class MovementType(enum.Enum):
    IN = "IN"
    OUT = "OUT"


class StockMovement(Base):
    """Append-only stock ledger. One row per quantity change of a medicine."""
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    # No foreign key: the ledger outlives the medicine row
    medicine_id = Column(Integer, nullable=False, index=True)
    medicine_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)  # Always positive, direction is in movement_type
    movement_type = Column(Enum(MovementType), nullable=False)
    total_after = Column(Integer, nullable=False)
    reason = Column(String, nullable=True)
    changed_by = Column(String, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
