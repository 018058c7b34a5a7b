from sqlalchemy.orm import Session
from models.stock_movement import StockMovement


def append_movement(db: Session, movement: StockMovement) -> StockMovement:
    db.add(movement)
    return movement


def find_movements(db: Session, medicine_id: int):
    return db.query(StockMovement).filter(
        StockMovement.medicine_id == medicine_id
    ).order_by(StockMovement.timestamp, StockMovement.id).all()
