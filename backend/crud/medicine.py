from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func
from models.medicine import Medicine as MedicineModel
from models.sales_order_items import SalesOrderItem as SalesOrderItemModel


def get_medicine(db: Session, medicine_id: int) -> Optional[MedicineModel]:
    return db.query(MedicineModel).filter(MedicineModel.id == medicine_id).first()


def get_medicine_for_update(db: Session, medicine_id: int) -> Optional[MedicineModel]:
    """Load a medicine holding a row lock until the transaction ends, re-read from the database."""
    return db.query(MedicineModel).filter(MedicineModel.id == medicine_id).with_for_update().populate_existing().first()


def get_medicines_for_update(db: Session, medicine_ids: List[int]) -> List[MedicineModel]:
    """Lock several medicines in ascending id order."""
    if not medicine_ids:
        return []
    return (
        db.query(MedicineModel)
        .filter(MedicineModel.id.in_(medicine_ids))
        .order_by(MedicineModel.id)
        .with_for_update()
        .populate_existing()
        .all()
    )


def get_medicine_by_name(db: Session, name: str) -> Optional[MedicineModel]:
    return db.query(MedicineModel).filter(func.lower(MedicineModel.name) == name.strip().lower()).first()


def get_all_medicines(db: Session, active_only: bool = False, category_id: int = None):
    query = db.query(MedicineModel)
    if active_only:
        query = query.filter(MedicineModel.active.is_(True))
    if category_id is not None:
        query = query.filter(MedicineModel.category_id == category_id)
    return query.order_by(func.lower(MedicineModel.name), MedicineModel.id).all()


def find_active_medicines_below(db: Session, threshold: int):
    return db.query(MedicineModel).filter(
        MedicineModel.active.is_(True),
        MedicineModel.quantity < threshold,
    ).order_by(MedicineModel.id).all()


def find_active_medicines_at_or_above(db: Session, threshold: int):
    return db.query(MedicineModel).filter(
        MedicineModel.active.is_(True),
        MedicineModel.quantity >= threshold,
    ).order_by(MedicineModel.id).all()


def find_medicines_expiring_by(db: Session, limit_date: date):
    """Active medicines with an expiry date on or before limit_date."""
    return db.query(MedicineModel).filter(
        MedicineModel.active.is_(True),
        MedicineModel.expiry_date.isnot(None),
        MedicineModel.expiry_date <= limit_date,
    ).order_by(MedicineModel.id).all()


def count_sales_of_medicine(db: Session, medicine_id: int) -> int:
    return db.query(func.count(func.distinct(SalesOrderItemModel.sales_order_id))).filter(
        SalesOrderItemModel.medicine_id == medicine_id
    ).scalar() or 0


def add_medicine(db: Session, db_medicine: MedicineModel) -> MedicineModel:
    db.add(db_medicine)
    db.flush()
    return db_medicine


def delete_medicine(db: Session, db_medicine: MedicineModel) -> None:
    db.delete(db_medicine)
    db.flush()
