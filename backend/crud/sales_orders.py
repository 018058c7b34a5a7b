from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func
from models.sales_orders import SalesOrder
from models.client import Client


def _with_items(db: Session):
    return db.query(SalesOrder).options(
        selectinload(SalesOrder.items),
        selectinload(SalesOrder.client),
    )


def get_sales_order(db: Session, sale_id: int):
    return _with_items(db).filter(SalesOrder.id == sale_id).first()


def get_sales_order_for_update(db: Session, sale_id: int):
    return db.query(SalesOrder).filter(SalesOrder.id == sale_id).with_for_update().populate_existing().first()


def get_sales_orders(db: Session, client_id: int = None):
    query = _with_items(db).join(Client, SalesOrder.client_id == Client.id)
    if client_id is not None:
        query = query.filter(SalesOrder.client_id == client_id)
    return query.order_by(func.lower(Client.name), SalesOrder.id).all()
