from sqlalchemy.orm import Session
from sqlalchemy import func
from models.client import Client
from models.sales_orders import SalesOrder
from schemas.client import ClientCreate, ClientUpdate


def get_client(db: Session, client_id: int):
    return db.query(Client).filter(Client.id == client_id).first()


def get_client_by_cpf(db: Session, cpf: str):
    return db.query(Client).filter(Client.cpf == cpf).first()


def get_client_by_email(db: Session, email: str):
    return db.query(Client).filter(func.lower(Client.email) == email.lower()).first()


def get_clients(db: Session, search: str = None):
    query = db.query(Client)
    if search:
        query = query.filter(Client.name.ilike(f"%{search}%"))
    return query.order_by(func.lower(Client.name)).all()


def count_sales_of_client(db: Session, client_id: int) -> int:
    return db.query(SalesOrder).filter(SalesOrder.client_id == client_id).count()


def create_client(db: Session, client: ClientCreate, changed_by: str = None):
    db_client = Client(**client.model_dump(), created_by=changed_by, updated_by=changed_by)
    db.add(db_client)
    db.commit()
    db.refresh(db_client)
    return db_client


def update_client(db: Session, db_client: Client, client: ClientUpdate, changed_by: str = None):
    for key, value in client.model_dump(exclude_unset=True).items():
        setattr(db_client, key, value)
    db_client.updated_by = changed_by
    db.commit()
    db.refresh(db_client)
    return db_client


def delete_client(db: Session, db_client: Client):
    db.delete(db_client)
    db.commit()
