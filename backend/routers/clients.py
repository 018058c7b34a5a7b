from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

import crud.client as crud_client
from database import get_db
from dependencies import get_audit_sink, get_clock
from schemas.client import Client as ClientSchema, ClientCreate, ClientUpdate
from services.audit_service import AuditSink
from utils import sqlalchemy_to_dict
from utils.auth_utils import get_current_user, get_user_identifier
from utils.clock import Clock

router = APIRouter(prefix="/clients", tags=["Clients"])
logger = logging.getLogger("clients")


def _check_birth_date(birth_date, clock: Clock):
    if birth_date is not None and birth_date >= clock.today():
        raise HTTPException(status_code=400, detail="Birth date must be in the past")


@router.get("/", response_model=List[ClientSchema])
def get_clients(search: Optional[str] = None, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_client.get_clients(db, search=search)


@router.get("/{client_id}", response_model=ClientSchema)
def get_client(client_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_client = crud_client.get_client(db, client_id)
    if db_client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return db_client


@router.post("/", response_model=ClientSchema, status_code=status.HTTP_201_CREATED)
def create_client(
    client: ClientCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    audit: AuditSink = Depends(get_audit_sink),
):
    _check_birth_date(client.birth_date, clock)
    if crud_client.get_client_by_cpf(db, client.cpf):
        raise HTTPException(status_code=409, detail=f"A client with CPF {client.cpf} already exists")
    if crud_client.get_client_by_email(db, client.email):
        raise HTTPException(status_code=409, detail=f"A client with email {client.email} already exists")

    db_client = crud_client.create_client(db, client, changed_by=get_user_identifier(user))
    logger.info(f"Client '{db_client.name}' (ID: {db_client.id}) created by User {get_user_identifier(user)}")
    audit.record("CREATE", "CLIENT", db_client.id, f"Client created: {db_client.name}",
                 {"new_values": sqlalchemy_to_dict(db_client)}, get_user_identifier(user))
    return db_client


@router.patch("/{client_id}", response_model=ClientSchema)
def update_client(
    client_id: int,
    client: ClientUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    audit: AuditSink = Depends(get_audit_sink),
):
    db_client = crud_client.get_client(db, client_id)
    if db_client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    _check_birth_date(client.birth_date, clock)
    if client.email is not None:
        existing = crud_client.get_client_by_email(db, client.email)
        if existing and existing.id != client_id:
            raise HTTPException(status_code=409, detail=f"A client with email {client.email} already exists")

    old_values = sqlalchemy_to_dict(db_client)
    db_client = crud_client.update_client(db, db_client, client, changed_by=get_user_identifier(user))
    audit.record("UPDATE", "CLIENT", client_id, f"Client updated: {db_client.name}",
                 {"old_values": old_values, "new_values": sqlalchemy_to_dict(db_client)}, get_user_identifier(user))
    return db_client


@router.delete("/{client_id}")
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
    audit: AuditSink = Depends(get_audit_sink),
):
    db_client = crud_client.get_client(db, client_id)
    if db_client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    sales = crud_client.count_sales_of_client(db, client_id)
    if sales:
        raise HTTPException(status_code=400, detail=f"Client '{db_client.name}' has {sales} sale(s) and cannot be deleted")
    old_values = sqlalchemy_to_dict(db_client)
    crud_client.delete_client(db, db_client)
    audit.record("DELETE", "CLIENT", client_id, f"Client deleted: {old_values['name']}",
                 {"old_values": old_values}, get_user_identifier(user))
    return {"message": "Client deleted successfully"}
