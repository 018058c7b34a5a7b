from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
import logging

import crud.users as crud_users
from auth import hash_password
from database import get_db
from dependencies import get_audit_sink
from schemas.users import User as UserSchema, UserCreate, UserUpdate
from services.audit_service import AuditSink
from utils.auth_utils import ROLE_ADMIN, get_user_identifier, require_role

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger("users")

admin_only = require_role(ROLE_ADMIN)


@router.get("/", response_model=List[UserSchema])
def get_users(db: Session = Depends(get_db), user: dict = Depends(admin_only)):
    return crud_users.get_users(db)


@router.post("/", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(admin_only),
    audit: AuditSink = Depends(get_audit_sink),
):
    if crud_users.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=409, detail=f"A user with email {payload.email} already exists")
    db_user = crud_users.create_user(db, payload.name, payload.email, hash_password(payload.password), payload.role)
    logger.info(f"User {db_user.email} ({db_user.role}) created by {get_user_identifier(user)}")
    audit.record("CREATE", "USER", db_user.id, f"User created: {db_user.name}",
                 {"email": db_user.email, "role": db_user.role}, get_user_identifier(user))
    return db_user


@router.patch("/{user_id}", response_model=UserSchema)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(admin_only),
    audit: AuditSink = Depends(get_audit_sink),
):
    db_user = crud_users.get_user(db, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if db_user.id == user.get("uid") and (payload.is_active is False or payload.role not in (None, ROLE_ADMIN)):
        raise HTTPException(status_code=400, detail="Administrators cannot deactivate or demote themselves")

    update_data = payload.model_dump(exclude_unset=True)
    password = update_data.pop("password", None)
    if password:
        db_user.hashed_password = hash_password(password)
    for key, value in update_data.items():
        setattr(db_user, key, value)
    db.commit()
    db.refresh(db_user)

    changed = sorted(update_data) + (["password"] if password else [])
    audit.record("UPDATE", "USER", user_id, f"User updated: {db_user.name}",
                 {"fields": changed, "role": db_user.role, "is_active": db_user.is_active}, get_user_identifier(user))
    return db_user
