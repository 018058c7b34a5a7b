import logging
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from starlette import status
from passlib.context import CryptContext

import config
import crud.users as crud_users
from database import get_db
from dependencies import get_audit_sink
from models.users import User
from schemas.users import LoginRequest, Token, User as UserSchema
from services.audit_service import AuditSink
from utils.auth_utils import ROLE_ADMIN, create_access_token, get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("auth")

bycrypt_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

db_dependency = Annotated[Session, Depends(get_db)]


def hash_password(password: str) -> str:
    return bycrypt_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return bycrypt_context.verify(password, hashed_password)


def token_for(user: User) -> str:
    return create_access_token(data={"sub": user.email, "uid": user.id, "name": user.name, "role": user.role})


def ensure_default_admin(db: Session) -> None:
    """Create the seed administrator when no user exists yet."""
    if crud_users.count_users(db) > 0:
        return
    crud_users.create_user(db, config.ADMIN_NAME, config.ADMIN_EMAIL, hash_password(config.ADMIN_PASSWORD), ROLE_ADMIN)
    logger.warning(f"No users found. Default administrator created: {config.ADMIN_EMAIL}")


@router.post("/login", response_model=Token)
def login(
    credentials: LoginRequest,
    db: db_dependency,
    audit: AuditSink = Depends(get_audit_sink),
):
    user = crud_users.get_user_by_email(db, credentials.email)
    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning(f"Failed login attempt for {credentials.email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User is inactive")

    logger.info(f"User {user.email} logged in")
    audit.record("LOGIN", "USER", user.id, f"Login: {user.name}", {"email": user.email, "role": user.role}, user.email)
    return Token(access_token=token_for(user), token_type="bearer", user=UserSchema.model_validate(user))


@router.get("/me", response_model=UserSchema)
def me(db: db_dependency, user: dict = Depends(get_current_user)):
    db_user = crud_users.get_user_by_email(db, user["sub"])
    if db_user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return db_user
