from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
import logging

import crud.category as crud_category
from database import get_db
from dependencies import get_audit_sink
from schemas.category import Category as CategorySchema, CategoryCreate, CategoryUpdate
from services.audit_service import AuditSink
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/categories", tags=["Categories"])
logger = logging.getLogger("categories")


@router.get("/", response_model=List[CategorySchema])
def get_categories(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_category.get_categories(db)


@router.get("/{category_id}", response_model=CategorySchema)
def get_category(category_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_category = crud_category.get_category(db, category_id)
    if db_category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return db_category


@router.post("/", response_model=CategorySchema, status_code=status.HTTP_201_CREATED)
def create_category(
    category: CategoryCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
    audit: AuditSink = Depends(get_audit_sink),
):
    if not category.name.strip():
        raise HTTPException(status_code=400, detail="Category name is required")
    if crud_category.get_category_by_name(db, category.name):
        raise HTTPException(status_code=409, detail=f"A category named '{category.name.strip()}' already exists")

    db_category = crud_category.create_category(db, category, changed_by=get_user_identifier(user))
    logger.info(f"Category '{db_category.name}' (ID: {db_category.id}) created by User {get_user_identifier(user)}")
    audit.record("CREATE", "CATEGORY", db_category.id, f"Category created: {db_category.name}",
                 {"name": db_category.name, "description": db_category.description}, get_user_identifier(user))
    return db_category


@router.patch("/{category_id}", response_model=CategorySchema)
def update_category(
    category_id: int,
    category: CategoryUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
    audit: AuditSink = Depends(get_audit_sink),
):
    db_category = crud_category.get_category(db, category_id)
    if db_category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    if category.name is not None:
        existing = crud_category.get_category_by_name(db, category.name)
        if existing and existing.id != category_id:
            raise HTTPException(status_code=409, detail=f"A category named '{category.name.strip()}' already exists")

    old_name = db_category.name
    db_category = crud_category.update_category(db, db_category, category, changed_by=get_user_identifier(user))
    audit.record("UPDATE", "CATEGORY", category_id, f"Category updated: {db_category.name}",
                 {"old_name": old_name, "name": db_category.name, "description": db_category.description}, get_user_identifier(user))
    return db_category


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
    audit: AuditSink = Depends(get_audit_sink),
):
    db_category = crud_category.get_category(db, category_id)
    if db_category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    if db_category.medicines:
        raise HTTPException(
            status_code=400,
            detail=f"Category '{db_category.name}' has {len(db_category.medicines)} medicine(s) and cannot be deleted",
        )
    name = db_category.name
    crud_category.delete_category(db, db_category)
    logger.info(f"Category '{name}' (ID: {category_id}) deleted by User {get_user_identifier(user)}")
    audit.record("DELETE", "CATEGORY", category_id, f"Category deleted: {name}", {"name": name}, get_user_identifier(user))
    return {"message": "Category deleted successfully"}
