from sqlalchemy.orm import Session
from sqlalchemy import func
from models.category import Category
from schemas.category import CategoryCreate, CategoryUpdate


def get_category(db: Session, category_id: int):
    return db.query(Category).filter(Category.id == category_id).first()


def get_category_by_name(db: Session, name: str):
    return db.query(Category).filter(func.lower(Category.name) == name.strip().lower()).first()


def get_categories(db: Session):
    return db.query(Category).order_by(func.lower(Category.name)).all()


def create_category(db: Session, category: CategoryCreate, changed_by: str = None):
    db_category = Category(
        name=category.name.strip(),
        description=category.description,
        created_by=changed_by,
        updated_by=changed_by,
    )
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


def update_category(db: Session, db_category: Category, category: CategoryUpdate, changed_by: str = None):
    update_data = category.model_dump(exclude_unset=True)
    if "name" in update_data and update_data["name"] is not None:
        update_data["name"] = update_data["name"].strip()
    for key, value in update_data.items():
        setattr(db_category, key, value)
    db_category.updated_by = changed_by
    db.commit()
    db.refresh(db_category)
    return db_category


def delete_category(db: Session, db_category: Category):
    db.delete(db_category)
    db.commit()
